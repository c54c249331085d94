#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Ditto Protocol messages used by the bridge

Only "modify feature property" commands and their responses are needed:

  command:
    {
      "topic": "org.example/pump-1/things/twin/commands/modify",
      "headers": {"correlation-id": "...", "response-required": true},
      "path": "/features/virtualmachine/properties/configuration/temp",
      "value": 23.5
    }

  response:
    {"topic": ".../things/twin/commands/modify", "headers": {"correlation-id": "..."}, "status": 204, ...}
  error:
    {"topic": ".../things/twin/errors", "headers": {...}, "status": 403,
     "value": {"error": "things:thing.notmodifiable", "message": "..."}}
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional


class DittoError(RuntimeError):
    """Ditto rejected a command"""

    def __init__(self, status: int, error: Optional[str] = None, message: Optional[str] = None) -> None:
        self.status = status
        self.error = error
        self.message = message
        super().__init__(f"Ditto answered {status}: {error or 'error'} {message or ''}".rstrip())


@dataclass(frozen=True)
class DittoResponse:
    correlation_id: str
    status: int
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status < 300

    def to_exception(self) -> DittoError:
        return DittoError(self.status, self.error, self.message)


def _check_json_value(value: Any) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"{value!r} can not be sent as JSON value")


def modify_property_command(
    thing_id: str,
    feature_id: str,
    path: str,
    value: Any,
    correlation_id: str,
) -> Dict[str, Any]:
    """Build a twin "modify" command for /features/<feature_id>/properties/<path>"""
    namespace, sep, name = thing_id.partition(":")
    if not sep or not name:
        raise ValueError(f"Invalid thing id: {thing_id!r}")
    _check_json_value(value)
    return {
        "topic": f"{namespace}/{name}/things/twin/commands/modify",
        "headers": {
            "correlation-id": correlation_id,
            "response-required": True,
            "content-type": "application/json",
        },
        "path": f"/features/{feature_id}/properties/{path.strip('/')}",
        "value": value,
    }


def encode(message: Dict[str, Any]) -> str:
    return json.dumps(message, allow_nan=False, separators=(",", ":"))


def parse_response(text: str) -> Optional[DittoResponse]:
    """
    Parse a text frame; None for frames that are not correlated responses
    (protocol acks like "START-SEND-EVENTS:ACK", events, malformed JSON)
    """
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    headers = data.get("headers")
    if not isinstance(headers, dict):
        return None
    correlation_id = headers.get("correlation-id")
    status = data.get("status")
    if not correlation_id or not isinstance(status, int):
        return None

    error = message = None
    if status >= 300:
        value = data.get("value")
        if isinstance(value, dict):
            error = value.get("error")
            message = value.get("message")
    return DittoResponse(correlation_id=str(correlation_id), status=status, error=error, message=message)

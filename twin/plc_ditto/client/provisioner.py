#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from twin.plc_ditto.lib.constants import DITTO_THINGS_PATH, HTTP_TIMEOUT

from .bridge.models import TwinIdentity

logger = logging.getLogger(__name__)


class ProvisioningError(RuntimeError):
    """Twin does not exist and could not be created (fatal at startup)"""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TwinProvisioner:
    """
    Creates (or overwrites) the twin record with HTTP PUT before polling starts

    Ditto answers 201 for a new twin and 204 for an existing one, so running
    the bridge again against the same twin id succeeds. Any status >= 300 is
    fatal.
    """

    def __init__(
        self,
        *,
        base_url: str,
        username: str,
        password: str,
        client: Optional[httpx.Client] = None,
        timeout: float = HTTP_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._auth = httpx.BasicAuth(username, password)
        self._client = client or httpx.Client(timeout=timeout)

    def twin_url(self, twin: TwinIdentity) -> str:
        return self.base_url + DITTO_THINGS_PATH.format(thing_id=quote(twin.thing_id, safe=":"))

    @staticmethod
    def build_body(twin: TwinIdentity, thing_shape: Mapping[str, Any]) -> Dict[str, Any]:
        body = dict(thing_shape)
        body["thingId"] = twin.thing_id
        return body

    def ensure_twin(self, twin: TwinIdentity, thing_shape: Mapping[str, Any]) -> int:
        """PUT the thing shape as twin record, return the HTTP status"""
        url = self.twin_url(twin)
        logger.info("Using thingId: %s", twin.thing_id)
        try:
            r = self._client.put(url, json=self.build_body(twin, thing_shape), auth=self._auth)
        except httpx.HTTPError as e:
            raise ProvisioningError(f"PUT {url!r} failed: {e!r}") from e

        logger.info("Status was: %d", r.status_code)
        if r.status_code >= 300:
            logger.debug("Ditto response body: %.500s", r.text)
            raise ProvisioningError(
                f"Device does not exist and could not be created! (PUT {url!r} -> {r.status_code})",
                status_code=r.status_code,
            )
        return r.status_code

    def close(self) -> None:
        self._client.close()

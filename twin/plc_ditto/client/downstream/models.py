#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ResponseCode(Enum):
    """Per-field status of a source read"""

    OK = "ok"
    NOT_FOUND = "not_found"
    ACCESS_DENIED = "access_denied"
    INVALID_ADDRESS = "invalid_address"
    INVALID_DATATYPE = "invalid_datatype"
    INTERNAL_ERROR = "internal_error"
    RESPONSE_PENDING = "response_pending"


@dataclass(frozen=True)
class FieldResponse:
    """
    Result of reading one address from an open connection

    value is only meaningful when code is OK

    Examples:
        FieldResponse(ResponseCode.OK, 23.5)
        FieldResponse(ResponseCode.NOT_FOUND)
    """

    code: ResponseCode
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.code is ResponseCode.OK


class ReadErrorKind(Enum):
    CONNECTION_FAILED = "connection_failed"
    TIMEOUT = "timeout"
    READ_FAILED = "read_failed"
    FIELD_STATUS = "field_status"
    INVALID_DATATYPE = "invalid_datatype"


@dataclass(frozen=True)
class ReadError:
    kind: ReadErrorKind
    detail: str = ""
    code: Optional[ResponseCode] = None

    def __str__(self) -> str:
        parts = [self.kind.value]
        if self.code is not None:
            parts.append(self.code.value)
        if self.detail:
            parts.append(self.detail)
        return ": ".join(parts)


@dataclass(frozen=True)
class ReadResult:
    """
    Outcome of one protocol read: either a typed value or a ReadError

    Example:
        ReadResult.success(23.5)          -> ok, value=23.5
        ReadResult.failure(ReadErrorKind.TIMEOUT, "no answer in 5.0s")
    """

    value: Any = None
    error: Optional[ReadError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "ReadResult":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ReadErrorKind,
        detail: str = "",
        code: Optional[ResponseCode] = None,
    ) -> "ReadResult":
        return cls(error=ReadError(kind=kind, detail=detail, code=code))

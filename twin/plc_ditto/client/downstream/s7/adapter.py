#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple
from urllib.parse import urlsplit

from snap7.client import Client as Snap7Client
from snap7.error import S7ProtocolError
from snap7.type import Parameter

from ..base import DownstreamAdapter, SourceConnection
from ..models import FieldResponse, ResponseCode
from .codec import S7Address, S7Codec


logger = logging.getLogger(__name__)

S7_DEFAULT_PORT = 102

# Descriptions of S7 item return codes in snap7 error texts -> field status
_ITEM_ERROR_CODES = (
    ("invalid address", ResponseCode.INVALID_ADDRESS),
    ("object does not exist", ResponseCode.NOT_FOUND),
    ("not allowed", ResponseCode.ACCESS_DENIED),
    ("data type not supported", ResponseCode.INVALID_DATATYPE),
    ("data type inconsistent", ResponseCode.INVALID_DATATYPE),
    ("hardware error", ResponseCode.INTERNAL_ERROR),
)


@dataclass(frozen=True)
class S7Endpoint:
    """
    Parsed s7 URL

    Example:
        "s7://192.168.0.1/0/1" -> S7Endpoint(host="192.168.0.1", port=102, rack=0, slot=1)
    """

    host: str
    port: int = S7_DEFAULT_PORT
    rack: int = 0
    slot: int = 0


def parse_s7_url(url: str) -> S7Endpoint:
    parts = urlsplit(url)
    if parts.scheme != "s7":
        raise ValueError(f"Not an s7 URL: {url!r}")
    if not parts.hostname:
        raise ValueError(f"s7 URL without host: {url!r}")

    segments = [s for s in parts.path.split("/") if s]
    if len(segments) > 2:
        raise ValueError(f"s7 URL path must be /<rack>/<slot>: {url!r}")
    try:
        numbers = [int(s) for s in segments]
    except ValueError:
        raise ValueError(f"s7 rack/slot must be integers: {url!r}") from None
    rack = numbers[0] if len(numbers) > 0 else 0
    slot = numbers[1] if len(numbers) > 1 else 0

    return S7Endpoint(host=parts.hostname, port=parts.port or S7_DEFAULT_PORT, rack=rack, slot=slot)


def _item_error_code(e: S7ProtocolError) -> Optional[ResponseCode]:
    """Field status for an error the PLC reported for the item, None for other protocol errors"""
    text = str(e).lower()
    for needle, code in _ITEM_ERROR_CODES:
        if needle in text:
            return code
    return None


class S7Connection(SourceConnection):
    """
    Connected snap7 client for one PLC

    Item-level errors reported by the CPU are returned as field status codes,
    transport errors are raised
    """

    def __init__(self, *, client: Any, endpoint: S7Endpoint, codec: S7Codec) -> None:
        self._client = client
        self._endpoint = endpoint
        self._codec = codec

    def read(self, address: str) -> FieldResponse:
        try:
            parsed = self._codec.parse_address(address)
        except ValueError as e:
            logger.debug("%s", e)
            return FieldResponse(ResponseCode.INVALID_ADDRESS)

        try:
            raw = self._read_bytes(parsed)
        except S7ProtocolError as e:
            code = _item_error_code(e)
            if code is None:
                raise
            logger.debug("S7 %s read %r failed: %s", self._endpoint.host, address, e)
            return FieldResponse(code)
        return self._codec.decode(parsed, raw)

    def _read_bytes(self, addr: S7Address) -> bytearray:
        if addr.area == "DB":
            return self._client.db_read(addr.db_number, addr.byte_offset, addr.size)
        if addr.area == "M":
            return self._client.mb_read(addr.byte_offset, addr.size)
        if addr.area == "I":
            return self._client.eb_read(addr.byte_offset, addr.size)
        if addr.area == "Q":
            return self._client.ab_read(addr.byte_offset, addr.size)
        raise ValueError(f"Unknown S7 area {addr.area!r}")

    def close(self) -> None:
        try:
            self._client.disconnect()
        finally:
            self._client.destroy()


class S7Adapter(DownstreamAdapter):
    """
    S7 adapter using python-snap7

    Notes:
      - In tests we inject a mocked snap7 client via `client_factory=...`
      - In production a fresh snap7 client is created for every connection
    """

    def __init__(self, *, client_factory: Optional[Callable[[], Any]] = None) -> None:
        self._client_factory = client_factory or Snap7Client
        self._codec = S7Codec()

    @property
    def downstream_name(self) -> str:
        return "s7"

    @property
    def schemes(self) -> Tuple[str, ...]:
        return ("s7",)

    def connect(self, url: str, *, timeout: float) -> SourceConnection:
        endpoint = parse_s7_url(url)
        client = self._client_factory()
        try:
            timeout_ms = int(timeout * 1000)
            for param in (Parameter.PingTimeout, Parameter.SendTimeout, Parameter.RecvTimeout):
                client.set_param(param, timeout_ms)
            client.connect(endpoint.host, endpoint.rack, endpoint.slot, endpoint.port)
        except Exception:
            client.destroy()
            raise
        logger.debug("S7 connected: %s rack=%d slot=%d", endpoint.host, endpoint.rack, endpoint.slot)
        return S7Connection(client=client, endpoint=endpoint, codec=self._codec)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from typing import Any, Tuple

from ..base import DownstreamCodec
from ..models import FieldResponse, ResponseCode

_MISSING = object()


def _get_path(root: Any, path: Tuple[str, ...]) -> Any:
    """
    Get nested value by key path. Returns _MISSING if path missing

    Path examples:
      - ("temp",)            -> root["temp"]
      - ("line1", "temp")    -> root["line1"]["temp"]
    """
    cur = root
    for p in path:
        if not isinstance(cur, dict) or p not in cur:
            return _MISSING
        cur = cur[p]
    return cur


class JsonDocumentCodec(DownstreamCodec):
    """
    Codec for JSON object sources (file_poll, http_poll)

    Address is a dotted key path into the document, e.g. "line1.temp"
    The document already contains python-native types (bool/int/float/str)
    """

    def __init__(self, downstream_name: str = "file_poll") -> None:
        self._name = downstream_name

    @property
    def downstream_name(self) -> str:
        return self._name

    def parse_address(self, address: str) -> Tuple[str, ...]:
        parts = tuple(p.strip() for p in str(address).split("."))
        if not parts or any(not p for p in parts):
            raise ValueError(f"Malformed key path: {address!r}")
        return parts

    def decode(self, address: Tuple[str, ...], raw: Any) -> FieldResponse:
        if not isinstance(raw, dict):
            return FieldResponse(ResponseCode.INVALID_DATATYPE)
        value = _get_path(raw, address)
        if value is _MISSING:
            return FieldResponse(ResponseCode.NOT_FOUND)
        if isinstance(value, (dict, list)):
            # Only scalar leaves can be published as a property value
            return FieldResponse(ResponseCode.INVALID_DATATYPE)
        return FieldResponse(ResponseCode.OK, value)

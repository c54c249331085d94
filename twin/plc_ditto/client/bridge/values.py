#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import math
from typing import Any, Union

from .models import ValueType

TypedValue = Union[float, bool, int]

_TRUE_WORDS = ("1", "true", "on", "yes")
_FALSE_WORDS = ("0", "false", "off", "no")


def _as_text(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return raw.decode("utf-8", errors="replace").strip()
    return str(raw).strip()


def to_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, float) and not math.isfinite(raw):
        raise ValueError(f"Can not interpret {raw!r} as BOOLEAN")
    if isinstance(raw, (int, float)):
        return raw != 0
    s = _as_text(raw).lower()
    if s in _TRUE_WORDS:
        return True
    if s in _FALSE_WORDS:
        return False
    raise ValueError(f"Can not interpret {raw!r} as BOOLEAN")


def to_double(raw: Any) -> float:
    if isinstance(raw, (bytes, bytearray, str)):
        return float(_as_text(raw))
    return float(raw)


def to_int(raw: Any) -> int:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise ValueError(f"Can not interpret {raw!r} as INT")
        return int(raw)
    s = _as_text(raw)
    try:
        return int(s)
    except ValueError:
        # "12.0" from text sources
        return to_int(float(s))


_CONVERTERS = {
    ValueType.DOUBLE: to_double,
    ValueType.BOOLEAN: to_boolean,
    ValueType.INT: to_int,
}


def coerce_value(value_type: ValueType, raw: Any) -> TypedValue:
    """
    Convert a raw source value into the python type matching value_type

      DOUBLE  -> float
      BOOLEAN -> bool
      INT     -> int

    Raises ValueError/TypeError when raw can not be represented
    """
    if raw is None:
        raise ValueError("No value")
    return _CONVERTERS[value_type](raw)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from snap7 import util as snap7_util

from ..base import DownstreamCodec
from ..models import FieldResponse, ResponseCode

# %DB1:0:REAL, %DB1:4.2:BOOL
_DB_SHORT_RE = re.compile(r"^%DB(?P<db>\d+):(?P<byte>\d+)(?:\.(?P<bit>[0-7]))?:(?P<type>[A-Z]+)$")
# %DB1.DBD0:REAL, %DB1.DBX4.2:BOOL
_DB_LONG_RE = re.compile(
    r"^%DB(?P<db>\d+)\.DB(?P<size>[XBWD])(?P<byte>\d+)(?:\.(?P<bit>[0-7]))?:(?P<type>[A-Z]+)$"
)
# %M10.1:BOOL, %IW4:INT, %QB0:BYTE (E/A are the german aliases of I/Q)
_AREA_RE = re.compile(
    r"^%(?P<area>[IQMEA])(?P<size>[XBWD])?(?P<byte>\d+)(?:\.(?P<bit>[0-7]))?:(?P<type>[A-Z]+)$"
)

_AREA_ALIASES = {"E": "I", "A": "Q"}

# data type -> (size in bytes, decoder(buffer, bit_offset))
_DECODERS: Dict[str, Tuple[int, Callable[[bytearray, int], Any]]] = {
    "BOOL": (1, lambda buf, bit: snap7_util.get_bool(buf, 0, bit)),
    "BYTE": (1, lambda buf, bit: snap7_util.get_byte(buf, 0)),
    "USINT": (1, lambda buf, bit: snap7_util.get_usint(buf, 0)),
    "SINT": (1, lambda buf, bit: snap7_util.get_sint(buf, 0)),
    "WORD": (2, lambda buf, bit: snap7_util.get_word(buf, 0)),
    "UINT": (2, lambda buf, bit: snap7_util.get_uint(buf, 0)),
    "INT": (2, lambda buf, bit: snap7_util.get_int(buf, 0)),
    "DWORD": (4, lambda buf, bit: snap7_util.get_dword(buf, 0)),
    "UDINT": (4, lambda buf, bit: snap7_util.get_udint(buf, 0)),
    "DINT": (4, lambda buf, bit: snap7_util.get_dint(buf, 0)),
    "REAL": (4, lambda buf, bit: snap7_util.get_real(buf, 0)),
    "LREAL": (8, lambda buf, bit: snap7_util.get_lreal(buf, 0)),
}


@dataclass(frozen=True)
class S7Address:
    """
    Parsed S7 address

    Examples:
        "%DB1:0:REAL"     -> S7Address(area="DB", db_number=1, byte_offset=0, bit_offset=0, data_type="REAL")
        "%M10.1:BOOL"     -> S7Address(area="M", db_number=0, byte_offset=10, bit_offset=1, data_type="BOOL")
    """

    area: str
    db_number: int
    byte_offset: int
    bit_offset: int
    data_type: str

    @property
    def size(self) -> int:
        return _DECODERS[self.data_type][0]


def parse_s7_address(address: str) -> S7Address:
    text = str(address).strip().upper()
    m = _DB_SHORT_RE.match(text) or _DB_LONG_RE.match(text)
    if m:
        area = "DB"
        db_number = int(m.group("db"))
    else:
        m = _AREA_RE.match(text)
        if not m:
            raise ValueError(f"Malformed S7 address: {address!r}")
        area = _AREA_ALIASES.get(m.group("area"), m.group("area"))
        db_number = 0

    data_type = m.group("type")
    if data_type not in _DECODERS:
        raise ValueError(f"Unsupported S7 data type {data_type!r} in {address!r}")

    bit: Optional[str] = m.group("bit")
    if bit is not None and data_type != "BOOL":
        raise ValueError(f"Bit offset is only valid for BOOL: {address!r}")

    return S7Address(
        area=area,
        db_number=db_number,
        byte_offset=int(m.group("byte")),
        bit_offset=int(bit) if bit is not None else 0,
        data_type=data_type,
    )


class S7Codec(DownstreamCodec):
    """
    Codec for S7 PLC memory

    parse_address(): "%DB1:0:REAL" -> S7Address
    decode():        raw bytes read from the PLC -> python value
    """

    @property
    def downstream_name(self) -> str:
        return "s7"

    def parse_address(self, address: str) -> S7Address:
        return parse_s7_address(address)

    def decode(self, address: S7Address, raw: Any) -> FieldResponse:
        buf = bytearray(raw)
        if len(buf) < address.size:
            return FieldResponse(ResponseCode.INVALID_DATATYPE)
        _, decoder = _DECODERS[address.data_type]
        return FieldResponse(ResponseCode.OK, decoder(buf, address.bit_offset))

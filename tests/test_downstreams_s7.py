#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import struct
from unittest.mock import MagicMock

import pytest
from snap7.error import S7ConnectionError, S7ProtocolError
from snap7.type import Parameter

from twin.plc_ditto.client.downstream.models import ResponseCode
from twin.plc_ditto.client.downstream.s7.adapter import S7Adapter, S7Endpoint, parse_s7_url
from twin.plc_ditto.client.downstream.s7.codec import S7Address, S7Codec, parse_s7_address


def _mock_client() -> MagicMock:
    client = MagicMock()
    client.db_read.return_value = bytearray(struct.pack(">f", 23.5))
    return client


@pytest.mark.parametrize(
    "address, expected",
    [
        ("%DB1:0:REAL", S7Address("DB", 1, 0, 0, "REAL")),
        ("%DB3:4.2:BOOL", S7Address("DB", 3, 4, 2, "BOOL")),
        ("%DB1.DBD8:DINT", S7Address("DB", 1, 8, 0, "DINT")),
        ("%DB1.DBX4.7:BOOL", S7Address("DB", 1, 4, 7, "BOOL")),
        ("%M10.1:BOOL", S7Address("M", 0, 10, 1, "BOOL")),
        ("%IW4:INT", S7Address("I", 0, 4, 0, "INT")),
        ("%EW4:INT", S7Address("I", 0, 4, 0, "INT")),
        ("%AB0:BYTE", S7Address("Q", 0, 0, 0, "BYTE")),
        ("%db2:0:lreal", S7Address("DB", 2, 0, 0, "LREAL")),
    ],
)
def test_parse_s7_address(address, expected):
    assert parse_s7_address(address) == expected


@pytest.mark.parametrize("address", ["DB1:0:REAL", "%DB1:0", "%DB1:0:STRING", "%DB1:0.3:REAL", "%X1:0:BOOL", ""])
def test_parse_s7_address_rejects_malformed(address):
    with pytest.raises(ValueError):
        parse_s7_address(address)


def test_codec_decodes_big_endian_values():
    codec = S7Codec()

    r = codec.decode(parse_s7_address("%DB1:0:REAL"), struct.pack(">f", 23.5))
    assert r.ok and r.value == pytest.approx(23.5)

    r = codec.decode(parse_s7_address("%DB1:0:INT"), struct.pack(">h", -42))
    assert r.ok and r.value == -42

    r = codec.decode(parse_s7_address("%M0.3:BOOL"), bytes([0b0000_1000]))
    assert r.ok and r.value is True

    r = codec.decode(parse_s7_address("%DB1:0:DINT"), b"\x00\x01")
    assert r.code is ResponseCode.INVALID_DATATYPE


def test_parse_s7_url():
    assert parse_s7_url("s7://192.168.0.1/0/1") == S7Endpoint("192.168.0.1", 102, 0, 1)
    assert parse_s7_url("s7://plc:1102") == S7Endpoint("plc", 1102, 0, 0)
    with pytest.raises(ValueError):
        parse_s7_url("s7://plc/a/b")
    with pytest.raises(ValueError):
        parse_s7_url("http://plc/0/1")


def test_adapter_connect_and_read_db():
    client = _mock_client()
    adapter = S7Adapter(client_factory=lambda: client)

    with adapter.connect("s7://192.168.0.1/0/1", timeout=5.0) as conn:
        r = conn.read("%DB1:0:REAL")

    assert r.ok and r.value == pytest.approx(23.5)
    client.connect.assert_called_once_with("192.168.0.1", 0, 1, 102)
    client.db_read.assert_called_once_with(1, 0, 4)
    # timeouts are set in milliseconds
    assert all(c.args[1] == 5000 for c in client.set_param.call_args_list)
    assert [c.args[0] for c in client.set_param.call_args_list] == [
        Parameter.PingTimeout,
        Parameter.SendTimeout,
        Parameter.RecvTimeout,
    ]
    client.disconnect.assert_called_once()
    client.destroy.assert_called_once()


def test_adapter_reads_merker_area():
    client = _mock_client()
    client.mb_read.return_value = bytearray([0x02])
    conn = S7Adapter(client_factory=lambda: client).connect("s7://plc/0/1", timeout=1.0)

    r = conn.read("%M4.1:BOOL")

    assert r.value is True
    client.mb_read.assert_called_once_with(4, 1)


def test_connect_failure_destroys_client_and_raises():
    client = _mock_client()
    client.connect.side_effect = S7ConnectionError("Unreachable peer")
    adapter = S7Adapter(client_factory=lambda: client)

    with pytest.raises(S7ConnectionError):
        adapter.connect("s7://10.0.0.1/0/1", timeout=5.0)
    client.destroy.assert_called_once()


def test_invalid_address_is_field_status():
    conn = S7Adapter(client_factory=_mock_client).connect("s7://plc/0/1", timeout=1.0)
    assert conn.read("%DB1:zz:REAL").code is ResponseCode.INVALID_ADDRESS


def test_plc_item_error_is_field_status_transport_error_raises():
    client = _mock_client()
    conn = S7Adapter(client_factory=lambda: client).connect("s7://plc/0/1", timeout=1.0)

    client.db_read.side_effect = S7ProtocolError("Read operation failed: Invalid address (0x05)")
    assert conn.read("%DB1:0:REAL").code is ResponseCode.INVALID_ADDRESS

    client.db_read.side_effect = S7ProtocolError("Read operation failed: Object does not exist (0x0a)")
    assert conn.read("%DB1:0:REAL").code is ResponseCode.NOT_FOUND

    client.db_read.side_effect = S7ProtocolError("Read operation failed: Accessing the object not allowed (0x03)")
    assert conn.read("%DB1:0:REAL").code is ResponseCode.ACCESS_DENIED

    client.db_read.side_effect = S7ProtocolError("Failed to receive valid response")
    with pytest.raises(S7ProtocolError):
        conn.read("%DB1:0:REAL")

    client.db_read.side_effect = S7ConnectionError("Connection reset")
    with pytest.raises(S7ConnectionError):
        conn.read("%DB1:0:REAL")

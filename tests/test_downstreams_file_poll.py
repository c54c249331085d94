#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import json
from pathlib import Path

import pytest

from twin.plc_ditto.client.downstream.file_poll.adapter import FilePollAdapter, path_from_url
from twin.plc_ditto.client.downstream.file_poll.codec import JsonDocumentCodec
from twin.plc_ditto.client.downstream.manager import DriverManager
from twin.plc_ditto.client.downstream.models import ResponseCode


def _write(tmp_path: Path, data) -> Path:
    p = tmp_path / "data.json"
    p.write_text(json.dumps(data), encoding="utf-8")
    return p


def test_file_poll_reads_key_path(tmp_path: Path):
    """
    The JSON file acts like a fake PLC:
      - top level and nested keys are addresses
      - the file is read again on every read()
    """
    p = _write(tmp_path, {"t": 23.5, "line1": {"relay": True}})
    conn = FilePollAdapter().connect(p.as_uri(), timeout=1.0)

    assert conn.read("t").value == 23.5
    assert conn.read("line1.relay").value is True

    p.write_text(json.dumps({"t": 24.0}), encoding="utf-8")
    assert conn.read("t").value == 24.0


def test_file_poll_field_status_codes(tmp_path: Path):
    p = _write(tmp_path, {"t": 23.5, "nested": {"a": 1}, "list": [1, 2]})
    conn = FilePollAdapter().connect(p.as_uri(), timeout=1.0)

    assert conn.read("missing").code is ResponseCode.NOT_FOUND
    assert conn.read("t.deeper").code is ResponseCode.NOT_FOUND
    assert conn.read("nested").code is ResponseCode.INVALID_DATATYPE
    assert conn.read("list").code is ResponseCode.INVALID_DATATYPE
    assert conn.read("a..b").code is ResponseCode.INVALID_ADDRESS


def test_missing_file_fails_on_connect(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        FilePollAdapter().connect((tmp_path / "nope.json").as_uri(), timeout=1.0)


def test_path_from_url():
    assert path_from_url("file:///tmp/values.json") == Path("/tmp/values.json")
    assert path_from_url("file://localhost/tmp/a%20b.json") == Path("/tmp/a b.json")
    with pytest.raises(ValueError):
        path_from_url("file://remote-host/tmp/values.json")
    with pytest.raises(ValueError):
        path_from_url("http://host/values.json")


def test_codec_rejects_non_object_document():
    codec = JsonDocumentCodec()
    assert codec.decode(("t",), [1, 2, 3]).code is ResponseCode.INVALID_DATATYPE


def test_driver_manager_selects_by_scheme(tmp_path: Path):
    p = _write(tmp_path, {"t": 1})
    drivers = DriverManager([FilePollAdapter()])

    assert drivers.schemes == ("file",)
    with drivers.get_connection(p.as_uri(), timeout=1.0) as conn:
        assert conn.read("t").ok

    with pytest.raises(ValueError, match="No downstream adapter"):
        drivers.get_connection("modbus://plc/1", timeout=1.0)


def test_default_driver_manager_knows_all_schemes():
    assert set(DriverManager.default().schemes) == {"s7", "file", "http", "https"}

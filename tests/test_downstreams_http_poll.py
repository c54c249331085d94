#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from typing import List

import httpx
import pytest

from twin.plc_ditto.client.downstream.http_poll.adapter import HttpPollAdapter
from twin.plc_ditto.client.downstream.models import ResponseCode


def _adapter(handler, seen: List[httpx.Request]) -> HttpPollAdapter:
    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return HttpPollAdapter(client_factory=lambda timeout: httpx.Client(transport=httpx.MockTransport(record)))


def test_http_poll_reads_json_key():
    seen: List[httpx.Request] = []
    adapter = _adapter(lambda r: httpx.Response(200, json={"plant": {"temp": 21.5}}), seen)

    with adapter.connect("http://sim.local/values", timeout=2.0) as conn:
        r = conn.read("plant.temp")

    assert r.ok and r.value == 21.5
    assert [str(req.url) for req in seen] == ["http://sim.local/values"]
    assert seen[0].method == "GET"


@pytest.mark.parametrize(
    "status, code",
    [
        (404, ResponseCode.NOT_FOUND),
        (401, ResponseCode.ACCESS_DENIED),
        (403, ResponseCode.ACCESS_DENIED),
        (500, ResponseCode.INTERNAL_ERROR),
        (302, ResponseCode.INTERNAL_ERROR),
    ],
)
def test_http_status_maps_to_field_code(status, code):
    adapter = _adapter(lambda r: httpx.Response(status), [])
    conn = adapter.connect("https://sim.local/values", timeout=2.0)
    assert conn.read("temp").code is code


def test_http_poll_bad_body_and_missing_key():
    adapter = _adapter(lambda r: httpx.Response(200, text="<html>"), [])
    assert adapter.connect("http://sim.local/", timeout=1.0).read("temp").code is ResponseCode.INVALID_DATATYPE

    adapter = _adapter(lambda r: httpx.Response(200, json={"other": 1}), [])
    assert adapter.connect("http://sim.local/", timeout=1.0).read("temp").code is ResponseCode.NOT_FOUND


def test_http_transport_error_raises():
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    conn = _adapter(boom, []).connect("http://sim.local/", timeout=1.0)
    with pytest.raises(httpx.ConnectError):
        conn.read("temp")

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import base64
import json
from typing import List

import httpx
import pytest

from twin.plc_ditto.client.bridge.models import TwinIdentity
from twin.plc_ditto.client.provisioner import ProvisioningError, TwinProvisioner

TWIN = TwinIdentity("org.apache.plc4x.examples", "pump-1")
THING = {"definition": "org.apache.plc4x.examples:VirtualMachine:1.0.0", "features": {"virtualmachine": {}}}


def _provisioner(status: int, seen: List[httpx.Request]) -> TwinProvisioner:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status)

    return TwinProvisioner(
        base_url="https://twin.example.org/",
        username="mqtt",
        password="secret",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.parametrize("status", [201, 204])
def test_put_creates_or_overwrites_twin(status):
    seen: List[httpx.Request] = []

    assert _provisioner(status, seen).ensure_twin(TWIN, THING) == status

    (req,) = seen
    assert req.method == "PUT"
    assert str(req.url) == "https://twin.example.org/api/2/things/org.apache.plc4x.examples:pump-1"
    assert req.headers["Authorization"] == "Basic " + base64.b64encode(b"mqtt:secret").decode()
    body = json.loads(req.content)
    assert body["thingId"] == "org.apache.plc4x.examples:pump-1"
    assert body["features"] == {"virtualmachine": {}}
    # caller's document is not modified
    assert "thingId" not in THING


@pytest.mark.parametrize("status", [409, 400, 403, 500, 503])
def test_non_2xx_is_fatal(status):
    with pytest.raises(ProvisioningError) as ei:
        _provisioner(status, []).ensure_twin(TWIN, THING)
    assert ei.value.status_code == status


def test_transport_error_is_fatal():
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    prov = TwinProvisioner(
        base_url="https://twin.example.org",
        username="mqtt",
        password="mqtt",
        client=httpx.Client(transport=httpx.MockTransport(boom)),
    )
    with pytest.raises(ProvisioningError) as ei:
        prov.ensure_twin(TWIN, THING)
    assert ei.value.status_code is None


def test_thing_id_is_escaped_in_url_path():
    seen: List[httpx.Request] = []
    twin = TwinIdentity("org.apache.plc4x.examples", "a?b#c%d")

    _provisioner(201, seen).ensure_twin(twin, THING)

    (req,) = seen
    assert req.url.raw_path == b"/api/2/things/org.apache.plc4x.examples:a%3Fb%23c%25d"
    assert req.url.query == b""
    # the body keeps the unescaped id
    assert json.loads(req.content)["thingId"] == "org.apache.plc4x.examples:a?b#c%d"

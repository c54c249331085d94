#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from twin.plc_ditto.client.bridge.models import PropertySpec, ValueType
from twin.plc_ditto.client.config import BridgeConfig
from twin.plc_ditto.client.downstream.file_poll.adapter import FilePollAdapter
from twin.plc_ditto.client.downstream.manager import DriverManager
from twin.plc_ditto.client.main import AppContext, serve
from twin.plc_ditto.client.upstream import UpstreamState
from twin.plc_ditto.lib.constants import ExitCode


def test_serve_polls_file_source_until_stopped(tmp_path: Path, fake_upstream):
    """
    Real event loop and worker pool, file source instead of a PLC:
    values are published until stop is requested, then everything is closed
    """
    src = tmp_path / "plc.json"
    src.write_text(json.dumps({"temp": 21.5, "running": 1}), encoding="utf-8")
    cfg = BridgeConfig(twin_id="pump-1", workers=2)
    specs = (
        PropertySpec("temp", ValueType.DOUBLE, "temp", src.as_uri(), 20),
        PropertySpec("running", ValueType.BOOLEAN, "running", src.as_uri(), 20),
    )

    async def scenario():
        ctx = AppContext(cfg)
        task = asyncio.create_task(
            serve(cfg, specs, upstream=fake_upstream, drivers=DriverManager([FilePollAdapter()]), ctx=ctx)
        )
        for _ in range(100):
            await asyncio.sleep(0.02)
            paths = {c[2] for c in fake_upstream.calls}
            if paths == {"configuration/temp", "configuration/running"}:
                break
        ctx.request_stop()
        return await asyncio.wait_for(task, timeout=5.0), ctx

    code, ctx = asyncio.run(scenario())

    assert code == ExitCode.SUCCESS
    assert ("org.apache.plc4x.examples:pump-1", "virtualmachine", "configuration/temp", 21.5) in fake_upstream.calls
    assert ("org.apache.plc4x.examples:pump-1", "virtualmachine", "configuration/running", True) in fake_upstream.calls
    assert fake_upstream.state is UpstreamState.STOPPED
    assert all(not t.running for t in ctx.supervisor.tasks)


def test_serve_returns_upstream_error_when_ditto_unreachable(fake_upstream):
    fake_upstream.fail_start = True
    cfg = BridgeConfig(twin_id="pump-1")
    specs = (PropertySpec("temp", ValueType.DOUBLE, "temp", "file:///nope.json", 1000),)

    async def scenario():
        ctx = AppContext(cfg)
        code = await serve(cfg, specs, upstream=fake_upstream, drivers=DriverManager([FilePollAdapter()]), ctx=ctx)
        return code, ctx

    code, ctx = asyncio.run(scenario())

    assert code == ExitCode.UPSTREAM_ERROR
    assert ctx.supervisor is None

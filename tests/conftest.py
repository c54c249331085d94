#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import concurrent.futures
import heapq
import itertools
from typing import Any, List, Tuple

import pytest

from twin.plc_ditto.client.upstream import UpstreamState
from twin.plc_ditto.client.upstream.base import BaseUpstreamAdapter, UpstreamUnavailableError


async def settle(rounds: int = 50) -> None:
    """Give every ready callback / task a chance to run"""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """
    Manual clock for the task supervisor

    sleep() parks the caller until advance() moves time past its deadline.
    Waiters are woken in deadline order, with the clock set to each deadline.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._waiters: List[Tuple[float, int, asyncio.Future]] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiters, (self.now + max(delay, 0.0), next(self._seq), fut))
        await fut

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await settle()
        while self._waiters and self._waiters[0][0] <= target:
            when, _, fut = heapq.heappop(self._waiters)
            self.now = max(self.now, when)
            if not fut.done():
                fut.set_result(None)
            await settle()
        self.now = target
        await settle()


class FakeUpstream(BaseUpstreamAdapter):
    """
    In-memory upstream

    mode:
      "ack"     - every update is acknowledged
      "reject"  - every update fails asynchronously
      "raise"   - put_property raises synchronously
      "pending" - updates are never answered
    """

    def __init__(self, mode: str = "ack") -> None:
        super().__init__()
        self.mode = mode
        self.calls: List[Tuple[str, str, str, Any]] = []
        self.fail_start = False

    async def start(self) -> None:
        if self.fail_start:
            await self._set_state(UpstreamState.UNAVAILABLE)
            raise UpstreamUnavailableError("connection refused")
        await self._set_state(UpstreamState.READY)

    async def stop(self) -> None:
        await self._set_state(UpstreamState.STOPPED)

    def put_property(self, thing_id: str, feature_id: str, path: str, value: Any) -> "asyncio.Future[None]":
        if self.mode == "raise":
            raise RuntimeError("socket gone")
        self.calls.append((thing_id, feature_id, path, value))
        loop = asyncio.get_running_loop()
        fut = loop.create_future()
        if self.mode == "ack":
            loop.call_soon(fut.set_result, None)
        elif self.mode == "reject":
            loop.call_soon(fut.set_exception, RuntimeError("rejected"))
        return fut


class InlineExecutor(concurrent.futures.Executor):
    """Runs submitted calls immediately in the calling thread"""

    def submit(self, fn, /, *args, **kwargs):
        f: concurrent.futures.Future = concurrent.futures.Future()
        try:
            f.set_result(fn(*args, **kwargs))
        except BaseException as e:
            f.set_exception(e)
        return f


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def inline_executor() -> InlineExecutor:
    return InlineExecutor()

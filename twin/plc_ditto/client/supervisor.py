#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .bridge.models import PropertySpec
from .publisher import PublishOutcome, ValuePublisher
from .reader import ProtocolReader

logger = logging.getLogger(__name__)


class LoopClock:
    """
    Monotonic clock of the running event loop

    Any object with the same two methods can replace it (tests use a fake
    clock that is advanced by hand)
    """

    def time(self) -> float:
        return asyncio.get_running_loop().time()

    async def sleep(self, delay: float) -> None:
        await asyncio.sleep(delay)


@dataclass
class PollTaskStats:
    fired: int = 0  # ticks started
    published: int = 0  # values handed to the publisher
    skipped: int = 0  # ticks ended by a read error
    failed: int = 0  # ticks ended by an unexpected exception
    dropped: int = 0  # boundaries passed while a tick was still running


class PollTask:
    """
    Periodic read -> publish loop of one property

    Fires on the boundaries start + k * interval (k >= 1). Ticks never
    overlap: a tick that outlasts one or more boundaries makes the task skip
    them and resume on the next boundary that is not yet in the past.
    """

    def __init__(
        self,
        spec: PropertySpec,
        *,
        reader: ProtocolReader,
        publisher: ValuePublisher,
        clock,
    ) -> None:
        self.spec = spec
        self.stats = PollTaskStats()
        self._reader = reader
        self._publisher = publisher
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"poll-{self.spec.name}")
        self._task.add_done_callback(self._on_task_done)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        interval = self.spec.poll_interval
        next_fire = self._clock.time() + interval
        logger.debug("Poll task %r started, every %d ms", self.spec.name, self.spec.poll_interval_millis)

        while True:
            delay = next_fire - self._clock.time()
            if delay > 0:
                await self._clock.sleep(delay)

            self.stats.fired += 1
            await self.tick()

            next_fire += interval
            late = self._clock.time() - next_fire
            if late > 0:
                missed = math.ceil(late / interval)
                self.stats.dropped += missed
                next_fire += missed * interval
                logger.debug("Poll task %r: %d boundaries dropped", self.spec.name, missed)

    async def tick(self) -> None:
        """One read -> publish cycle. Never raises (except cancellation)"""
        spec = self.spec
        try:
            result = await self._reader.read(spec)
            if not result.ok:
                self.stats.skipped += 1
                logger.warning("Reading %r from %s failed: %s", spec.name, spec.source_url, result.error)
                return
            outcome = self._publisher.publish(spec.name, result.value)
            self.stats.published += 1
            outcome.add_done_callback(self._on_published)
        except Exception as e:
            self.stats.failed += 1
            logger.exception("Poll task %r: tick failed: %r", spec.name, e)

    def _on_published(self, fut: "asyncio.Future[PublishOutcome]") -> None:
        if fut.cancelled():
            return
        outcome = fut.result()
        if not outcome.ok:
            logger.debug("Poll task %r: update not applied: %r", self.spec.name, outcome.cause)

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Poll task %r terminated: %r", self.spec.name, exc)


class TaskSupervisor:
    """
    Owns one PollTask per registered PropertySpec

    Created and owned by the runtime; tasks are started together and
    cancelled together. A failure inside one task never affects the others.
    """

    def __init__(
        self,
        *,
        reader: ProtocolReader,
        publisher: ValuePublisher,
        clock=None,
    ) -> None:
        self._reader = reader
        self._publisher = publisher
        self._clock = clock or LoopClock()
        self._tasks: Dict[str, PollTask] = {}
        self._started = False

    @property
    def tasks(self) -> Tuple[PollTask, ...]:
        return tuple(self._tasks.values())

    def get_task(self, name: str) -> Optional[PollTask]:
        return self._tasks.get(name)

    def register(self, spec: PropertySpec) -> PollTask:
        if spec.name in self._tasks:
            raise ValueError(f"Property {spec.name!r} is already scheduled")
        task = PollTask(spec, reader=self._reader, publisher=self._publisher, clock=self._clock)
        self._tasks[spec.name] = task
        if self._started:
            task.start()
        return task

    def start(self) -> None:
        """Start all registered tasks (must be called from the event loop)"""
        self._started = True
        for task in self._tasks.values():
            task.start()
        logger.info("Scheduled %d poll task(s)", len(self._tasks))

    async def stop(self) -> None:
        self._started = False
        await asyncio.gather(*(t.stop() for t in self._tasks.values()), return_exceptions=True)
        for task in self._tasks.values():
            s = task.stats
            logger.info(
                "Poll task %r: fired=%d published=%d skipped=%d failed=%d dropped=%d",
                task.spec.name,
                s.fired,
                s.published,
                s.skipped,
                s.failed,
                s.dropped,
            )

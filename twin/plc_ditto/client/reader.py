#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from typing import Optional

from twin.plc_ditto.lib.constants import READ_TIMEOUT

from .bridge.models import PropertySpec, ValueType
from .bridge.values import coerce_value
from .downstream.manager import DriverManager
from .downstream.models import ReadErrorKind, ReadResult

logger = logging.getLogger(__name__)


def _mark_started(started: asyncio.Future) -> None:
    if not started.done():
        started.set_result(None)


class ProtocolReader:
    """
    Performs one read of one address per call

    read() runs the blocking part on the bounded worker pool and waits at most
    `timeout` seconds once a worker has picked it up. A full pool delays the
    read but does not make it time out. Every failure is returned as ReadResult, nothing
    is raised to the caller.
    """

    def __init__(
        self,
        drivers: DriverManager,
        *,
        executor: Optional[Executor] = None,
        timeout: float = READ_TIMEOUT,
    ) -> None:
        self._drivers = drivers
        self._executor = executor
        self.timeout = timeout

    async def read(self, spec: PropertySpec) -> ReadResult:
        loop = asyncio.get_running_loop()
        started: asyncio.Future = loop.create_future()

        def job() -> ReadResult:
            loop.call_soon_threadsafe(_mark_started, started)
            return self.read_blocking(spec.source_url, spec.source_address, spec.value_type)

        fut = loop.run_in_executor(self._executor, job)
        try:
            # Waiting for a free worker is not part of the read timeout
            await asyncio.wait({started, fut}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            fut.cancel()
            raise
        try:
            return await asyncio.wait_for(fut, timeout=self.timeout)
        except asyncio.TimeoutError:
            return ReadResult.failure(
                ReadErrorKind.TIMEOUT,
                f"no answer from {spec.source_url!r} within {self.timeout}s",
            )

    def read_blocking(self, url: str, address: str, value_type: ValueType) -> ReadResult:
        """Open connection, read one address, close connection"""
        try:
            connection = self._drivers.get_connection(url, timeout=self.timeout)
        except Exception as e:
            return ReadResult.failure(ReadErrorKind.CONNECTION_FAILED, f"{url!r}: {e!r}")

        try:
            response = connection.read(address)
        except Exception as e:
            return ReadResult.failure(ReadErrorKind.READ_FAILED, f"{address!r} at {url!r}: {e!r}")
        finally:
            try:
                connection.close()
            except Exception as e:
                logger.warning("Closing connection to %r failed: %r", url, e)

        if not response.ok:
            return ReadResult.failure(ReadErrorKind.FIELD_STATUS, address, code=response.code)

        try:
            value = coerce_value(value_type, response.value)
        except (TypeError, ValueError) as e:
            return ReadResult.failure(
                ReadErrorKind.INVALID_DATATYPE,
                f"{address!r} value {response.value!r} is not {value_type.value}: {e}",
            )
        return ReadResult.success(value)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from twin.plc_ditto.lib.constants import CONFIGURATION_PREFIX

from .bridge.models import TwinIdentity
from .bridge.values import TypedValue
from .upstream.base import BaseUpstreamAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishOutcome:
    path: str
    cause: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.cause is None


class ValuePublisher:
    """
    Sends property values of one twin feature to the upstream

    publish() never blocks and never raises: it returns a future resolving to
    a PublishOutcome, and logs the outcome when it is known
    """

    def __init__(self, upstream: BaseUpstreamAdapter, twin: TwinIdentity, feature_id: str) -> None:
        self._upstream = upstream
        self.twin = twin
        self.feature_id = feature_id

    @staticmethod
    def property_path(name: str) -> str:
        return CONFIGURATION_PREFIX + name

    def publish(self, name: str, value: TypedValue) -> "asyncio.Future[PublishOutcome]":
        path = self.property_path(name)
        outcome: asyncio.Future = asyncio.get_running_loop().create_future()

        def _complete(cause: Optional[BaseException]) -> None:
            result = PublishOutcome(path=path, cause=cause)
            self._log_outcome(result, value)
            if not outcome.done():
                outcome.set_result(result)

        def _on_ack(f: asyncio.Future) -> None:
            if f.cancelled():
                _complete(asyncio.CancelledError())
            else:
                _complete(f.exception())

        try:
            ack = self._upstream.put_property(self.twin.thing_id, self.feature_id, path, value)
        except Exception as e:
            _complete(e)
            return outcome

        ack.add_done_callback(_on_ack)
        return outcome

    def _log_outcome(self, result: PublishOutcome, value: TypedValue) -> None:
        if result.ok:
            logger.info("Sent update to Ditto: %s/%s = %r", self.feature_id, result.path, value)
        else:
            logger.warning(
                "Unable to send update to Ditto: %s/%s = %r: %r",
                self.feature_id,
                result.path,
                value,
                result.cause,
            )

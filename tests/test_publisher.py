#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging

import pytest

from twin.plc_ditto.client.bridge.models import TwinIdentity
from twin.plc_ditto.client.publisher import PublishOutcome, ValuePublisher

TWIN = TwinIdentity("org.apache.plc4x.examples", "pump-1")


def _publish(upstream, name, value) -> PublishOutcome:
    async def scenario():
        publisher = ValuePublisher(upstream, TWIN, "virtualmachine")
        fut = publisher.publish(name, value)
        return await asyncio.wait_for(fut, timeout=1.0)

    return asyncio.run(scenario())


@pytest.mark.parametrize("value", [23.5, True, 7])
def test_publish_sends_exact_value_to_configuration_path(fake_upstream, value):
    outcome = _publish(fake_upstream, "temp", value)

    assert outcome.ok
    assert outcome.path == "configuration/temp"
    (call,) = fake_upstream.calls
    assert call[:3] == ("org.apache.plc4x.examples:pump-1", "virtualmachine", "configuration/temp")
    assert call[3] == value and type(call[3]) is type(value)


def test_rejected_update_resolves_to_failed_outcome(fake_upstream, caplog):
    fake_upstream.mode = "reject"
    with caplog.at_level(logging.WARNING):
        outcome = _publish(fake_upstream, "temp", 1.0)

    assert not outcome.ok
    assert isinstance(outcome.cause, RuntimeError)
    assert "Unable to send update to Ditto" in caplog.text


def test_synchronous_failure_never_raises(fake_upstream):
    fake_upstream.mode = "raise"
    outcome = _publish(fake_upstream, "temp", 1.0)

    assert not outcome.ok
    assert "socket gone" in str(outcome.cause)


def test_success_is_logged(fake_upstream, caplog):
    with caplog.at_level(logging.INFO):
        _publish(fake_upstream, "running", False)
    assert "Sent update to Ditto" in caplog.text


def test_publish_returns_before_ack(fake_upstream):
    fake_upstream.mode = "pending"

    async def scenario():
        fut = ValuePublisher(fake_upstream, TWIN, "virtualmachine").publish("temp", 1.0)
        await asyncio.sleep(0)
        return fut.done()

    assert asyncio.run(scenario()) is False
    assert len(fake_upstream.calls) == 1

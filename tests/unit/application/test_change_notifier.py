"""Unit tests for ChangeNotifier: message shape and swallowed failures."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from incident_audit.application.change_notifier import RECORD_CHANGED, ChangeNotifier
from incident_audit.application.exceptions import NotificationFailureError


@pytest.mark.asyncio
async def test_publish_sends_record_changed_message():
    channel = AsyncMock()
    notifier = ChangeNotifier(channel, logging.getLogger(__name__))
    ok = await notifier.publish("log-1", revision_number=3, fields=["status", "location"], correlation_id="c-1")
    assert ok is True
    channel.broadcast.assert_awaited_once_with(
        {
            "type": RECORD_CHANGED,
            "record_id": "log-1",
            "revision_number": 3,
            "fields": ["location", "status"],
            "correlation_id": "c-1",
        }
    )


@pytest.mark.asyncio
async def test_channel_failure_is_logged_not_raised(caplog):
    channel = AsyncMock()
    channel.broadcast = AsyncMock(side_effect=NotificationFailureError("broker down"))
    notifier = ChangeNotifier(channel, logging.getLogger(__name__))
    with caplog.at_level(logging.ERROR):
        ok = await notifier.publish("log-1")
    assert ok is False
    assert any(r.getMessage() == "record_change_notification_failed" for r in caplog.records)


@pytest.mark.asyncio
async def test_slow_channel_times_out():
    async def slow(message):
        await asyncio.sleep(1)

    channel = AsyncMock()
    channel.broadcast = slow
    notifier = ChangeNotifier(channel, logging.getLogger(__name__), timeout_seconds=0.01)
    assert await notifier.publish("log-1") is False


@pytest.mark.asyncio
async def test_schedule_returns_before_the_channel_finishes():
    release = asyncio.Event()

    async def gated(message):
        await release.wait()

    channel = AsyncMock()
    channel.broadcast = gated
    notifier = ChangeNotifier(channel, logging.getLogger(__name__))
    task = notifier.schedule("log-1", revision_number=1, fields=("location",))
    await asyncio.sleep(0)
    assert not task.done()

    release.set()
    await notifier.drain()
    assert task.result() is True


@pytest.mark.asyncio
async def test_drain_waits_for_every_scheduled_notification():
    channel = AsyncMock()
    notifier = ChangeNotifier(channel, logging.getLogger(__name__))
    tasks = [notifier.schedule("log-1", revision_number=n) for n in (1, 2, 3)]
    await notifier.drain()
    assert all(t.done() for t in tasks)
    assert [c.args[0]["revision_number"] for c in channel.broadcast.await_args_list] == [1, 2, 3]


@pytest.mark.asyncio
async def test_scheduled_failure_is_logged(caplog):
    channel = AsyncMock()
    channel.broadcast = AsyncMock(side_effect=NotificationFailureError("broker down"))
    notifier = ChangeNotifier(channel, logging.getLogger(__name__))
    with caplog.at_level(logging.ERROR):
        notifier.schedule("log-1")
        await notifier.drain()
    assert any(r.getMessage() == "record_change_notification_failed" for r in caplog.records)

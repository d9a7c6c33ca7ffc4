"""Tests for the scheduler poll loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from notify_engine.models.notification import NotificationResult
from notify_engine.services.scheduler_service import SchedulerService


def make_scheduler(items=None, **kwargs):
    queue_service = MagicMock()
    queue_service.claim_due = AsyncMock(return_value=items or [])
    notification_service = MagicMock()
    notification_service.process_queue_item = AsyncMock(
        return_value=NotificationResult(success=True, message="ok")
    )
    return SchedulerService(queue_service, notification_service, **kwargs)


async def test_disabled_scheduler_does_not_start():
    scheduler = make_scheduler(enabled=False)

    await scheduler.start()

    assert scheduler.is_running is False


async def test_start_polls_and_stop_cancels():
    scheduler = make_scheduler(poll_interval=0.01, batch_size=5)

    await scheduler.start()
    await asyncio.sleep(0.05)
    await scheduler.stop()

    assert scheduler.is_running is False
    scheduler.queue_service.claim_due.assert_awaited_with(5)


async def test_one_failing_item_does_not_stop_the_sweep():
    first, second = MagicMock(id="a"), MagicMock(id="b")
    scheduler = make_scheduler(items=[first, second])
    scheduler.notification_service.process_queue_item = AsyncMock(
        side_effect=[RuntimeError("boom"), NotificationResult(success=True, message="ok")]
    )

    claimed = await scheduler.process_due_items()

    assert claimed == 2
    assert scheduler.notification_service.process_queue_item.await_count == 2


async def test_poll_errors_are_survived():
    scheduler = make_scheduler(poll_interval=0.01)
    scheduler.queue_service.claim_due = AsyncMock(side_effect=ConnectionError("db down"))

    await scheduler.start()
    await asyncio.sleep(0.05)

    assert scheduler.is_running is True
    assert scheduler.queue_service.claim_due.await_count >= 2
    await scheduler.stop()

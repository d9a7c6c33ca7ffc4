"""
Scheduler Service

Background asyncio task that polls notification_queue for due items.
Claimed items go through NotificationService.process_queue_item.
"""
import asyncio
import logging
from typing import Optional

from .notification_service import NotificationService
from .queue_service import QueueService

logger = logging.getLogger("notify.services.scheduler")


class SchedulerService:
    """
    Background scheduler for queued notifications.

    Every poll_interval seconds claims up to batch_size items where
    status = 'pending' and scheduled_at <= NOW(), moving them to
    'processing' in the same statement. Several schedulers may run
    against one database; each item is claimed by exactly one of them.
    """

    def __init__(
        self,
        queue_service: QueueService,
        notification_service: NotificationService,
        poll_interval: float = 30,
        batch_size: int = 50,
        enabled: bool = True,
    ):
        self.queue_service = queue_service
        self.notification_service = notification_service
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.enabled = enabled
        self._task: Optional[asyncio.Task] = None
        self._running = False

    async def start(self):
        """Start the scheduler background task"""
        if not self.enabled:
            logger.info("Scheduler is disabled (SCHEDULER_ENABLED=false)")
            return

        if self._running:
            logger.warning("Scheduler is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            f"Scheduler started (poll_interval={self.poll_interval}s, batch_size={self.batch_size})"
        )

    async def stop(self):
        """Stop the scheduler background task"""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Scheduler stopped")

    async def _poll_loop(self):
        """Main polling loop"""
        while self._running:
            try:
                await self.process_due_items()
            except Exception as e:
                logger.error(f"Scheduler poll error: {e}")

            try:
                await asyncio.sleep(self.poll_interval)
            except asyncio.CancelledError:
                break

    async def process_due_items(self) -> int:
        """Claim and process one sweep of due items; returns how many were claimed"""
        items = await self.queue_service.claim_due(self.batch_size)

        if not items:
            return 0

        logger.info(f"Scheduler processing {len(items)} due item(s)")

        for item in items:
            try:
                result = await self.notification_service.process_queue_item(item)
                if result.success:
                    logger.info(f"Delivered queue item {item.id} ({item.template_key})")
                else:
                    logger.warning(f"Queue item {item.id} not delivered: {result.error}")
            except Exception as e:
                logger.error(f"Failed to process queue item {item.id}: {e}")

        return len(items)

    @property
    def is_running(self) -> bool:
        return self._running

"""
Queue Service

Deferred and retryable notification work on top of QueueStorage.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from ..models.notification import utcnow
from ..models.queue_item import QueueItem, QueueStatus
from ..storage.queue_storage import QueueStorage

logger = logging.getLogger("notify.services.queue")


class QueueService:
    """
    Work queue with at-most-once claiming.

    State transitions are conditional updates in storage; this class
    adds the retry policy (max_retries, delay, backoff) and the clock.
    """

    def __init__(
        self,
        storage: QueueStorage,
        max_retries: int = 3,
        retry_delay_seconds: float = 0.0,
        retry_backoff: float = 1.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.storage = storage
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.retry_backoff = retry_backoff
        self._clock = clock

    async def enqueue(self, item: QueueItem) -> UUID:
        """Persist a new item as pending with no retries"""
        item.status = QueueStatus.PENDING
        item.retry_count = 0
        now = self._clock()
        item.created_at = now
        item.updated_at = now

        created = await self.storage.create(item)
        logger.info(
            f"Queued {created.template_key} for user {created.user_id} "
            f"at {created.scheduled_at.isoformat()} (id={created.id})"
        )
        return created.id

    async def claim_due(self, limit: int, now: Optional[datetime] = None) -> List[QueueItem]:
        """Move up to `limit` due pending items to processing and return them"""
        items = await self.storage.claim_due(limit, now or self._clock())
        if items:
            logger.info(f"Claimed {len(items)} due queue item(s)")
        return items

    async def mark_sent(self, item_id: UUID) -> Optional[QueueItem]:
        item = await self.storage.mark_sent(item_id, self._clock())
        if item is None:
            logger.warning(f"mark_sent: queue item {item_id} is not processing")
        return item

    async def mark_failed(
        self, item_id: UUID, reason: str, retryable: bool = True
    ) -> Optional[QueueItem]:
        """
        Record a failed attempt.

        Returns the updated item: status pending means a retry was granted,
        failed means the item is done. None when the item was not processing.
        """
        item = await self.storage.mark_failed(
            item_id,
            reason,
            retryable,
            self._clock(),
            retry_delay_seconds=self.retry_delay_seconds,
            retry_backoff=self.retry_backoff,
        )
        if item is None:
            logger.warning(f"mark_failed: queue item {item_id} is not processing")
        elif item.status == QueueStatus.PENDING:
            logger.info(
                f"Queue item {item_id} will retry "
                f"({item.retry_count}/{item.max_retries}): {reason}"
            )
        else:
            logger.error(f"Queue item {item_id} failed permanently: {reason}")
        return item

    async def cancel(self, item_id: UUID) -> bool:
        """Cancel a pending item; False for any other status"""
        cancelled = await self.storage.cancel(item_id, self._clock())
        if cancelled:
            logger.info(f"Cancelled queue item {item_id}")
        return cancelled

    async def get(self, item_id: UUID) -> Optional[QueueItem]:
        return await self.storage.get_by_id(item_id)

    async def list_items(
        self,
        user_id: Optional[str] = None,
        status: Optional[QueueStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[QueueItem], int]:
        return await self.storage.list_items(user_id, status, limit, offset)

"""
Queue Storage

PostgreSQL storage for the notification work queue.

Every state transition is a single conditional UPDATE, so concurrent
workers never see the same item in 'processing' twice.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from .base import BaseStorage
from ..models.notification import ChannelType, NotificationPriority, NotificationType
from ..models.queue_item import QueueItem, QueueStatus

logger = logging.getLogger("notify.storage.queue")


class QueueStorage(BaseStorage):
    """Storage for QueueItem entities"""

    async def create(self, item: QueueItem) -> QueueItem:
        """Insert a new queue item"""
        query = """
            INSERT INTO notification_queue (
                id, user_id, notification_type, template_key, channel_type, recipient,
                subject, content, variables, scheduled_at, priority, status,
                retry_count, max_retries, created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16)
            RETURNING *
        """
        row = await self.fetchrow(
            query,
            item.id, item.user_id, item.notification_type.value, item.template_key,
            item.channel_type.value, item.recipient,
            item.subject, item.content, item.variables,
            item.scheduled_at, item.priority.value, item.status.value,
            item.retry_count, item.max_retries,
            item.created_at, item.updated_at
        )
        return self._row_to_item(row)

    async def get_by_id(self, item_id: UUID) -> Optional[QueueItem]:
        """Get queue item by ID"""
        query = "SELECT * FROM notification_queue WHERE id = $1"
        row = await self.fetchrow(query, item_id)
        return self._row_to_item(row) if row else None

    async def claim_due(self, limit: int, now: datetime) -> List[QueueItem]:
        """
        Atomically claim up to `limit` due pending items.

        Selection and the pending -> processing transition happen in one
        statement; SKIP LOCKED lets concurrent claimers pass over rows
        another worker is claiming instead of waiting for them.
        """
        query = """
            UPDATE notification_queue AS q
            SET status = 'processing', updated_at = $2
            WHERE q.id IN (
                SELECT id FROM notification_queue
                WHERE status = 'pending' AND scheduled_at <= $2
                ORDER BY scheduled_at
                LIMIT $1
                FOR UPDATE SKIP LOCKED
            )
            RETURNING q.*
        """
        rows = await self.fetch(query, limit, now)
        items = [self._row_to_item(row) for row in rows]
        # RETURNING order is unspecified
        items.sort(key=lambda i: i.scheduled_at)
        return items

    async def mark_sent(self, item_id: UUID, now: datetime) -> Optional[QueueItem]:
        """processing -> sent"""
        query = """
            UPDATE notification_queue
            SET status = 'sent', sent_at = $2, failed_reason = NULL, updated_at = $2
            WHERE id = $1 AND status = 'processing'
            RETURNING *
        """
        row = await self.fetchrow(query, item_id, now)
        return self._row_to_item(row) if row else None

    async def mark_failed(
        self,
        item_id: UUID,
        reason: str,
        retryable: bool,
        now: datetime,
        retry_delay_seconds: float = 0.0,
        retry_backoff: float = 1.0,
    ) -> Optional[QueueItem]:
        """
        processing -> pending (retry) or processing -> failed.

        The item goes back to pending with retry_count + 1 only while the
        failure is retryable and retry_count + 1 < max_retries. The retry
        becomes due after retry_delay_seconds * retry_backoff ** retry_count.
        """
        query = """
            UPDATE notification_queue
            SET status = CASE
                    WHEN $3::boolean AND retry_count + 1 < max_retries THEN 'pending'
                    ELSE 'failed'
                END,
                retry_count = CASE
                    WHEN $3::boolean AND retry_count + 1 < max_retries THEN retry_count + 1
                    ELSE retry_count
                END,
                scheduled_at = CASE
                    WHEN $3::boolean AND retry_count + 1 < max_retries
                    THEN $4 + make_interval(secs => $5::float8 * power($6::float8, retry_count))
                    ELSE scheduled_at
                END,
                failed_reason = $2,
                updated_at = $4
            WHERE id = $1 AND status = 'processing'
            RETURNING *
        """
        row = await self.fetchrow(
            query, item_id, reason, retryable, now,
            float(retry_delay_seconds), float(retry_backoff)
        )
        return self._row_to_item(row) if row else None

    async def cancel(self, item_id: UUID, now: datetime) -> bool:
        """pending -> cancelled; no-op for any other status"""
        query = """
            UPDATE notification_queue
            SET status = 'cancelled', updated_at = $2
            WHERE id = $1 AND status = 'pending'
            RETURNING id
        """
        cancelled_id = await self.fetchval(query, item_id, now)
        return cancelled_id is not None

    async def list_items(
        self,
        user_id: Optional[str] = None,
        status: Optional[QueueStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[QueueItem], int]:
        """List queue items, newest first, with total count"""
        conditions = []
        args = []
        if user_id:
            args.append(user_id)
            conditions.append(f"user_id = ${len(args)}")
        if status:
            args.append(status.value)
            conditions.append(f"status = ${len(args)}")
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await self.fetchval(
            f"SELECT COUNT(*) FROM notification_queue {where}", *args
        )
        query = f"""
            SELECT * FROM notification_queue {where}
            ORDER BY created_at DESC
            LIMIT ${len(args) + 1} OFFSET ${len(args) + 2}
        """
        rows = await self.fetch(query, *args, limit, offset)
        return [self._row_to_item(row) for row in rows], total or 0

    def _row_to_item(self, row) -> QueueItem:
        """Convert database row to QueueItem"""
        return QueueItem(
            id=row["id"],
            user_id=row["user_id"],
            notification_type=NotificationType(row["notification_type"]),
            template_key=row["template_key"],
            channel_type=ChannelType(row["channel_type"]),
            recipient=row["recipient"],
            subject=row["subject"],
            content=row["content"] or {},
            variables=row["variables"] or {},
            scheduled_at=row["scheduled_at"],
            priority=NotificationPriority(row["priority"]),
            status=QueueStatus(row["status"]),
            retry_count=row["retry_count"],
            max_retries=row["max_retries"],
            failed_reason=row["failed_reason"],
            sent_at=row["sent_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

"""
Delivery Log Storage

PostgreSQL storage for the notification delivery log.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from .base import BaseStorage
from ..models.delivery_log import DELIVERY_STATUS_RANK, DeliveryLogEntry, DeliveryStatus
from ..models.notification import ChannelType, NotificationType

logger = logging.getLogger("notify.storage.delivery_log")


def _status_rank_sql(expr: str) -> str:
    """SQL CASE mapping a status expression to its lifecycle rank"""
    branches = " ".join(
        f"WHEN '{status.value}' THEN {rank}" for status, rank in DELIVERY_STATUS_RANK.items()
    )
    return f"(CASE {expr} {branches} ELSE 0 END)"


class DeliveryLogStorage(BaseStorage):
    """Storage for DeliveryLogEntry entities"""

    async def create(self, entry: DeliveryLogEntry) -> DeliveryLogEntry:
        """Create a new log entry"""
        query = """
            INSERT INTO notification_logs (
                id, user_id, notification_type, channel_type, recipient,
                subject, content_preview, status, external_id, error_message,
                sent_at, metadata, created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
            RETURNING *
        """
        row = await self.fetchrow(
            query,
            entry.id, entry.user_id, entry.notification_type.value,
            entry.channel_type.value, entry.recipient,
            entry.subject, entry.content_preview, entry.status.value,
            entry.external_id, entry.error_message,
            entry.sent_at, entry.metadata,
            entry.created_at, entry.updated_at
        )
        return self._row_to_entry(row)

    async def get_by_id(self, log_id: UUID) -> Optional[DeliveryLogEntry]:
        """Get log entry by ID"""
        query = "SELECT * FROM notification_logs WHERE id = $1"
        row = await self.fetchrow(query, log_id)
        return self._row_to_entry(row) if row else None

    async def get_by_external_id(self, external_id: str) -> Optional[DeliveryLogEntry]:
        """Get the most recent log entry for a transport message id"""
        query = """
            SELECT * FROM notification_logs
            WHERE external_id = $1
            ORDER BY sent_at DESC
            LIMIT 1
        """
        row = await self.fetchrow(query, external_id)
        return self._row_to_entry(row) if row else None

    async def append_lifecycle(
        self,
        log_id: UUID,
        event: DeliveryStatus,
        delivered_at: Optional[datetime] = None,
        opened_at: Optional[datetime] = None,
        clicked_at: Optional[datetime] = None,
    ) -> Optional[DeliveryLogEntry]:
        """
        Record a lifecycle event.

        The status moves to `event` only when that ranks further along the
        lifecycle than the stored status; the comparison happens inside the
        UPDATE, so concurrent callbacks cannot move it backwards.
        Timestamps already set are kept (COALESCE); only empty ones are filled.
        """
        query = f"""
            UPDATE notification_logs
            SET status = CASE
                    WHEN {_status_rank_sql("$2::text")} > {_status_rank_sql("status")}
                    THEN $2::text
                    ELSE status
                END,
                delivered_at = COALESCE(delivered_at, $3),
                opened_at = COALESCE(opened_at, $4),
                clicked_at = COALESCE(clicked_at, $5),
                updated_at = NOW()
            WHERE id = $1
            RETURNING *
        """
        row = await self.fetchrow(
            query, log_id, event.value, delivered_at, opened_at, clicked_at
        )
        return self._row_to_entry(row) if row else None

    async def list_entries(
        self, user_id: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[DeliveryLogEntry], int]:
        """List log entries, newest first, with total count"""
        if user_id:
            total = await self.fetchval(
                "SELECT COUNT(*) FROM notification_logs WHERE user_id = $1", user_id
            )
            query = """
                SELECT * FROM notification_logs
                WHERE user_id = $1
                ORDER BY sent_at DESC
                LIMIT $2 OFFSET $3
            """
            rows = await self.fetch(query, user_id, limit, offset)
        else:
            total = await self.fetchval("SELECT COUNT(*) FROM notification_logs")
            query = """
                SELECT * FROM notification_logs
                ORDER BY sent_at DESC
                LIMIT $1 OFFSET $2
            """
            rows = await self.fetch(query, limit, offset)
        return [self._row_to_entry(row) for row in rows], total or 0

    def _row_to_entry(self, row) -> DeliveryLogEntry:
        """Convert database row to DeliveryLogEntry"""
        return DeliveryLogEntry(
            id=row["id"],
            user_id=row["user_id"],
            notification_type=NotificationType(row["notification_type"]),
            channel_type=ChannelType(row["channel_type"]),
            recipient=row["recipient"],
            subject=row["subject"],
            content_preview=row["content_preview"],
            status=DeliveryStatus(row["status"]),
            external_id=row["external_id"],
            error_message=row["error_message"],
            sent_at=row["sent_at"],
            delivered_at=row["delivered_at"],
            opened_at=row["opened_at"],
            clicked_at=row["clicked_at"],
            metadata=row["metadata"] or {},
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

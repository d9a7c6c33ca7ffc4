"""
Delivery Log Service

Records every delivery attempt and folds later transport lifecycle
events (delivered, opened, clicked, bounced, complained) into it.
"""
import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from ..models.delivery_log import DeliveryLogEntry, DeliveryStatus
from ..models.notification import utcnow
from ..storage.delivery_log_storage import DeliveryLogStorage

logger = logging.getLogger("notify.services.delivery_log")

TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")

# Lifecycle event -> timestamp column it fills
EVENT_TIMESTAMPS = {
    DeliveryStatus.DELIVERED: "delivered_at",
    DeliveryStatus.OPENED: "opened_at",
    DeliveryStatus.CLICKED: "clicked_at",
}


def content_preview(content: Optional[str], length: int = 100) -> str:
    """Plain-text preview: tags stripped, capped at `length` chars plus '...'"""
    if not content:
        return ""
    text = WHITESPACE_RE.sub(" ", TAG_RE.sub(" ", content)).strip()
    if len(text) > length:
        return text[:length] + "..."
    return text


class DeliveryLogService:
    """Append-only delivery log"""

    def __init__(self, storage: DeliveryLogStorage, preview_length: int = 100):
        self.storage = storage
        self.preview_length = preview_length

    def preview(self, content: Optional[str]) -> str:
        return content_preview(content, self.preview_length)

    async def record(self, entry: DeliveryLogEntry) -> DeliveryLogEntry:
        """Persist one attempt; storage errors propagate to the caller"""
        if entry.content_preview:
            entry.content_preview = self.preview(entry.content_preview)
        created = await self.storage.create(entry)
        logger.info(
            f"Logged {created.channel_type.value} {created.status.value} "
            f"for user {created.user_id} (log_id={created.id})"
        )
        return created

    async def append_event(
        self,
        log_id: UUID,
        event: DeliveryStatus,
        timestamp: Optional[datetime] = None,
    ) -> Optional[DeliveryLogEntry]:
        """
        Apply a transport lifecycle event.

        The entry's status only moves forward in lifecycle rank, and a
        timestamp column is only written while empty. Both rules are applied
        by storage in one update. Returns None for an unknown log id.
        """
        stamps = {"delivered_at": None, "opened_at": None, "clicked_at": None}
        column = EVENT_TIMESTAMPS.get(event)
        if column:
            stamps[column] = timestamp or utcnow()

        updated = await self.storage.append_lifecycle(log_id, event, **stamps)
        if updated is None:
            logger.warning(f"Lifecycle event {event.value} for unknown log {log_id}")
            return None
        logger.info(f"Log {log_id}: event {event.value}, status {updated.status.value}")
        return updated

    async def append_event_by_external_id(
        self,
        external_id: str,
        event: DeliveryStatus,
        timestamp: Optional[datetime] = None,
    ) -> Optional[DeliveryLogEntry]:
        """Apply a lifecycle event addressed by the transport's message id"""
        entry = await self.storage.get_by_external_id(external_id)
        if entry is None:
            logger.warning(f"Lifecycle event {event.value} for unknown message {external_id}")
            return None
        return await self.append_event(entry.id, event, timestamp)

    async def get(self, log_id: UUID) -> Optional[DeliveryLogEntry]:
        return await self.storage.get_by_id(log_id)

    async def list_logs(
        self, user_id: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[DeliveryLogEntry], int]:
        return await self.storage.list_entries(user_id, limit, offset)

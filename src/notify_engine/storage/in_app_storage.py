"""
In-App Notification Storage

PostgreSQL storage for the user-visible notification feed.
"""
import logging
from typing import List

from .base import BaseStorage
from ..models.channel import InAppNotification
from ..models.notification import NotificationPriority

logger = logging.getLogger("notify.storage.in_app")


class InAppNotificationStorage(BaseStorage):
    """Storage for InAppNotification entities"""

    async def create(self, notification: InAppNotification) -> InAppNotification:
        """Insert a feed notification"""
        query = """
            INSERT INTO user_notifications (
                id, user_id, title, message, type, priority,
                action_url, action_label, metadata, is_read, expires_at, created_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
            RETURNING *
        """
        row = await self.fetchrow(
            query,
            notification.id, notification.user_id, notification.title,
            notification.message, notification.type, notification.priority.value,
            notification.action_url, notification.action_label,
            notification.metadata, notification.is_read,
            notification.expires_at, notification.created_at
        )
        return self._row_to_notification(row)

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[InAppNotification]:
        """List unexpired feed notifications for a user"""
        query = """
            SELECT * FROM user_notifications
            WHERE user_id = $1 AND (expires_at IS NULL OR expires_at > NOW())
            ORDER BY created_at DESC
            LIMIT $2
        """
        rows = await self.fetch(query, user_id, limit)
        return [self._row_to_notification(row) for row in rows]

    def _row_to_notification(self, row) -> InAppNotification:
        return InAppNotification(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            message=row["message"],
            type=row["type"],
            priority=NotificationPriority(row["priority"]),
            action_url=row["action_url"],
            action_label=row["action_label"],
            metadata=row["metadata"] or {},
            is_read=row["is_read"],
            expires_at=row["expires_at"],
            created_at=row["created_at"],
        )

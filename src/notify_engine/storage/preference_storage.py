"""
Preference Storage

PostgreSQL storage for per-user notification preferences
and the coarse per-user settings blob.
"""
import logging
from typing import List, Optional

from .base import BaseStorage
from ..models.notification import ChannelType, NotificationType
from ..models.preference import Frequency, NotificationPreference

logger = logging.getLogger("notify.storage.preference")


class PreferenceStorage(BaseStorage):
    """Storage for NotificationPreference entities"""

    async def get(
        self, user_id: str, notification_type: NotificationType, channel_type: ChannelType
    ) -> Optional[NotificationPreference]:
        """Get the preference row for (user, type, channel)"""
        query = """
            SELECT * FROM notification_preferences
            WHERE user_id = $1 AND notification_type = $2 AND channel_type = $3
        """
        row = await self.fetchrow(
            query, user_id, notification_type.value, channel_type.value
        )
        return self._row_to_preference(row) if row else None

    async def list_by_user(self, user_id: str) -> List[NotificationPreference]:
        """List all preference rows for a user"""
        query = """
            SELECT * FROM notification_preferences
            WHERE user_id = $1
            ORDER BY notification_type, channel_type
        """
        rows = await self.fetch(query, user_id)
        return [self._row_to_preference(row) for row in rows]

    async def upsert_many(self, preferences: List[NotificationPreference]) -> int:
        """Create or update preference rows, one transaction for the whole set"""
        query = """
            INSERT INTO notification_preferences (
                user_id, notification_type, channel_type, enabled, frequency,
                quiet_hours_start, quiet_hours_end, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, NOW())
            ON CONFLICT (user_id, notification_type, channel_type) DO UPDATE
            SET enabled = EXCLUDED.enabled,
                frequency = EXCLUDED.frequency,
                quiet_hours_start = EXCLUDED.quiet_hours_start,
                quiet_hours_end = EXCLUDED.quiet_hours_end,
                updated_at = NOW()
        """
        args = [
            (
                p.user_id, p.notification_type.value, p.channel_type.value,
                p.enabled, p.frequency.value, p.quiet_hours_start, p.quiet_hours_end,
            )
            for p in preferences
        ]
        async with self.transaction() as conn:
            await conn.executemany(query, args)
        return len(args)

    async def get_notification_settings(self, user_id: str) -> dict:
        """
        Get the 'notifications' section of the user's settings blob.

        Returns an empty dict when the user has no settings row.
        """
        query = """
            SELECT settings -> 'notifications' FROM user_settings
            WHERE user_id = $1
        """
        value = await self.fetchval(query, user_id)
        return value if isinstance(value, dict) else {}

    def _row_to_preference(self, row) -> NotificationPreference:
        """Convert database row to NotificationPreference"""
        return NotificationPreference(
            user_id=row["user_id"],
            notification_type=NotificationType(row["notification_type"]),
            channel_type=ChannelType(row["channel_type"]),
            enabled=row["enabled"],
            frequency=Frequency(row["frequency"]),
            quiet_hours_start=row["quiet_hours_start"],
            quiet_hours_end=row["quiet_hours_end"],
        )

"""
Notification Channel Storage

PostgreSQL storage for global channel settings.
"""
import logging
from typing import List, Optional

from .base import BaseStorage
from ..models.channel import ChannelSettings
from ..models.notification import ChannelType

logger = logging.getLogger("notify.storage.notification_channel")


class NotificationChannelStorage(BaseStorage):
    """Storage for ChannelSettings entities"""

    async def get_by_type(self, channel_type: ChannelType) -> Optional[ChannelSettings]:
        """Get settings row for a channel"""
        query = "SELECT * FROM notification_channels WHERE channel_type = $1"
        row = await self.fetchrow(query, channel_type.value)
        return self._row_to_channel(row) if row else None

    async def list_all(self) -> List[ChannelSettings]:
        """List settings for every configured channel"""
        query = "SELECT * FROM notification_channels ORDER BY channel_type"
        rows = await self.fetch(query)
        return [self._row_to_channel(row) for row in rows]

    async def set_enabled(self, channel_type: ChannelType, is_enabled: bool) -> ChannelSettings:
        """Turn a channel on or off, creating its row if needed"""
        query = """
            INSERT INTO notification_channels (channel_type, name, is_enabled)
            VALUES ($1, $1, $2)
            ON CONFLICT (channel_type) DO UPDATE
            SET is_enabled = EXCLUDED.is_enabled, updated_at = NOW()
            RETURNING *
        """
        row = await self.fetchrow(query, channel_type.value, is_enabled)
        return self._row_to_channel(row)

    def _row_to_channel(self, row) -> ChannelSettings:
        """Convert database row to ChannelSettings"""
        return ChannelSettings(
            id=row["id"],
            channel_type=ChannelType(row["channel_type"]),
            name=row["name"],
            is_enabled=row["is_enabled"],
            config=row["config"] or {},
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

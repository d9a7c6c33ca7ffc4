"""
Channel Models

ChannelSettings: global on/off switch and provider config per channel.
InAppNotification: row of the user-visible notification feed.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from .notification import ChannelType, NotificationPriority, utcnow


@dataclass
class ChannelSettings:
    """One row per channel type (UNIQUE channel_type)"""
    channel_type: ChannelType
    id: UUID = field(default_factory=uuid4)
    name: str = ""
    is_enabled: bool = True
    config: dict = field(default_factory=dict)

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "channel_type": self.channel_type.value,
            "name": self.name,
            "is_enabled": self.is_enabled,
            "config": self.config,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class InAppNotification:
    """
    Notification shown inside the product UI.

    type is the display category ('info', 'warning', 'error', 'success'),
    not the notification type.
    """
    user_id: str
    title: str
    message: str
    id: UUID = field(default_factory=uuid4)
    type: str = "info"
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_url: Optional[str] = None
    action_label: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    is_read: bool = False
    expires_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "priority": self.priority.value,
            "action_url": self.action_url,
            "action_label": self.action_label,
            "metadata": self.metadata,
            "is_read": self.is_read,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat(),
        }

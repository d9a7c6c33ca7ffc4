"""
Delivery Log Model

Append-only record of a delivery attempt and its later lifecycle events.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from .notification import ChannelType, NotificationType, utcnow


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    DELIVERED = "delivered"
    OPENED = "opened"
    CLICKED = "clicked"
    BOUNCED = "bounced"
    COMPLAINED = "complained"


# How far along the lifecycle each status is; status never moves backwards
DELIVERY_STATUS_RANK = {
    DeliveryStatus.FAILED: 0,
    DeliveryStatus.SENT: 1,
    DeliveryStatus.DELIVERED: 2,
    DeliveryStatus.BOUNCED: 2,
    DeliveryStatus.OPENED: 3,
    DeliveryStatus.CLICKED: 4,
    DeliveryStatus.COMPLAINED: 5,
}


@dataclass
class DeliveryLogEntry:
    """
    Log entry for a notification delivery attempt.

    Never rewritten: transport callbacks only fill in the
    delivered/opened/clicked timestamps and advance the status.
    """
    user_id: str
    notification_type: NotificationType
    channel_type: ChannelType
    recipient: str
    status: DeliveryStatus
    id: UUID = field(default_factory=uuid4)
    subject: Optional[str] = None
    content_preview: Optional[str] = None
    external_id: Optional[str] = None
    error_message: Optional[str] = None

    sent_at: datetime = field(default_factory=utcnow)
    delivered_at: Optional[datetime] = None
    opened_at: Optional[datetime] = None
    clicked_at: Optional[datetime] = None

    metadata: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response"""
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "notification_type": self.notification_type.value,
            "channel_type": self.channel_type.value,
            "recipient": self.recipient,
            "subject": self.subject,
            "content_preview": self.content_preview,
            "status": self.status.value,
            "external_id": self.external_id,
            "error_message": self.error_message,
            "sent_at": self.sent_at.isoformat(),
            "delivered_at": self.delivered_at.isoformat() if self.delivered_at else None,
            "opened_at": self.opened_at.isoformat() if self.opened_at else None,
            "clicked_at": self.clicked_at.isoformat() if self.clicked_at else None,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

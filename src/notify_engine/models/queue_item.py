"""
Queue Item Model

Persisted unit of deferred or retryable notification work.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from .notification import ChannelType, NotificationPriority, NotificationType, utcnow


class QueueStatus(str, Enum):
    """
    Queue item lifecycle.

    pending --claim--> processing --success--> sent
    processing --failure, retries left--> pending
    processing --failure, no retries left / permanent--> failed
    pending --cancel--> cancelled
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (QueueStatus.SENT, QueueStatus.FAILED, QueueStatus.CANCELLED)


@dataclass
class QueueItem:
    """Scheduled or retryable notification"""
    user_id: str
    notification_type: NotificationType
    template_key: str
    channel_type: ChannelType
    recipient: str
    id: UUID = field(default_factory=uuid4)
    subject: Optional[str] = None
    content: Dict[str, Any] = field(default_factory=dict)      # one-off override content
    variables: Dict[str, Any] = field(default_factory=dict)    # template variables

    scheduled_at: datetime = field(default_factory=utcnow)
    priority: NotificationPriority = NotificationPriority.NORMAL
    status: QueueStatus = QueueStatus.PENDING
    retry_count: int = 0
    max_retries: int = 3
    failed_reason: Optional[str] = None
    sent_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response"""
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "notification_type": self.notification_type.value,
            "template_key": self.template_key,
            "channel_type": self.channel_type.value,
            "recipient": self.recipient,
            "subject": self.subject,
            "content": self.content,
            "variables": self.variables,
            "scheduled_at": self.scheduled_at.isoformat(),
            "priority": self.priority.value,
            "status": self.status.value,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "failed_reason": self.failed_reason,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

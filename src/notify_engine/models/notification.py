"""
Notification Models

NotificationRequest: a caller's request to notify a user.
NotificationResult / BatchNotificationResult: structured outcomes returned to callers.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


class NotificationType(str, Enum):
    """Semantic category of a notification"""
    WELCOME = "welcome"
    SUBSCRIPTION_EXPIRY = "subscription_expiry"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_SUCCESS = "payment_success"
    QUOTA_WARNING = "quota_warning"
    SECURITY_ALERT = "security_alert"
    SYSTEM_UPDATE = "system_update"
    PASSWORD_RESET = "password_reset"


class ChannelType(str, Enum):
    """Delivery medium"""
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    IN_APP = "in_app"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class NotificationRequest:
    """
    Caller-constructed request to notify a user.

    Ephemeral: only persisted when it is scheduled for later
    and becomes a QueueItem.
    """
    user_id: str
    recipient: str                                       # email address, phone number, device token
    type: NotificationType
    channel_type: ChannelType
    priority: Optional[NotificationPriority] = None
    data: Dict[str, Any] = field(default_factory=dict)   # template variables
    scheduled_at: Optional[datetime] = None
    template_override: Optional[Dict[str, str]] = None   # {subject?, html?, text?}

    def effective_priority(self) -> NotificationPriority:
        return self.priority or NotificationPriority.NORMAL

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "recipient": self.recipient,
            "type": self.type.value,
            "channel_type": self.channel_type.value,
            "priority": self.effective_priority().value,
            "data": self.data,
            "scheduled_at": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "template_override": self.template_override,
        }


@dataclass
class NotificationResult:
    """Outcome of a single send or schedule call"""
    success: bool
    message: str
    notification_id: Optional[str] = None
    queue_id: Optional[str] = None
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response"""
        return {
            "success": self.success,
            "message": self.message,
            "notification_id": self.notification_id,
            "queue_id": self.queue_id,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class GroupSummary:
    """Per (channel, type) progress counters of a batch"""
    channel_type: ChannelType
    notification_type: NotificationType
    total: int = 0
    sent: int = 0
    failed: int = 0
    scheduled: int = 0

    def to_dict(self) -> dict:
        return {
            "channel_type": self.channel_type.value,
            "notification_type": self.notification_type.value,
            "total": self.total,
            "sent": self.sent,
            "failed": self.failed,
            "scheduled": self.scheduled,
        }


@dataclass
class BatchNotificationResult:
    """Aggregated outcome of a batch send"""
    results: List[NotificationResult] = field(default_factory=list)
    total_sent: int = 0
    total_failed: int = 0
    total_scheduled: int = 0
    groups: List[GroupSummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "total_sent": self.total_sent,
            "total_failed": self.total_failed,
            "total_scheduled": self.total_scheduled,
            "groups": [g.to_dict() for g in self.groups],
        }

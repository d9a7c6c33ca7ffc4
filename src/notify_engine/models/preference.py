"""
Preference Models

NotificationPreference: per (user, type, channel) opt-in row.
PreferenceDecision: result of evaluating all delivery policies.
"""
from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Optional

from .notification import ChannelType, NotificationType


class Frequency(str, Enum):
    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"
    NEVER = "never"


@dataclass
class NotificationPreference:
    """
    A user's preference for one notification type on one channel.

    Unique on (user_id, notification_type, channel_type).
    A missing row means delivery is allowed.
    """
    user_id: str
    notification_type: NotificationType
    channel_type: ChannelType
    enabled: bool = True
    frequency: Frequency = Frequency.IMMEDIATE
    quiet_hours_start: Optional[time] = None             # time of day, not date
    quiet_hours_end: Optional[time] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "notification_type": self.notification_type.value,
            "channel_type": self.channel_type.value,
            "enabled": self.enabled,
            "frequency": self.frequency.value,
            "quiet_hours_start": self.quiet_hours_start.isoformat() if self.quiet_hours_start else None,
            "quiet_hours_end": self.quiet_hours_end.isoformat() if self.quiet_hours_end else None,
        }


@dataclass
class PreferenceDecision:
    allowed: bool
    reason: Optional[str] = None

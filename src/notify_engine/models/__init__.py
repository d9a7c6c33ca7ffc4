"""
Notify Engine Data Models

Domain models for notification dispatch and scheduling.
"""
from .notification import (
    BatchNotificationResult,
    ChannelType,
    GroupSummary,
    NotificationPriority,
    NotificationRequest,
    NotificationResult,
    NotificationType,
)
from .template import NotificationTemplate, RenderedContent
from .preference import Frequency, NotificationPreference, PreferenceDecision
from .queue_item import QueueItem, QueueStatus
from .delivery_log import DeliveryLogEntry, DeliveryStatus
from .channel import ChannelSettings, InAppNotification

__all__ = [
    'BatchNotificationResult',
    'ChannelType',
    'GroupSummary',
    'NotificationPriority',
    'NotificationRequest',
    'NotificationResult',
    'NotificationType',
    'NotificationTemplate',
    'RenderedContent',
    'Frequency',
    'NotificationPreference',
    'PreferenceDecision',
    'QueueItem',
    'QueueStatus',
    'DeliveryLogEntry',
    'DeliveryStatus',
    'ChannelSettings',
    'InAppNotification',
]

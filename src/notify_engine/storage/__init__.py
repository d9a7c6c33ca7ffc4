"""
Notify Engine Storage Layer

PostgreSQL storage implementations for notification entities.
"""
from .base import BaseStorage
from .template_storage import TemplateStorage
from .preference_storage import PreferenceStorage
from .queue_storage import QueueStorage
from .delivery_log_storage import DeliveryLogStorage
from .notification_channel_storage import NotificationChannelStorage
from .in_app_storage import InAppNotificationStorage

__all__ = [
    'BaseStorage',
    'TemplateStorage',
    'PreferenceStorage',
    'QueueStorage',
    'DeliveryLogStorage',
    'NotificationChannelStorage',
    'InAppNotificationStorage',
]

"""
Notify Engine Services

Business logic services for the notification pipeline.
"""
from .engine_service import EngineService
from .cache import TTLCache
from .preference_service import PreferenceService
from .template_service import TemplateNotFoundError, TemplateService
from .channel_dispatcher import ChannelDispatcher
from .queue_service import QueueService
from .delivery_log_service import DeliveryLogService
from .notification_service import NotificationService
from .scheduler_service import SchedulerService

__all__ = [
    'EngineService',
    'TTLCache',
    'PreferenceService',
    'TemplateNotFoundError',
    'TemplateService',
    'ChannelDispatcher',
    'QueueService',
    'DeliveryLogService',
    'NotificationService',
    'SchedulerService',
]

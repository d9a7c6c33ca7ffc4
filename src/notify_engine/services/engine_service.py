"""
Engine Service

Main composite service that manages all storages and services.
Singleton pattern - one instance per process.
"""
import logging
from typing import List, Optional

from ..config import Config
from ..models.notification import ChannelType
from ..storage.base import BaseStorage
from ..storage.delivery_log_storage import DeliveryLogStorage
from ..storage.in_app_storage import InAppNotificationStorage
from ..storage.notification_channel_storage import NotificationChannelStorage
from ..storage.preference_storage import PreferenceStorage
from ..storage.queue_storage import QueueStorage
from ..storage.template_storage import TemplateStorage
from .channel_dispatcher import ChannelDispatcher
from .delivery_log_service import DeliveryLogService
from .notification_service import NotificationService
from .preference_service import PreferenceService
from .queue_service import QueueService
from .scheduler_service import SchedulerService
from .template_service import TemplateService
from ..notifications.email_sender import EmailSender
from ..notifications.in_app_sender import InAppSender
from ..notifications.placeholder_senders import PushSender, SmsSender
from ..notifications.transports import EmailTransport, ResendTransport, SmtpTransport

logger = logging.getLogger("notify.services.engine")

# Singleton instance
_engine_service: Optional["EngineService"] = None


def build_email_transport() -> EmailTransport:
    """Pick the email transport from EMAIL_PROVIDER"""
    if Config.EMAIL_PROVIDER == "resend":
        if not Config.RESEND_API_KEY:
            logger.warning("EMAIL_PROVIDER=resend but RESEND_API_KEY is empty")
        return ResendTransport(
            api_key=Config.RESEND_API_KEY,
            from_email=f"{Config.FROM_NAME} <{Config.FROM_EMAIL}>",
            api_url=Config.RESEND_API_URL,
        )

    if not Config.SMTP_HOST:
        logger.warning("Email delivery unavailable (no SMTP_HOST)")
    return SmtpTransport(
        smtp_host=Config.SMTP_HOST,
        smtp_port=Config.SMTP_PORT,
        smtp_user=Config.SMTP_USER,
        smtp_password=Config.SMTP_PASSWORD,
        from_email=Config.FROM_EMAIL,
        from_name=Config.FROM_NAME,
    )


class EngineService:
    """
    Composite engine service.

    Manages:
    - All storage connections (PostgreSQL)
    - Pipeline services and channel senders
    - The queue scheduler
    - Graceful shutdown
    """

    def __init__(self):
        """Initialize engine service with all storages"""
        self.postgres_dsn = Config.get_postgres_dsn()

        # Initialize storages
        self.template_storage = TemplateStorage(self.postgres_dsn)
        self.preference_storage = PreferenceStorage(self.postgres_dsn)
        self.queue_storage = QueueStorage(self.postgres_dsn)
        self.delivery_log_storage = DeliveryLogStorage(self.postgres_dsn)
        self.channel_storage = NotificationChannelStorage(self.postgres_dsn)
        self.in_app_storage = InAppNotificationStorage(self.postgres_dsn)

        # Initialize services (after storages)
        self.preference_service = PreferenceService(
            self.preference_storage, timezone=Config.QUIET_HOURS_TIMEZONE
        )
        self.template_service = TemplateService(
            self.template_storage, cache_ttl=Config.CACHE_TTL_SECONDS
        )
        self.queue_service = QueueService(
            self.queue_storage,
            max_retries=Config.QUEUE_MAX_RETRIES,
            retry_delay_seconds=Config.QUEUE_RETRY_DELAY_SECONDS,
            retry_backoff=Config.QUEUE_RETRY_BACKOFF,
        )
        self.delivery_log_service = DeliveryLogService(
            self.delivery_log_storage, preview_length=Config.CONTENT_PREVIEW_LENGTH
        )

        # Register notification senders
        self.dispatcher = ChannelDispatcher(
            channel_storage=self.channel_storage, cache_ttl=Config.CACHE_TTL_SECONDS
        )
        self.dispatcher.register_sender(ChannelType.EMAIL, EmailSender(build_email_transport()))
        self.dispatcher.register_sender(ChannelType.SMS, SmsSender())
        self.dispatcher.register_sender(ChannelType.PUSH, PushSender())
        self.dispatcher.register_sender(ChannelType.IN_APP, InAppSender(self.in_app_storage))

        self.notification_service = NotificationService(
            preference_service=self.preference_service,
            template_service=self.template_service,
            dispatcher=self.dispatcher,
            queue_service=self.queue_service,
            log_service=self.delivery_log_service,
        )

        # Initialize scheduler (started in initialize(), stopped in close())
        self.scheduler_service = SchedulerService(
            queue_service=self.queue_service,
            notification_service=self.notification_service,
            poll_interval=int(Config.SCHEDULER_POLL_INTERVAL),
            batch_size=Config.SCHEDULER_BATCH_SIZE,
            enabled=Config.SCHEDULER_ENABLED,
        )

        self._initialized = False
        logger.info("EngineService created")

    @property
    def storages(self) -> List[BaseStorage]:
        return [
            self.template_storage,
            self.preference_storage,
            self.queue_storage,
            self.delivery_log_storage,
            self.channel_storage,
            self.in_app_storage,
        ]

    async def initialize(self):
        """Initialize all storages"""
        if self._initialized:
            logger.info("EngineService already initialized")
            return

        logger.info("Initializing EngineService...")

        for storage in self.storages:
            await storage.init()

        # Start background scheduler
        await self.scheduler_service.start()

        self._initialized = True
        logger.info("EngineService initialized successfully")

    async def check_database(self) -> bool:
        """True when the queue storage pool answers a trivial query"""
        if not self._initialized:
            return False
        try:
            return await self.queue_storage.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning(f"Database check failed: {e}")
            return False

    async def close(self):
        """Close all connections"""
        logger.info("Closing EngineService...")

        await self.scheduler_service.stop()
        await self.notification_service.close()
        for storage in self.storages:
            await storage.close()

        self._initialized = False
        logger.info("EngineService closed")

    @property
    def is_initialized(self) -> bool:
        """Check if service is initialized"""
        return self._initialized


def get_engine_service() -> EngineService:
    """Get or create engine service singleton"""
    global _engine_service
    if _engine_service is None:
        _engine_service = EngineService()
    return _engine_service


async def init_engine_service() -> EngineService:
    """Initialize and return engine service"""
    service = get_engine_service()
    await service.initialize()
    return service

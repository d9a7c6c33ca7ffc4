"""
Channel Dispatcher

Routes a rendered notification to the sender registered for its channel
and answers whether a channel is globally switched on.
"""
import logging
from typing import Dict, Optional

from .cache import MISSING, TTLCache
from ..models.channel import ChannelSettings
from ..models.notification import ChannelType, NotificationRequest
from ..models.template import RenderedContent
from ..notifications.base_sender import BaseSender, SendResult
from ..storage.notification_channel_storage import NotificationChannelStorage

logger = logging.getLogger("notify.services.channel_dispatcher")


class ChannelDispatcher:
    """
    One sender per channel type behind a uniform send() contract.

    Adding a channel means registering another BaseSender;
    nothing here branches on the channel.
    """

    def __init__(
        self,
        channel_storage: Optional[NotificationChannelStorage] = None,
        senders: Optional[Dict[ChannelType, BaseSender]] = None,
        cache_ttl: float = 300.0,
    ):
        self.channel_storage = channel_storage
        # channel_type -> sender instance
        self._senders: Dict[ChannelType, BaseSender] = dict(senders or {})
        self._enabled_cache: TTLCache = TTLCache("channel", ttl=cache_ttl)

    def register_sender(self, channel_type: ChannelType, sender: BaseSender):
        """Register (or replace) the sender for a channel type"""
        self._senders[channel_type] = sender
        logger.info(f"Registered notification sender: {channel_type.value}")

    async def send(
        self, channel_type: ChannelType, request: NotificationRequest, content: RenderedContent
    ) -> SendResult:
        """Send through the channel's sender; never raises"""
        sender = self._senders.get(channel_type)
        if sender is None:
            logger.warning(f"No sender registered for channel type '{channel_type.value}'")
            return SendResult.permanent_failure(
                f"Unsupported notification channel: {channel_type.value}"
            )

        try:
            return await sender.send(request, content)
        except Exception as e:
            logger.error(f"Sender for {channel_type.value} raised: {e}")
            return SendResult(success=False, error=str(e))

    async def is_channel_enabled(self, channel_type: ChannelType) -> bool:
        """
        Global channel switch.

        No settings row, no storage, or a failed lookup all mean enabled.
        """
        if self.channel_storage is None:
            return True

        cached = self._enabled_cache.get(channel_type, MISSING)
        if cached is not MISSING:
            return cached

        try:
            settings = await self.channel_storage.get_by_type(channel_type)
        except Exception as e:
            logger.warning(f"Channel lookup failed for {channel_type.value}, assuming enabled: {e}")
            return True

        enabled = settings.is_enabled if settings else True
        self._enabled_cache.set(channel_type, enabled)
        return enabled

    async def set_channel_enabled(self, channel_type: ChannelType, is_enabled: bool) -> ChannelSettings:
        """Flip the global switch and drop the cached value"""
        settings = await self.channel_storage.set_enabled(channel_type, is_enabled)
        self._enabled_cache.invalidate(channel_type)
        logger.info(f"Channel {channel_type.value} {'enabled' if is_enabled else 'disabled'}")
        return settings

    async def close(self):
        """Cleanup sender resources"""
        for sender in self._senders.values():
            await sender.close()

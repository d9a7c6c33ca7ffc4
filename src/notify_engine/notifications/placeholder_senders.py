"""
SMS and Push Senders

No gateway is wired for these channels yet. Both fail deterministically
and mark the failure as permanent so queued items are not retried.
"""
import logging

from .base_sender import BaseSender, SendResult
from ..models.notification import ChannelType, NotificationRequest
from ..models.template import RenderedContent

logger = logging.getLogger("notify.notifications.placeholder")


class SmsSender(BaseSender):
    channel_type = ChannelType.SMS

    async def send(self, request: NotificationRequest, content: RenderedContent) -> SendResult:
        logger.info(f"SMS notifications not implemented (user={request.user_id})")
        return SendResult.permanent_failure("SMS notifications not yet implemented")


class PushSender(BaseSender):
    channel_type = ChannelType.PUSH

    async def send(self, request: NotificationRequest, content: RenderedContent) -> SendResult:
        logger.info(f"Push notifications not implemented (user={request.user_id})")
        return SendResult.permanent_failure("Push notifications not yet implemented")

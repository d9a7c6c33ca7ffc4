"""
Email Sender

Delivers rendered email content through an EmailTransport.
"""
import logging
import re

from .base_sender import BaseSender, SendResult
from .transports import EmailTransport
from ..models.notification import ChannelType, NotificationRequest
from ..models.template import RenderedContent

logger = logging.getLogger("notify.notifications.email")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmailSender(BaseSender):
    """Send notifications as email"""

    channel_type = ChannelType.EMAIL

    def __init__(self, transport: EmailTransport):
        self.transport = transport

    async def send(self, request: NotificationRequest, content: RenderedContent) -> SendResult:
        if not EMAIL_RE.match(request.recipient or ""):
            return SendResult.permanent_failure(
                f"Invalid email address: {request.recipient}"
            )

        try:
            receipt = await self.transport.deliver(
                request.recipient,
                content.for_channel(ChannelType.EMAIL),
                metadata={
                    "user_id": request.user_id,
                    "notification_type": request.type.value,
                    "priority": request.effective_priority().value,
                },
            )
        except Exception as e:
            logger.error(f"Email send error for {request.recipient}: {e}")
            return SendResult(success=False, error=str(e))

        if not receipt.ok:
            logger.warning(f"Email transport rejected {request.recipient}: {receipt.error}")
            return SendResult(success=False, error=receipt.error)

        return SendResult(success=True, external_id=receipt.id)

    async def close(self):
        await self.transport.close()

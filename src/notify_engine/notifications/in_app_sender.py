"""
In-App Sender

Writes notifications straight into the user's in-app feed.
A successful insert is what "sent" means for this channel.
"""
import logging
from datetime import timedelta

from .base_sender import BaseSender, SendResult
from ..models.channel import InAppNotification
from ..models.notification import ChannelType, NotificationRequest, NotificationType, utcnow
from ..models.template import RenderedContent
from ..storage.in_app_storage import InAppNotificationStorage

logger = logging.getLogger("notify.notifications.in_app")

# Feed display category per notification type
DISPLAY_TYPES = {
    NotificationType.WELCOME: "info",
    NotificationType.SUBSCRIPTION_EXPIRY: "warning",
    NotificationType.PAYMENT_FAILED: "error",
    NotificationType.PAYMENT_SUCCESS: "success",
    NotificationType.QUOTA_WARNING: "warning",
    NotificationType.SECURITY_ALERT: "error",
    NotificationType.SYSTEM_UPDATE: "info",
    NotificationType.PASSWORD_RESET: "info",
}

ACTIONS = {
    NotificationType.SUBSCRIPTION_EXPIRY: ("/subscriptions", "Renew Now"),
    NotificationType.PAYMENT_FAILED: ("/settings?tab=preferences", "Update Payment"),
    NotificationType.PAYMENT_SUCCESS: ("/subscriptions", "View Subscriptions"),
    NotificationType.QUOTA_WARNING: ("/settings?tab=preferences", "Upgrade Plan"),
    NotificationType.SECURITY_ALERT: ("/settings?tab=preferences", "Review Settings"),
    NotificationType.SYSTEM_UPDATE: ("/dashboard", "View Updates"),
    NotificationType.PASSWORD_RESET: ("/auth/reset-password", "Reset Password"),
}

EXPIRATION_HOURS = {
    NotificationType.WELCOME: 24 * 7,
    NotificationType.SUBSCRIPTION_EXPIRY: 24 * 30,
    NotificationType.PAYMENT_FAILED: 24 * 7,
    NotificationType.PAYMENT_SUCCESS: 24 * 3,
    NotificationType.QUOTA_WARNING: 24 * 14,
    NotificationType.SECURITY_ALERT: 24 * 30,
    NotificationType.SYSTEM_UPDATE: 24 * 14,
    NotificationType.PASSWORD_RESET: 1,
}


class InAppSender(BaseSender):
    """Insert notifications into the user_notifications feed"""

    channel_type = ChannelType.IN_APP

    def __init__(self, storage: InAppNotificationStorage):
        self.storage = storage

    def build_notification(
        self, request: NotificationRequest, content: RenderedContent
    ) -> InAppNotification:
        action_url, action_label = ACTIONS.get(request.type, (None, None))
        if request.type == NotificationType.PASSWORD_RESET and request.data.get("resetLink"):
            action_url = str(request.data["resetLink"])

        return InAppNotification(
            user_id=request.user_id,
            title=content.subject or "Notification",
            message=content.text or f"You have a new {request.type.value} notification.",
            type=DISPLAY_TYPES.get(request.type, "info"),
            priority=request.effective_priority(),
            action_url=action_url,
            action_label=action_label,
            metadata={
                "notification_type": request.type.value,
                "channel_type": self.channel_type.value,
                "data": request.data,
            },
            expires_at=utcnow() + timedelta(hours=EXPIRATION_HOURS.get(request.type, 24)),
        )

    async def send(self, request: NotificationRequest, content: RenderedContent) -> SendResult:
        notification = self.build_notification(request, content)
        try:
            created = await self.storage.create(notification)
        except Exception as e:
            logger.error(f"In-app insert failed for user {request.user_id}: {e}")
            return SendResult(success=False, error=str(e))

        logger.info(f"In-app notification {created.id} created for user {request.user_id}")
        return SendResult(success=True, external_id=str(created.id))

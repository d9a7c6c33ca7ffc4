"""
Preference Service

Decides whether a notification may be delivered to a user right now.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from ..models.notification import ChannelType, NotificationType
from ..models.preference import Frequency, NotificationPreference, PreferenceDecision
from ..storage.preference_storage import PreferenceStorage

logger = logging.getLogger("notify.services.preference")

ALLOW = PreferenceDecision(allowed=True)


class PreferenceService:
    """
    Delivery policy evaluation.

    Checks, in order:
    1. Coarse per-user settings (all notifications / channel class / type)
    2. The (user, type, channel) preference row: enabled, frequency, quiet hours

    A missing row allows delivery. A failed lookup also allows delivery
    (fail-open).
    """

    def __init__(
        self,
        storage: PreferenceStorage,
        timezone: str = "",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage
        self._tz = ZoneInfo(timezone) if timezone else None
        self._clock = clock or (lambda: datetime.now(self._tz))

    async def check(
        self, user_id: str, notification_type: NotificationType, channel_type: ChannelType
    ) -> PreferenceDecision:
        """Evaluate settings and preferences for one delivery"""
        decision = await self._check_settings(user_id, notification_type, channel_type)
        if not decision.allowed:
            return decision
        return await self._check_preference(user_id, notification_type, channel_type)

    async def _check_settings(
        self, user_id: str, notification_type: NotificationType, channel_type: ChannelType
    ) -> PreferenceDecision:
        try:
            settings = await self.storage.get_notification_settings(user_id)
        except Exception as e:
            logger.warning(f"Settings lookup failed for user {user_id}, allowing: {e}")
            return ALLOW

        if settings.get("enabled") is False:
            return PreferenceDecision(False, "User disabled all notifications")
        if settings.get(f"{channel_type.value}_notifications_enabled") is False:
            return PreferenceDecision(False, f"User disabled {channel_type.value} notifications")
        if settings.get(f"{notification_type.value}_enabled") is False:
            return PreferenceDecision(False, f"User disabled {notification_type.value} notifications")
        return ALLOW

    async def _check_preference(
        self, user_id: str, notification_type: NotificationType, channel_type: ChannelType
    ) -> PreferenceDecision:
        try:
            preference = await self.storage.get(user_id, notification_type, channel_type)
        except Exception as e:
            logger.warning(f"Preference lookup failed for user {user_id}, allowing: {e}")
            return ALLOW

        if preference is None:
            return ALLOW
        if not preference.enabled:
            return PreferenceDecision(False, "User disabled this notification type")
        if preference.frequency == Frequency.NEVER:
            return PreferenceDecision(False, "User set frequency to never")
        if self.in_quiet_hours(preference):
            return PreferenceDecision(False, "Within user quiet hours")
        return ALLOW

    def in_quiet_hours(self, preference: NotificationPreference) -> bool:
        """
        Inclusive time-of-day window check.

        A window whose start is after its end (crossing midnight) never matches.
        """
        start, end = preference.quiet_hours_start, preference.quiet_hours_end
        if start is None or end is None:
            return False
        now = self._clock().time().replace(microsecond=0)
        return start <= now <= end

    async def list_preferences(self, user_id: str) -> List[NotificationPreference]:
        return await self.storage.list_by_user(user_id)

    async def save_preferences(self, preferences: List[NotificationPreference]) -> int:
        count = await self.storage.upsert_many(preferences)
        logger.info(f"Saved {count} notification preference(s)")
        return count

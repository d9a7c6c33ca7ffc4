"""Tests for PreferenceService delivery policy evaluation."""

from datetime import datetime, time, timezone

import pytest

from notify_engine.models.notification import ChannelType, NotificationType
from notify_engine.models.preference import Frequency, NotificationPreference
from notify_engine.services.preference_service import PreferenceService

from conftest import FakeClock

USER = "U1"
TYPE = NotificationType.PAYMENT_FAILED
CHANNEL = ChannelType.EMAIL


def at(hour, minute=0, second=0):
    return FakeClock(datetime(2026, 3, 1, hour, minute, second, tzinfo=timezone.utc))


def preference(**fields):
    return NotificationPreference(user_id=USER, notification_type=TYPE, channel_type=CHANNEL, **fields)


@pytest.fixture
def service(preference_storage):
    return PreferenceService(preference_storage, clock=at(12))


async def test_no_preference_row_allows(service):
    decision = await service.check(USER, TYPE, CHANNEL)
    assert decision.allowed is True
    assert decision.reason is None


async def test_disabled_preference_blocks(service, preference_storage):
    await preference_storage.upsert_many([preference(enabled=False)])

    decision = await service.check(USER, TYPE, CHANNEL)

    assert decision.allowed is False
    assert decision.reason == "User disabled this notification type"


async def test_frequency_never_blocks(service, preference_storage):
    await preference_storage.upsert_many([preference(frequency=Frequency.NEVER)])

    decision = await service.check(USER, TYPE, CHANNEL)

    assert decision.allowed is False
    assert decision.reason == "User set frequency to never"


async def test_other_channel_preference_does_not_apply(service, preference_storage):
    await preference_storage.upsert_many([
        NotificationPreference(USER, TYPE, ChannelType.SMS, enabled=False)
    ])

    decision = await service.check(USER, TYPE, CHANNEL)

    assert decision.allowed is True


@pytest.mark.parametrize("hour,minute,second,blocked", [
    (21, 59, 59, False),
    (22, 0, 0, True),
    (22, 30, 0, True),
    (23, 0, 0, True),
    (23, 0, 1, False),
])
async def test_quiet_hours_window_is_inclusive(preference_storage, hour, minute, second, blocked):
    await preference_storage.upsert_many([
        preference(quiet_hours_start=time(22, 0), quiet_hours_end=time(23, 0))
    ])
    service = PreferenceService(preference_storage, clock=at(hour, minute, second))

    decision = await service.check(USER, TYPE, CHANNEL)

    assert decision.allowed is (not blocked)
    if blocked:
        assert decision.reason == "Within user quiet hours"


async def test_quiet_hours_crossing_midnight_never_match(preference_storage):
    await preference_storage.upsert_many([
        preference(quiet_hours_start=time(22, 0), quiet_hours_end=time(7, 0))
    ])

    for hour in (23, 3, 12):
        service = PreferenceService(preference_storage, clock=at(hour))
        assert (await service.check(USER, TYPE, CHANNEL)).allowed is True


async def test_settings_master_switch_blocks_before_rows(service, preference_storage):
    preference_storage.settings[USER] = {"enabled": False}

    decision = await service.check(USER, TYPE, CHANNEL)

    assert decision.allowed is False
    assert decision.reason == "User disabled all notifications"


async def test_settings_channel_switch_blocks_only_that_channel(service, preference_storage):
    preference_storage.settings[USER] = {"email_notifications_enabled": False}

    email = await service.check(USER, TYPE, ChannelType.EMAIL)
    in_app = await service.check(USER, TYPE, ChannelType.IN_APP)

    assert email.allowed is False
    assert email.reason == "User disabled email notifications"
    assert in_app.allowed is True


async def test_settings_type_switch_blocks(service, preference_storage):
    preference_storage.settings[USER] = {"payment_failed_enabled": False}

    decision = await service.check(USER, TYPE, CHANNEL)

    assert decision.allowed is False
    assert decision.reason == "User disabled payment_failed notifications"


async def test_settings_missing_keys_do_not_block(service, preference_storage):
    preference_storage.settings[USER] = {"enabled": True, "theme": "dark"}

    assert (await service.check(USER, TYPE, CHANNEL)).allowed is True


async def test_lookup_failure_fails_open(service, preference_storage):
    preference_storage.fail = True

    decision = await service.check(USER, TYPE, CHANNEL)

    assert decision.allowed is True


async def test_save_and_list_preferences(service):
    count = await service.save_preferences([preference(enabled=False)])

    assert count == 1
    saved = await service.list_preferences(USER)
    assert [p.enabled for p in saved] == [False]

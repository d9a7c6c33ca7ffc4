"""Shared fixtures: in-memory storages standing in for PostgreSQL."""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from notify_engine.models.channel import ChannelSettings
from notify_engine.models.delivery_log import DELIVERY_STATUS_RANK
from notify_engine.models.notification import ChannelType, NotificationType
from notify_engine.models.queue_item import QueueStatus
from notify_engine.models.template import NotificationTemplate
from notify_engine.notifications.base_sender import BaseSender, SendResult
from notify_engine.services.channel_dispatcher import ChannelDispatcher
from notify_engine.services.delivery_log_service import DeliveryLogService
from notify_engine.services.notification_service import NotificationService
from notify_engine.services.preference_service import PreferenceService
from notify_engine.services.queue_service import QueueService
from notify_engine.services.template_service import TemplateService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock returning timezone-aware datetimes."""

    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeTemplateStorage:
    def __init__(self):
        self.templates = {}
        self.lookups = 0

    async def get_active(self, template_key, channel_type):
        self.lookups += 1
        template = self.templates.get(template_key)
        if template and template.is_active and template.channel_type == channel_type:
            return template
        return None

    async def get_by_key(self, template_key):
        return self.templates.get(template_key)

    async def upsert(self, template):
        self.templates[template.template_key] = template
        return template

    async def deactivate(self, template_key):
        template = self.templates.get(template_key)
        if not template:
            return False
        template.is_active = False
        return True


class FakePreferenceStorage:
    def __init__(self):
        self.preferences = {}
        self.settings = {}
        self.fail = False

    async def get(self, user_id, notification_type, channel_type):
        if self.fail:
            raise ConnectionError("database unavailable")
        return self.preferences.get((user_id, notification_type, channel_type))

    async def list_by_user(self, user_id):
        return [p for (uid, _, _), p in self.preferences.items() if uid == user_id]

    async def upsert_many(self, preferences):
        for p in preferences:
            self.preferences[(p.user_id, p.notification_type, p.channel_type)] = p
        return len(preferences)

    async def get_notification_settings(self, user_id):
        if self.fail:
            raise ConnectionError("database unavailable")
        return self.settings.get(user_id, {})


class FakeQueueStorage:
    """Mirrors the conditional UPDATEs of QueueStorage; claim is serialized by a lock."""

    def __init__(self):
        self.items = {}
        self._lock = asyncio.Lock()
        self.fail_create = False

    async def create(self, item):
        if self.fail_create:
            raise ConnectionError("database unavailable")
        self.items[item.id] = replace(item)
        return replace(item)

    async def get_by_id(self, item_id):
        item = self.items.get(item_id)
        return replace(item) if item else None

    async def claim_due(self, limit, now):
        async with self._lock:
            due = sorted(
                (i for i in self.items.values()
                 if i.status == QueueStatus.PENDING and i.scheduled_at <= now),
                key=lambda i: i.scheduled_at,
            )[:limit]
            for item in due:
                item.status = QueueStatus.PROCESSING
                item.updated_at = now
            return [replace(i) for i in due]

    async def mark_sent(self, item_id, now):
        item = self.items.get(item_id)
        if not item or item.status != QueueStatus.PROCESSING:
            return None
        item.status = QueueStatus.SENT
        item.sent_at = now
        item.failed_reason = None
        return replace(item)

    async def mark_failed(self, item_id, reason, retryable, now,
                          retry_delay_seconds=0.0, retry_backoff=1.0):
        item = self.items.get(item_id)
        if not item or item.status != QueueStatus.PROCESSING:
            return None
        if retryable and item.retry_count + 1 < item.max_retries:
            delay = retry_delay_seconds * retry_backoff ** item.retry_count
            item.status = QueueStatus.PENDING
            item.retry_count += 1
            item.scheduled_at = now + timedelta(seconds=delay)
        else:
            item.status = QueueStatus.FAILED
        item.failed_reason = reason
        item.updated_at = now
        return replace(item)

    async def cancel(self, item_id, now):
        item = self.items.get(item_id)
        if not item or item.status != QueueStatus.PENDING:
            return False
        item.status = QueueStatus.CANCELLED
        return True

    async def list_items(self, user_id=None, status=None, limit=50, offset=0):
        items = [i for i in self.items.values()
                 if (not user_id or i.user_id == user_id) and (not status or i.status == status)]
        items.sort(key=lambda i: i.created_at, reverse=True)
        return [replace(i) for i in items[offset:offset + limit]], len(items)


class FakeDeliveryLogStorage:
    """Mirrors DeliveryLogStorage; each call yields once like a database round trip."""

    def __init__(self):
        self.entries = {}
        self.fail = False

    async def create(self, entry):
        if self.fail:
            raise ConnectionError("database unavailable")
        self.entries[entry.id] = entry
        return entry

    async def get_by_id(self, log_id):
        await asyncio.sleep(0)
        entry = self.entries.get(log_id)
        return replace(entry) if entry else None

    async def get_by_external_id(self, external_id):
        await asyncio.sleep(0)
        matches = [e for e in self.entries.values() if e.external_id == external_id]
        return replace(max(matches, key=lambda e: e.sent_at)) if matches else None

    async def append_lifecycle(self, log_id, event, delivered_at=None,
                               opened_at=None, clicked_at=None):
        await asyncio.sleep(0)
        entry = self.entries.get(log_id)
        if not entry:
            return None
        if DELIVERY_STATUS_RANK[event] > DELIVERY_STATUS_RANK[entry.status]:
            entry.status = event
        entry.delivered_at = entry.delivered_at or delivered_at
        entry.opened_at = entry.opened_at or opened_at
        entry.clicked_at = entry.clicked_at or clicked_at
        return replace(entry)

    async def list_entries(self, user_id=None, limit=50, offset=0):
        entries = [e for e in self.entries.values() if not user_id or e.user_id == user_id]
        entries.sort(key=lambda e: e.sent_at, reverse=True)
        return entries[offset:offset + limit], len(entries)


class FakeChannelStorage:
    def __init__(self):
        self.channels = {}
        self.lookups = 0

    async def get_by_type(self, channel_type):
        self.lookups += 1
        return self.channels.get(channel_type)

    async def set_enabled(self, channel_type, is_enabled):
        settings = self.channels.get(channel_type) or ChannelSettings(
            channel_type=channel_type, name=channel_type.value
        )
        settings.is_enabled = is_enabled
        self.channels[channel_type] = settings
        return settings


class RecordingSender(BaseSender):
    """Sender that records calls and returns queued results."""

    def __init__(self, channel_type=ChannelType.EMAIL, results=None):
        self.channel_type = channel_type
        self.results = list(results or [])
        self.calls = []

    async def send(self, request, content):
        self.calls.append((request, content))
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return SendResult(success=True, external_id=f"msg-{len(self.calls)}")


def make_template(notification_type=NotificationType.PAYMENT_FAILED,
                  channel_type=ChannelType.EMAIL, **fields):
    key = f"{notification_type.value}_{channel_type.value}"
    return NotificationTemplate(
        template_key=key,
        channel_type=channel_type,
        notification_type=notification_type,
        name=key,
        **fields,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def template_storage():
    return FakeTemplateStorage()


@pytest.fixture
def preference_storage():
    return FakePreferenceStorage()


@pytest.fixture
def queue_storage():
    return FakeQueueStorage()


@pytest.fixture
def log_storage():
    return FakeDeliveryLogStorage()


@pytest.fixture
def channel_storage():
    return FakeChannelStorage()


@pytest.fixture
def email_sender():
    return RecordingSender(ChannelType.EMAIL)


@pytest.fixture
def dispatcher(channel_storage, email_sender):
    return ChannelDispatcher(channel_storage=channel_storage,
                             senders={ChannelType.EMAIL: email_sender})


@pytest.fixture
def queue_service(queue_storage, clock):
    return QueueService(queue_storage, max_retries=3, clock=clock)


@pytest.fixture
def notification_service(template_storage, preference_storage, dispatcher,
                         queue_service, log_storage, clock):
    return NotificationService(
        preference_service=PreferenceService(preference_storage, clock=clock),
        template_service=TemplateService(template_storage),
        dispatcher=dispatcher,
        queue_service=queue_service,
        log_service=DeliveryLogService(log_storage),
        clock=clock,
    )

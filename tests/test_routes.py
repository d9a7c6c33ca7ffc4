"""HTTP surface tests with the engine replaced by in-memory services."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import jwt
import pytest
from fastapi.testclient import TestClient

from notify_engine.app import app
from notify_engine.config import Config
from notify_engine.models.delivery_log import DeliveryStatus
from notify_engine.services.delivery_log_service import DeliveryLogService

from conftest import NOW, make_template


def token(user_id="U1", is_admin=False):
    return jwt.encode({"user_id": user_id, "is_admin": is_admin}, Config.JWT_SECRET,
                      algorithm=Config.JWT_ALGORITHM)


def auth(user_id="U1", is_admin=False):
    return {"Authorization": f"Bearer {token(user_id, is_admin)}"}


@pytest.fixture
def engine(notification_service, queue_service, log_storage, dispatcher):
    engine = MagicMock()
    engine.notification_service = notification_service
    engine.queue_service = queue_service
    engine.delivery_log_service = DeliveryLogService(log_storage)
    engine.template_service = notification_service.template_service
    engine.preference_service = notification_service.preference_service
    engine.dispatcher = dispatcher
    engine.in_app_storage.list_by_user = AsyncMock(return_value=[])
    return engine


@pytest.fixture
def client(engine):
    with patch("notify_engine.routes.notifications.get_engine_service", return_value=engine):
        yield TestClient(app)


SEND_BODY = {
    "user_id": "U1",
    "recipient": "a@x.com",
    "type": "payment_failed",
    "channel_type": "email",
    "data": {"amount": "9.99"},
}


class TestAuth:

    def test_missing_header(self, client):
        assert client.post("/api/v1/notifications/send", json=SEND_BODY).status_code == 401

    def test_bad_signature(self, client):
        bad = jwt.encode({"user_id": "U1"}, "other-secret", algorithm="HS256")
        response = client.get("/api/v1/notifications/preferences",
                              headers={"Authorization": f"Bearer {bad}"})
        assert response.status_code == 401

    def test_admin_only_endpoints(self, client):
        response = client.put("/api/v1/notifications/channels/email",
                              json={"is_enabled": False}, headers=auth())
        assert response.status_code == 403


class TestSend:

    def test_send_success(self, client, template_storage):
        template_storage.templates["payment_failed_email"] = make_template(
            text_template="Your payment of {{amount}} failed"
        )

        response = client.post("/api/v1/notifications/send", json=SEND_BODY, headers=auth())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["notification_id"] == "msg-1"

    def test_send_rejects_unknown_type(self, client):
        response = client.post("/api/v1/notifications/send",
                               json={**SEND_BODY, "type": "newsletter"}, headers=auth())
        assert response.status_code == 422

    def test_send_scheduled_returns_queue_id(self, client, template_storage):
        template_storage.templates["payment_failed_email"] = make_template(text_template="x")
        body = {**SEND_BODY, "scheduled_at": (NOW + timedelta(hours=2)).isoformat()}

        response = client.post("/api/v1/notifications/send", json=body, headers=auth())

        assert response.json()["queue_id"] is not None

    def test_batch(self, client, template_storage):
        template_storage.templates["payment_failed_email"] = make_template(text_template="x")
        body = {"notifications": [SEND_BODY, {**SEND_BODY, "channel_type": "sms"}]}

        response = client.post("/api/v1/notifications/batch", json=body, headers=auth())

        data = response.json()
        assert response.status_code == 200
        assert data["total_sent"] + data["total_failed"] + data["total_scheduled"] == 2
        assert len(data["groups"]) == 2


class TestQueue:

    def schedule(self, client, template_storage, user_id="U1"):
        template_storage.templates["payment_failed_email"] = make_template(text_template="x")
        body = {**SEND_BODY, "user_id": user_id,
                "scheduled_at": (NOW + timedelta(hours=2)).isoformat()}
        return client.post("/api/v1/notifications/send", json=body, headers=auth()).json()["queue_id"]

    def test_list_and_get(self, client, template_storage):
        queue_id = self.schedule(client, template_storage)

        listing = client.get("/api/v1/notifications/queue", headers=auth()).json()
        item = client.get(f"/api/v1/notifications/queue/{queue_id}", headers=auth()).json()

        assert listing["total"] == 1
        assert item["status"] == "pending"

    def test_other_users_items_are_hidden(self, client, template_storage):
        queue_id = self.schedule(client, template_storage, user_id="U2")

        response = client.get(f"/api/v1/notifications/queue/{queue_id}", headers=auth("U1"))

        assert response.status_code == 404

    def test_cancel_then_conflict(self, client, template_storage):
        queue_id = self.schedule(client, template_storage)

        first = client.post(f"/api/v1/notifications/queue/{queue_id}/cancel", headers=auth())
        second = client.post(f"/api/v1/notifications/queue/{queue_id}/cancel", headers=auth())

        assert first.status_code == 200
        assert second.status_code == 409


class TestLog:

    def test_lifecycle_callback(self, client, template_storage, log_storage):
        template_storage.templates["payment_failed_email"] = make_template(text_template="x")
        client.post("/api/v1/notifications/send", json=SEND_BODY, headers=auth())
        [entry] = log_storage.entries.values()

        response = client.post(f"/api/v1/notifications/log/{entry.id}/events",
                               json={"event": "opened"}, headers=auth(is_admin=True))

        assert response.status_code == 200
        assert response.json()["status"] == DeliveryStatus.OPENED.value
        assert response.json()["opened_at"] is not None

    def test_callback_by_transport_message_id(self, client, template_storage):
        template_storage.templates["payment_failed_email"] = make_template(text_template="x")
        client.post("/api/v1/notifications/send", json=SEND_BODY, headers=auth())

        response = client.post("/api/v1/notifications/log/external/msg-1/events",
                               json={"event": "delivered"}, headers=auth(is_admin=True))
        missing = client.post("/api/v1/notifications/log/external/msg-404/events",
                              json={"event": "delivered"}, headers=auth(is_admin=True))

        assert response.status_code == 200
        assert response.json()["status"] == DeliveryStatus.DELIVERED.value
        assert missing.status_code == 404

    def test_callback_unknown_id(self, client):
        response = client.post(
            "/api/v1/notifications/log/00000000-0000-0000-0000-000000000000/events",
            json={"event": "delivered"}, headers=auth(is_admin=True),
        )
        assert response.status_code == 404

    def test_list_log_scoped_to_caller(self, client, template_storage):
        template_storage.templates["payment_failed_email"] = make_template(text_template="x")
        client.post("/api/v1/notifications/send", json=SEND_BODY, headers=auth())

        mine = client.get("/api/v1/notifications/log", headers=auth("U1")).json()
        theirs = client.get("/api/v1/notifications/log?user_id=U1", headers=auth("U2")).json()

        assert mine["total"] == 1
        assert theirs["total"] == 0


class TestPreferencesAndTemplates:

    def test_put_then_get_preferences(self, client):
        body = {"preferences": [{
            "notification_type": "payment_failed",
            "channel_type": "email",
            "enabled": True,
            "quiet_hours_start": "22:00:00",
            "quiet_hours_end": "23:00:00",
        }]}

        put = client.put("/api/v1/notifications/preferences", json=body, headers=auth())
        got = client.get("/api/v1/notifications/preferences", headers=auth()).json()

        assert put.json() == {"success": True, "updated": 1}
        assert got[0]["quiet_hours_start"] == "22:00:00"

    def test_put_template_invalidates_cache(self, client, template_storage, log_storage):
        template_storage.templates["payment_failed_email"] = make_template(text_template="old")
        client.post("/api/v1/notifications/send", json=SEND_BODY, headers=auth())

        response = client.put(
            "/api/v1/notifications/templates/payment_failed_email",
            json={"channel_type": "email", "notification_type": "payment_failed", "text_template": "new"},
            headers=auth(is_admin=True),
        )
        assert response.status_code == 200

        client.post("/api/v1/notifications/send", json=SEND_BODY, headers=auth())

        assert [e.content_preview for e in log_storage.entries.values()] == ["old", "new"]

    def test_put_template_key_mismatch(self, client):
        response = client.put(
            "/api/v1/notifications/templates/welcome_email",
            json={"channel_type": "email", "notification_type": "payment_failed"},
            headers=auth(is_admin=True),
        )
        assert response.status_code == 400

    def test_channel_switch(self, client, email_sender):
        response = client.put("/api/v1/notifications/channels/email",
                              json={"is_enabled": False}, headers=auth(is_admin=True))
        sent = client.post("/api/v1/notifications/send", json=SEND_BODY, headers=auth()).json()

        assert response.json()["is_enabled"] is False
        assert "disabled" in sent["message"]
        assert email_sender.calls == []


class TestHealth:

    def test_ready_reflects_database(self):
        engine = MagicMock()
        engine.check_database = AsyncMock(return_value=False)
        engine.scheduler_service.is_running = False

        with patch("notify_engine.routes.health.get_engine_service", return_value=engine):
            response = TestClient(app).get("/api/v1/health/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    def test_live(self):
        response = TestClient(app).get("/api/v1/health/live")
        assert response.json()["alive"] is True


def test_inbox_lists_current_users_feed(client, engine):
    response = client.get("/api/v1/notifications/inbox", headers=auth("U7"))

    assert response.status_code == 200
    assert response.json() == []
    engine.in_app_storage.list_by_user.assert_awaited_once_with("U7", 50)

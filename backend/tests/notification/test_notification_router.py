"""HTTP tests for the notification endpoints."""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from readyboard.core.config import settings
from readyboard.core.database import get_db
from readyboard.main import app
from readyboard.modules.notification.channels import DEMO_SIMULATED_ID, SMSChannel
from readyboard.modules.notification.dispatcher import DispatchResult
from readyboard.modules.notification.models import PushAudience
from readyboard.modules.notification.router import (
    get_push_service,
    get_ready_alert_service,
    get_sms_channel,
)
from readyboard.modules.notification.schemas import ReadyAlertResponse
from readyboard.modules.transport.service import EventNotFoundError

API = settings.API_V1_PREFIX


@pytest.fixture
def ready_service():
    service = MagicMock()
    service.mark_ready_and_notify = AsyncMock(
        return_value=ReadyAlertResponse(sms_sent=True, message_id="SM123", push_sent=2)
    )
    return service


@pytest.fixture
def push_service():
    service = MagicMock()
    service.subscribe = AsyncMock()
    service.unsubscribe = AsyncMock(return_value=True)
    service.send = AsyncMock(return_value=DispatchResult(sent=3, failed=1, total=4))
    return service


@pytest.fixture
def client(ready_service, push_service):
    app.dependency_overrides[get_ready_alert_service] = lambda: ready_service
    app.dependency_overrides[get_push_service] = lambda: push_service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestReadyEndpoints:

    def test_send_ready_sms_accepts_camel_case_event_id(self, client, ready_service):
        event_id = uuid.uuid4()

        response = client.post(f"{API}/send-ready-sms", json={"eventId": str(event_id)})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["sms_sent"] is True
        assert body["message_id"] == "SM123"
        assert body["push_sent"] == 2
        ready_service.mark_ready_and_notify.assert_awaited_once_with(event_id)

    def test_send_ready_sms_without_event_id_is_400(self, client, ready_service):
        response = client.post(f"{API}/send-ready-sms", json={})

        assert response.status_code == 400
        ready_service.mark_ready_and_notify.assert_not_awaited()

    def test_mark_ready_path_variant(self, client, ready_service):
        event_id = uuid.uuid4()

        response = client.post(f"{API}/events/{event_id}/ready")

        assert response.status_code == 200
        ready_service.mark_ready_and_notify.assert_awaited_once_with(event_id)

    def test_unknown_event_is_404(self, client, ready_service):
        ready_service.mark_ready_and_notify.side_effect = EventNotFoundError("Event not found")

        response = client.post(f"{API}/events/{uuid.uuid4()}/ready")

        assert response.status_code == 404
        assert response.json()["detail"] == "Event not found"

    def test_malformed_event_id_is_400(self, client):
        response = client.post(f"{API}/send-ready-sms", json={"eventId": "not-a-uuid"})

        assert response.status_code == 400


class TestPushEndpoints:

    def test_subscribe_with_view_type(self, client, push_service):
        response = client.post(
            f"{API}/push/subscribe",
            json={
                "subscription": {
                    "endpoint": "https://push.example.com/sub/1",
                    "keys": {"p256dh": "key", "auth": "secret"},
                },
                "viewType": "admin",
            },
            headers={"User-Agent": "BoardTablet/1.0"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        request, = push_service.subscribe.await_args.args
        assert request.audience == PushAudience.ADMIN
        assert push_service.subscribe.await_args.kwargs["user_agent"] == "BoardTablet/1.0"

    def test_subscribe_defaults_to_floor(self, client, push_service):
        client.post(
            f"{API}/push/subscribe",
            json={
                "subscription": {
                    "endpoint": "https://push.example.com/sub/2",
                    "keys": {"p256dh": "key", "auth": "secret"},
                },
            },
        )

        request, = push_service.subscribe.await_args.args
        assert request.audience == PushAudience.FLOOR

    def test_subscribe_without_keys_is_400(self, client, push_service):
        response = client.post(
            f"{API}/push/subscribe",
            json={"subscription": {"endpoint": "https://push.example.com/sub/3"}},
        )

        assert response.status_code == 400
        push_service.subscribe.assert_not_awaited()

    def test_unsubscribe(self, client, push_service):
        response = client.request(
            "DELETE",
            f"{API}/push/subscribe",
            json={"endpoint": "https://push.example.com/sub/1"},
        )

        assert response.status_code == 200
        push_service.unsubscribe.assert_awaited_once_with("https://push.example.com/sub/1")

    def test_send_reports_counts(self, client):
        response = client.post(
            f"{API}/push/send",
            json={"title": "Heads up", "body": "Van is early"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "sent": 3, "failed": 1, "total": 4}

    def test_send_without_title_is_400(self, client, push_service):
        response = client.post(f"{API}/push/send", json={"body": "Van is early"})

        assert response.status_code == 400
        push_service.send.assert_not_awaited()


class TestAuditLogEndpoint:

    def test_lists_logs_with_filters(self, client):
        event_id = uuid.uuid4()
        log = SimpleNamespace(
            id=uuid.uuid4(),
            event_id=event_id,
            channel="sms",
            recipient="+15551234567",
            message="Rose Park (Room 12) is ready for pickup!",
            status="sent",
            error_message=None,
            created_at=datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc),
        )

        async def fake_db():
            yield MagicMock()

        app.dependency_overrides[get_db] = fake_db
        with patch(
            "readyboard.modules.notification.router.NotificationLogRepository"
        ) as repo_cls:
            repo_cls.return_value.list_logs = AsyncMock(return_value=([log], 1))
            response = client.get(
                f"{API}/notifications/logs",
                params={"event_id": str(event_id), "channel": "sms", "limit": 10},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["limit"] == 10
        assert body["logs"][0]["recipient"] == "+15551234567"
        repo_cls.return_value.list_logs.assert_awaited_once_with(
            event_id=event_id, channel="sms", limit=10, offset=0
        )


class TestSmsSelfTest:

    def test_uses_demo_phone(self, client):
        channel = SMSChannel(
            account_sid="AC0000",
            auth_token="secret",
            from_number="+15550000000",
            mode="simulated",
        )
        app.dependency_overrides[get_sms_channel] = lambda: channel

        with patch.object(settings, "DEMO_FAMILY_PHONE", "555-123-4567"):
            response = client.get(f"{API}/sms/test")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message_id"] == DEMO_SIMULATED_ID
        assert body["debug"]["demo_phone_set"] is True
        assert body["debug"]["mode"] == "simulated"

    def test_without_demo_phone_reports_invalid_number(self, client):
        app.dependency_overrides[get_sms_channel] = lambda: SMSChannel(mode="simulated")

        with patch.object(settings, "DEMO_FAMILY_PHONE", None):
            response = client.get(f"{API}/sms/test")

        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Invalid phone number"
        assert body["debug"]["demo_phone_set"] is False

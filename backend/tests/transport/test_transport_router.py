"""HTTP tests for the event endpoints."""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from readyboard.core.config import settings
from readyboard.main import app
from readyboard.modules.notification import tasks
from readyboard.modules.transport.router import get_transport_service
from readyboard.modules.transport.service import (
    EventNotFoundError,
    InvalidEventStatusError,
    ResidentNotFoundError,
)

API = settings.API_V1_PREFIX


def make_event(status: str = "scheduled", override=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        resident_id=uuid.uuid4(),
        pickup_time=datetime(2026, 10, 19, 14, 30, tzinfo=timezone.utc),
        event_type="family_pickup",
        purpose=None,
        status=status,
        notes=None,
        family_phone_override=override,
        created_at=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
        updated_at=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
        resident=SimpleNamespace(full_name="Rose Park", room_number="12", family_phone="555-123-4567"),
        recipient_phone=override or "555-123-4567",
    )


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def client(service):
    app.dependency_overrides[get_transport_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestListEvents:

    def test_events_are_flattened_with_resident(self, client, service):
        event = make_event(override="555-999-0000")
        service.list_todays_events = AsyncMock(return_value=[event])

        response = client.get(f"{API}/events")

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 1
        assert body[0]["id"] == str(event.id)
        assert body[0]["resident_name"] == "Rose Park"
        assert body[0]["room_number"] == "12"
        assert body[0]["family_phone"] == "555-999-0000"


class TestCreateEvent:

    def test_create_returns_201_and_queues_broadcast(self, client, service):
        event = make_event()
        service.create_event = AsyncMock(return_value=event)

        with patch.object(tasks.broadcast_new_event_task, "delay") as delay:
            response = client.post(
                f"{API}/events",
                json={"resident_id": str(event.resident_id), "pickup_time": "2026-10-19T10:30:00"},
            )

        assert response.status_code == 201
        assert response.json()["status"] == "scheduled"
        delay.assert_called_once_with(str(event.id))

    def test_broker_failure_does_not_fail_the_request(self, client, service):
        event = make_event()
        service.create_event = AsyncMock(return_value=event)

        with patch.object(tasks.broadcast_new_event_task, "delay", side_effect=ConnectionError("broker down")):
            response = client.post(
                f"{API}/events",
                json={"resident_id": str(event.resident_id), "pickup_time": "2026-10-19T10:30:00"},
            )

        assert response.status_code == 201

    def test_unknown_resident_is_404(self, client, service):
        service.create_event = AsyncMock(side_effect=ResidentNotFoundError("Resident not found"))

        with patch.object(tasks.broadcast_new_event_task, "delay") as delay:
            response = client.post(
                f"{API}/events",
                json={"resident_id": str(uuid.uuid4()), "pickup_time": "2026-10-19T10:30:00"},
            )

        assert response.status_code == 404
        delay.assert_not_called()

    def test_missing_pickup_time_is_400(self, client, service):
        service.create_event = AsyncMock()

        response = client.post(f"{API}/events", json={"resident_id": str(uuid.uuid4())})

        assert response.status_code == 400
        service.create_event.assert_not_awaited()


class TestUpdateStatus:

    def test_unknown_status_is_400(self, client, service):
        service.update_status = AsyncMock(
            side_effect=InvalidEventStatusError("Invalid status. Must be one of: scheduled, ready")
        )

        response = client.patch(f"{API}/events/{uuid.uuid4()}", json={"status": "teleported"})

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid status")

    def test_missing_event_is_404(self, client, service):
        service.update_status = AsyncMock(side_effect=EventNotFoundError("Event not found"))

        response = client.patch(f"{API}/events/{uuid.uuid4()}", json={"status": "ready"})

        assert response.status_code == 404

    def test_status_change(self, client, service):
        event = make_event(status="prepping")
        service.update_status = AsyncMock(return_value=event)

        response = client.patch(f"{API}/events/{event.id}", json={"status": "prepping"})

        assert response.status_code == 200
        assert response.json()["status"] == "prepping"
        service.update_status.assert_awaited_once_with(event.id, "prepping")


class TestGetAndDelete:

    def test_get_missing_event_is_404(self, client, service):
        service.get_event = AsyncMock(side_effect=EventNotFoundError("Event not found"))

        response = client.get(f"{API}/events/{uuid.uuid4()}")

        assert response.status_code == 404

    def test_delete_event(self, client, service):
        service.delete_event = AsyncMock(return_value=True)
        event_id = uuid.uuid4()

        response = client.delete(f"{API}/events/{event_id}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "deleted": True}
        service.delete_event.assert_awaited_once_with(event_id)

    def test_reset(self, client, service):
        service.reset_demo_data = AsyncMock(return_value=4)

        response = client.delete(f"{API}/events")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Demo data reset", "deleted": 4}

"""Transport event service.

CRUD over the board's events. Every committed mutation is announced on the
change feed so that open boards re-fetch.
"""

import logging
import uuid
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.core.config import settings
from readyboard.core.logging import log_info
from readyboard.core.redis import redis_client
from readyboard.modules.resident.repository import ResidentRepository
from readyboard.modules.transport.feed import ChangeFeed, ChangeType
from readyboard.modules.transport.models import EventStatus, TransportEvent
from readyboard.modules.transport.repository import TransportEventRepository
from readyboard.modules.transport.schemas import TransportEventCreate

logger = logging.getLogger(__name__)

VALID_STATUSES = [s.value for s in EventStatus]


class EventNotFoundError(Exception):
    """Raised when a transport event is not found."""
    pass


class ResidentNotFoundError(Exception):
    """Raised when the referenced resident is not found."""
    pass


class InvalidEventStatusError(Exception):
    """Raised when a status value is not one of the known statuses."""
    pass


def facility_timezone() -> ZoneInfo:
    return ZoneInfo(settings.FACILITY_TIMEZONE)


def facility_day_bounds(
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> tuple[datetime, datetime]:
    """Return the UTC bounds [start, end) of the facility's current day.

    Args:
        now: Reference instant (defaults to the current time)
        tz: Facility timezone (defaults to FACILITY_TIMEZONE)
    """
    tz = tz or facility_timezone()
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    local_day = now.astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def validate_status(status: str) -> EventStatus:
    """Parse a status string or raise InvalidEventStatusError."""
    try:
        return EventStatus(status)
    except ValueError:
        raise InvalidEventStatusError(
            f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}"
        )


class TransportEventService:
    """Service for transport event management."""

    def __init__(
        self,
        session: AsyncSession,
        feed: Optional[ChangeFeed] = None,
    ):
        self.session = session
        self.event_repo = TransportEventRepository(session)
        self.resident_repo = ResidentRepository(session)
        self.feed = feed or ChangeFeed(redis_client)

    async def list_todays_events(
        self,
        now: Optional[datetime] = None,
    ) -> list[TransportEvent]:
        """Get today's non-cancelled events in pickup order."""
        start, end = facility_day_bounds(now)
        return await self.event_repo.get_events_between(start, end)

    async def get_event(self, event_id: uuid.UUID) -> TransportEvent:
        event = await self.event_repo.get_event_by_id(event_id)
        if not event:
            raise EventNotFoundError("Event not found")
        return event

    async def create_event(self, request: TransportEventCreate) -> TransportEvent:
        """Create a scheduled event for an existing resident."""
        resident = await self.resident_repo.get_resident_by_id(request.resident_id)
        if not resident:
            raise ResidentNotFoundError("Resident not found")

        pickup_time = request.pickup_time
        if pickup_time.tzinfo is None:
            pickup_time = pickup_time.replace(tzinfo=facility_timezone())

        event = await self.event_repo.create_event(
            resident_id=request.resident_id,
            pickup_time=pickup_time,
            event_type=request.event_type.value,
            purpose=request.purpose,
            notes=request.notes,
            family_phone_override=request.family_phone_override,
        )

        log_info(
            logger,
            "Transport event created",
            event_id=str(event.id),
            room_number=resident.room_number,
        )
        await self.feed.publish(ChangeType.INSERT, event.id)
        return event

    async def update_status(self, event_id: uuid.UUID, status: str) -> TransportEvent:
        """Move an event to ``status``. Redundant transitions are allowed."""
        new_status = validate_status(status)

        event = await self.event_repo.update_status(event_id, new_status.value)
        if not event:
            raise EventNotFoundError("Event not found")

        log_info(
            logger,
            "Transport event status updated",
            event_id=str(event_id),
            status=new_status.value,
        )
        await self.feed.publish(ChangeType.UPDATE, event_id)
        return event

    async def delete_event(self, event_id: uuid.UUID) -> bool:
        deleted = await self.event_repo.delete_event(event_id)
        if deleted:
            await self.feed.publish(ChangeType.DELETE, event_id)
        return deleted

    async def reset_demo_data(self) -> int:
        """Delete every event."""
        deleted = await self.event_repo.delete_all_events()
        log_info(logger, "Demo data reset", deleted=deleted)
        await self.feed.publish(ChangeType.DELETE)
        return deleted

"""Repository for transport event database operations."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.modules.transport.models import TransportEvent, EventStatus


class TransportEventRepository:
    """Repository for transport events."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_events_between(
        self,
        start: datetime,
        end: datetime,
        include_cancelled: bool = False,
    ) -> list[TransportEvent]:
        """Get events with a pickup time in [start, end), ordered by pickup time."""
        query = select(TransportEvent).where(
            TransportEvent.pickup_time >= start,
            TransportEvent.pickup_time < end,
        )

        if not include_cancelled:
            query = query.where(TransportEvent.status != EventStatus.CANCELLED.value)

        query = query.order_by(TransportEvent.pickup_time.asc())

        result = await self.session.execute(query)
        return list(result.scalars().unique().all())

    async def get_event_by_id(self, event_id: uuid.UUID) -> Optional[TransportEvent]:
        """Get event by ID, with its resident loaded."""
        result = await self.session.execute(
            select(TransportEvent).where(TransportEvent.id == event_id)
        )
        return result.scalar_one_or_none()

    async def create_event(
        self,
        resident_id: uuid.UUID,
        pickup_time: datetime,
        event_type: str,
        purpose: Optional[str] = None,
        notes: Optional[str] = None,
        family_phone_override: Optional[str] = None,
    ) -> TransportEvent:
        """Create a new event in the scheduled state."""
        event = TransportEvent(
            resident_id=resident_id,
            pickup_time=pickup_time,
            event_type=event_type,
            purpose=purpose or None,
            notes=notes or None,
            family_phone_override=family_phone_override or None,
            status=EventStatus.SCHEDULED.value,
        )
        self.session.add(event)
        await self.session.commit()
        return await self.get_event_by_id(event.id)

    async def update_status(
        self,
        event_id: uuid.UUID,
        status: str,
    ) -> Optional[TransportEvent]:
        """Set an event's status. Last write wins."""
        event = await self.get_event_by_id(event_id)
        if not event:
            return None

        event.status = status
        await self.session.commit()
        await self.session.refresh(event)
        return event

    async def delete_event(self, event_id: uuid.UUID) -> bool:
        """Delete one event."""
        result = await self.session.execute(
            delete(TransportEvent).where(TransportEvent.id == event_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete_all_events(self) -> int:
        """Delete every event. Demo reset only."""
        result = await self.session.execute(delete(TransportEvent))
        await self.session.commit()
        return result.rowcount

"""Pydantic schemas for transport events."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from readyboard.modules.transport.models import EventType, TransportEvent


class TransportEventCreate(BaseModel):
    """Request schema for creating a transport event."""

    resident_id: uuid.UUID
    pickup_time: datetime
    event_type: EventType = EventType.FAMILY_PICKUP
    purpose: Optional[str] = None
    notes: Optional[str] = None
    family_phone_override: Optional[str] = Field(None, max_length=50)


class EventStatusUpdate(BaseModel):
    """Request schema for a status change.

    Kept as a plain string so an unknown status is reported with the list of
    valid values instead of a generic validation error.
    """

    status: str = Field(..., min_length=1)


class TransportEventResponse(BaseModel):
    """Response schema for a transport event row."""

    id: uuid.UUID
    resident_id: uuid.UUID
    pickup_time: datetime
    event_type: str
    purpose: Optional[str] = None
    status: str
    notes: Optional[str] = None
    family_phone_override: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EventWithResidentResponse(TransportEventResponse):
    """Transport event flattened with its resident's display fields.

    ``family_phone`` is the phone the family would be texted on: the event
    override when present, else the resident's number on file.
    """

    resident_name: str
    room_number: str
    family_phone: Optional[str] = None

    @classmethod
    def from_event(cls, event: TransportEvent) -> "EventWithResidentResponse":
        return cls(
            id=event.id,
            resident_id=event.resident_id,
            pickup_time=event.pickup_time,
            event_type=event.event_type,
            purpose=event.purpose,
            status=event.status,
            notes=event.notes,
            family_phone_override=event.family_phone_override,
            created_at=event.created_at,
            updated_at=event.updated_at,
            resident_name=event.resident.full_name,
            room_number=event.resident.room_number,
            family_phone=event.recipient_phone,
        )


class ResetResponse(BaseModel):
    """Response for the demo reset."""

    success: bool = True
    message: str = "Demo data reset"
    deleted: int = 0

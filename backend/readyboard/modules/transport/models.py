"""Transport event models.

A transport event is one scheduled pickup of a resident. Its status is moved
by operators through scheduled -> prep_alert -> prepping -> ready -> departed,
with cancelled reachable from any state before departed.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from readyboard.core.database import Base
from readyboard.modules.resident.models import Resident


class EventStatus(str, Enum):
    """Transport event lifecycle status."""
    SCHEDULED = "scheduled"
    PREP_ALERT = "prep_alert"
    PREPPING = "prepping"
    READY = "ready"
    DEPARTED = "departed"
    CANCELLED = "cancelled"


class EventType(str, Enum):
    """Kinds of transport event."""
    FAMILY_PICKUP = "family_pickup"
    DOCTOR_APPOINTMENT = "doctor_appointment"
    FACILITY_VAN = "facility_van"
    OTHER = "other"


class TransportEvent(Base):
    """A scheduled resident pickup."""

    __tablename__ = "transport_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    resident_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("residents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    pickup_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    event_type: Mapped[str] = mapped_column(
        String(50), default=EventType.FAMILY_PICKUP.value, nullable=False
    )
    purpose: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    family_phone_override: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=EventStatus.SCHEDULED.value, nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    resident: Mapped[Resident] = relationship(lazy="joined", innerjoin=True)

    __table_args__ = (
        Index("ix_transport_events_pickup_status", "pickup_time", "status"),
    )

    def __repr__(self) -> str:
        return f"<TransportEvent(id={self.id}, status={self.status})>"

    @property
    def recipient_phone(self) -> Optional[str]:
        """Event override if set, else the resident's family phone."""
        if self.family_phone_override:
            return self.family_phone_override
        return self.resident.family_phone if self.resident else None

"""Repository for resident database operations."""

import uuid
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.modules.resident.models import Resident


class ResidentRepository:
    """Repository for residents."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_residents(self) -> list[Resident]:
        """Get active residents ordered by room number."""
        result = await self.session.execute(
            select(Resident)
            .where(Resident.is_active == True)  # noqa: E712
            .order_by(Resident.room_number.asc())
        )
        return list(result.scalars().all())

    async def get_resident_by_id(self, resident_id: uuid.UUID) -> Optional[Resident]:
        """Get resident by ID."""
        result = await self.session.execute(
            select(Resident).where(Resident.id == resident_id)
        )
        return result.scalar_one_or_none()

    async def count_residents(self) -> int:
        """Count all residents. Used as a cheap database ping."""
        result = await self.session.execute(
            select(func.count()).select_from(Resident)
        )
        return result.scalar() or 0

    async def create_resident(
        self,
        full_name: str,
        room_number: str,
        family_phone: Optional[str] = None,
        dietary_notes: Optional[str] = None,
    ) -> Resident:
        """Create a resident."""
        resident = Resident(
            full_name=full_name,
            room_number=room_number,
            family_phone=family_phone,
            dietary_notes=dietary_notes,
            is_active=True,
        )
        self.session.add(resident)
        await self.session.commit()
        await self.session.refresh(resident)
        return resident

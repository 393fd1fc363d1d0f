"""Pydantic schemas for residents."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ResidentResponse(BaseModel):
    """Response schema for a resident."""

    id: uuid.UUID
    full_name: str
    room_number: str
    family_phone: Optional[str] = None
    dietary_notes: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

"""Resident module."""

from readyboard.modules.resident.router import router as resident_router
from readyboard.modules.resident.models import Resident

__all__ = [
    "resident_router",
    "Resident",
]

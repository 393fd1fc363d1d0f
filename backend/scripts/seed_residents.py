"""Seed demo residents for the ready board.

Residents whose room number already exists are skipped, so the script can be
run more than once.

Run with: python -m scripts.seed_residents
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import select

from readyboard.core.database import async_session_maker
from readyboard.modules.resident.models import Resident
from readyboard.modules.resident.repository import ResidentRepository


RESIDENTS_DATA = [
    {"full_name": "Margaret Thompson", "room_number": "101", "family_phone": "555-201-0101"},
    {"full_name": "Harold Jenkins", "room_number": "104", "family_phone": "555-201-0104"},
    {"full_name": "Dorothy Alvarez", "room_number": "112", "family_phone": None,
     "dietary_notes": "Low sodium"},
    {"full_name": "Walter Kim", "room_number": "118", "family_phone": "555-201-0118"},
    {"full_name": "Eleanor Brooks", "room_number": "203", "family_phone": "555-201-0203",
     "dietary_notes": "Diabetic"},
    {"full_name": "Frank Delgado", "room_number": "210", "family_phone": None},
]


async def seed_residents():
    """Insert demo residents that are not already present."""
    print(f"\n{'='*60}")
    print("Seeding Residents")
    print(f"{'='*60}")

    async with async_session_maker() as session:
        result = await session.execute(select(Resident.room_number))
        existing_rooms = set(result.scalars().all())

        repo = ResidentRepository(session)
        created = 0
        for data in RESIDENTS_DATA:
            if data["room_number"] in existing_rooms:
                print(f"  Skipping room {data['room_number']} (exists)")
                continue
            resident = await repo.create_resident(**data)
            created += 1
            print(f"  Created {resident.full_name} (Room {resident.room_number})")

    print(f"\nDone: {created} residents created.")


if __name__ == "__main__":
    asyncio.run(seed_residents())

"""FastAPI router for residents and the database keepalive."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.core.database import get_db
from readyboard.modules.resident.repository import ResidentRepository
from readyboard.modules.resident.schemas import ResidentResponse

router = APIRouter(tags=["residents"])


def get_resident_repository(db: AsyncSession = Depends(get_db)) -> ResidentRepository:
    """Dependency to get resident repository."""
    return ResidentRepository(db)


@router.get("/residents", response_model=list[ResidentResponse])
async def list_residents(
    repo: ResidentRepository = Depends(get_resident_repository),
):
    """Return all active residents, for the event form's picker."""
    return await repo.get_active_residents()


@router.get("/keepalive")
async def keepalive(
    repo: ResidentRepository = Depends(get_resident_repository),
):
    """Ping the database so hosted free-tier instances stay awake."""
    try:
        await repo.count_residents()
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e)},
        )

    return {
        "success": True,
        "message": "Database pinged successfully",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

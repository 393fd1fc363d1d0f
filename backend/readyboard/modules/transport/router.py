"""FastAPI router for transport events."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.core.database import get_db
from readyboard.core.logging import log_warning
from readyboard.modules.transport.schemas import (
    EventStatusUpdate,
    EventWithResidentResponse,
    ResetResponse,
    TransportEventCreate,
)
from readyboard.modules.transport.service import (
    EventNotFoundError,
    InvalidEventStatusError,
    ResidentNotFoundError,
    TransportEventService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def get_transport_service(db: AsyncSession = Depends(get_db)) -> TransportEventService:
    """Dependency to get transport event service."""
    return TransportEventService(db)


def _queue_new_event_broadcast(event_id: uuid.UUID) -> None:
    from readyboard.modules.notification.tasks import broadcast_new_event_task

    try:
        broadcast_new_event_task.delay(str(event_id))
    except Exception as e:
        # The event is already committed; a lost broadcast only skips one push
        log_warning(
            logger,
            "Failed to queue new event broadcast",
            event_id=str(event_id),
            error=str(e),
        )


@router.get("", response_model=list[EventWithResidentResponse])
async def list_events(
    service: TransportEventService = Depends(get_transport_service),
):
    """Today's events with resident details, by pickup time."""
    events = await service.list_todays_events()
    return [EventWithResidentResponse.from_event(event) for event in events]


@router.post("", response_model=EventWithResidentResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: TransportEventCreate,
    service: TransportEventService = Depends(get_transport_service),
):
    """Schedule a new event and announce it to subscribed devices."""
    try:
        event = await service.create_event(request)
    except ResidentNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    _queue_new_event_broadcast(event.id)
    return EventWithResidentResponse.from_event(event)


@router.delete("", response_model=ResetResponse)
async def reset_events(
    service: TransportEventService = Depends(get_transport_service),
):
    """Delete every event (demo reset)."""
    deleted = await service.reset_demo_data()
    return ResetResponse(deleted=deleted)


@router.get("/{event_id}", response_model=EventWithResidentResponse)
async def get_event(
    event_id: uuid.UUID,
    service: TransportEventService = Depends(get_transport_service),
):
    try:
        event = await service.get_event(event_id)
    except EventNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    return EventWithResidentResponse.from_event(event)


@router.patch("/{event_id}", response_model=EventWithResidentResponse)
async def update_event_status(
    event_id: uuid.UUID,
    request: EventStatusUpdate,
    service: TransportEventService = Depends(get_transport_service),
):
    """Change an event's status without notifying anyone."""
    try:
        event = await service.update_status(event_id, request.status)
    except InvalidEventStatusError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except EventNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    return EventWithResidentResponse.from_event(event)


@router.delete("/{event_id}")
async def delete_event(
    event_id: uuid.UUID,
    service: TransportEventService = Depends(get_transport_service),
):
    """Delete one event. Deleting an unknown id is not an error."""
    deleted = await service.delete_event(event_id)
    return {"success": True, "deleted": deleted}

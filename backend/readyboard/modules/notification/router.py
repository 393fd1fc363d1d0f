"""FastAPI router for ready alerts, push subscriptions and the audit log."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.core.config import settings
from readyboard.core.database import get_db
from readyboard.modules.notification.channels import SMSChannel
from readyboard.modules.notification.models import NotificationChannel
from readyboard.modules.notification.repository import NotificationLogRepository
from readyboard.modules.notification.schemas import (
    NotificationLogInfo,
    NotificationLogListResponse,
    PushDebugResponse,
    PushSendRequest,
    PushSendResponse,
    PushSubscribeRequest,
    PushUnsubscribeRequest,
    ReadyAlertRequest,
    ReadyAlertResponse,
    SimpleSuccessResponse,
    SmsTestResponse,
)
from readyboard.modules.notification.service import PushService, ReadyAlertService
from readyboard.modules.transport.service import EventNotFoundError

router = APIRouter(tags=["notifications"])


def get_ready_alert_service(db: AsyncSession = Depends(get_db)) -> ReadyAlertService:
    """Dependency to get the ready alert service."""
    return ReadyAlertService(db)


def get_push_service(db: AsyncSession = Depends(get_db)) -> PushService:
    """Dependency to get the push service."""
    return PushService(db)


def get_sms_channel() -> SMSChannel:
    """Dependency to get the SMS channel."""
    return SMSChannel()


# ==================== Ready alert ====================

async def _run_ready_alert(
    service: ReadyAlertService,
    event_id: uuid.UUID,
) -> ReadyAlertResponse:
    try:
        return await service.mark_ready_and_notify(event_id)
    except EventNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.post("/events/{event_id}/ready", response_model=ReadyAlertResponse)
async def mark_event_ready(
    event_id: uuid.UUID,
    service: ReadyAlertService = Depends(get_ready_alert_service),
):
    """Mark an event ready, text the family and push the admin devices."""
    return await _run_ready_alert(service, event_id)


@router.post("/send-ready-sms", response_model=ReadyAlertResponse)
async def send_ready_sms(
    request: ReadyAlertRequest,
    service: ReadyAlertService = Depends(get_ready_alert_service),
):
    """Same as ``POST /events/{id}/ready``, for the board's "Ready" button."""
    return await _run_ready_alert(service, request.event_id)


# ==================== Push ====================

@router.post("/push/subscribe", response_model=SimpleSuccessResponse)
async def subscribe_push(
    body: PushSubscribeRequest,
    request: Request,
    service: PushService = Depends(get_push_service),
):
    """Save a push subscription for this device."""
    await service.subscribe(body, user_agent=request.headers.get("user-agent"))
    return SimpleSuccessResponse()


@router.delete("/push/subscribe", response_model=SimpleSuccessResponse)
async def unsubscribe_push(
    body: PushUnsubscribeRequest,
    service: PushService = Depends(get_push_service),
):
    """Remove a push subscription."""
    await service.unsubscribe(body.endpoint)
    return SimpleSuccessResponse()


@router.post("/push/send", response_model=PushSendResponse)
async def send_push(
    body: PushSendRequest,
    service: PushService = Depends(get_push_service),
):
    """Send a push notification to every subscribed device."""
    result = await service.send(body)
    return PushSendResponse(sent=result.sent, failed=result.failed, total=result.total)


@router.get("/push/debug", response_model=PushDebugResponse)
async def push_debug(
    service: PushService = Depends(get_push_service),
):
    """Show push configuration and the current subscriptions."""
    return await service.debug()


# ==================== Audit log ====================

@router.get("/notifications/logs", response_model=NotificationLogListResponse)
async def list_notification_logs(
    event_id: Optional[uuid.UUID] = Query(None),
    channel: Optional[NotificationChannel] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List notification attempts, newest first."""
    logs, total = await NotificationLogRepository(db).list_logs(
        event_id=event_id,
        channel=channel.value if channel else None,
        limit=limit,
        offset=offset,
    )
    return NotificationLogListResponse(
        logs=[NotificationLogInfo.model_validate(log) for log in logs],
        total=total,
        limit=limit,
        offset=offset,
    )


# ==================== SMS self-test ====================

@router.get("/sms/test", response_model=SmsTestResponse)
async def test_sms(
    channel: SMSChannel = Depends(get_sms_channel),
):
    """Run the SMS gateway against DEMO_FAMILY_PHONE with a test resident."""
    result = await channel.send_ready_notification(
        phone=settings.DEMO_FAMILY_PHONE or "",
        resident_name="Test Resident",
        room_number="101",
    )
    return SmsTestResponse(
        success=result.success,
        message_id=result.message_id,
        error=result.error,
        debug={
            "demo_phone_set": bool(settings.DEMO_FAMILY_PHONE),
            **channel.status(),
        },
    )

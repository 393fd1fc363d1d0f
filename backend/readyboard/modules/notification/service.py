"""Notification services.

``ReadyAlertService`` is the ready-alert use case: text the family, flip the
event to ready, push the admin devices, and record every attempt in the
audit log. ``PushService`` covers subscription management and ad-hoc pushes.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.core.config import settings
from readyboard.core.logging import log_error, log_info, mask_phone
from readyboard.core.metrics import READY_ALERTS_TOTAL
from readyboard.modules.notification.channels import (
    ChannelDeliveryResult,
    PushChannel,
    PushPayload,
    SMSChannel,
)
from readyboard.modules.notification.dispatcher import DispatchResult, PushDispatcher
from readyboard.modules.notification.models import (
    NotificationChannel,
    NotificationStatus,
    PushAudience,
)
from readyboard.modules.notification.repository import (
    NotificationLogRepository,
    PushSubscriptionRepository,
)
from readyboard.modules.notification.schemas import (
    PushConfigStatus,
    PushDebugResponse,
    PushSendRequest,
    PushSubscribeRequest,
    PushSubscriptionPreview,
    ReadyAlertResponse,
)
from readyboard.modules.transport.models import EventStatus, TransportEvent
from readyboard.modules.transport.repository import TransportEventRepository
from readyboard.modules.transport.service import EventNotFoundError, TransportEventService

logger = logging.getLogger(__name__)

NO_PHONE_REASON = "no phone number configured"


def ready_log_message(resident_name: str, room_number: str) -> str:
    return f"{resident_name} (Room {room_number}) is ready for pickup!"


def format_pickup_time(pickup_time: datetime, tz: Optional[ZoneInfo] = None) -> str:
    """Format a pickup time as ``9:05 AM`` in the facility timezone."""
    tz = tz or ZoneInfo(settings.FACILITY_TIMEZONE)
    local = pickup_time.astimezone(tz)
    hour = local.strftime("%I").lstrip("0") or "12"
    return f"{hour}:{local.strftime('%M %p')}"


def build_ready_push(event: TransportEvent) -> PushPayload:
    resident = event.resident
    return PushPayload(
        title=f"{resident.full_name} is READY!",
        body=f"Room {resident.room_number} • Waiting in the lobby",
        tag=str(event.id),
        data={"eventId": str(event.id), "audience": PushAudience.ADMIN.value},
    )


def build_new_event_push(event: TransportEvent, tz: Optional[ZoneInfo] = None) -> PushPayload:
    resident = event.resident
    return PushPayload(
        title=f"New Pickup: {resident.full_name}",
        body=f"Room {resident.room_number} • {format_pickup_time(event.pickup_time, tz)}",
        tag=str(event.id),
        data={"eventId": str(event.id)},
    )


class AuditLogWriter:
    """Fire-and-forget writer for the notification audit log.

    A failed write is logged and rolled back; it never propagates, so it
    cannot undo a status transition that already committed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.log_repo = NotificationLogRepository(session)

    async def append(
        self,
        event_id: uuid.UUID,
        channel: NotificationChannel,
        recipient: str,
        message: Optional[str],
        status: NotificationStatus,
        error_message: Optional[str] = None,
    ) -> bool:
        try:
            await self.log_repo.append_log(
                event_id=event_id,
                channel=channel.value,
                recipient=recipient,
                message=message,
                status=status.value,
                error_message=error_message,
            )
            return True
        except SQLAlchemyError as e:
            await self.session.rollback()
            log_error(
                logger,
                "Failed to write notification log",
                exception=e,
                event_id=str(event_id),
                channel=channel.value,
            )
            return False


class ReadyAlertService:
    """Mark an event ready and notify everyone who cares."""

    def __init__(
        self,
        session: AsyncSession,
        sms_channel: Optional[SMSChannel] = None,
        dispatcher: Optional[PushDispatcher] = None,
        transport_service: Optional[TransportEventService] = None,
        demo_phone: Optional[str] = None,
    ):
        self.session = session
        self.event_repo = TransportEventRepository(session)
        self.audit = AuditLogWriter(session)
        self.sms_channel = sms_channel or SMSChannel()
        self.dispatcher = dispatcher or PushDispatcher(session)
        self.transport_service = transport_service or TransportEventService(session)
        self.demo_phone = demo_phone if demo_phone is not None else settings.DEMO_FAMILY_PHONE

    def resolve_recipient_phone(self, event: TransportEvent) -> Optional[str]:
        """Demo override, then the event's override, then the resident's phone."""
        if self.demo_phone:
            return self.demo_phone
        if event.family_phone_override:
            return event.family_phone_override
        return event.resident.family_phone if event.resident else None

    async def mark_ready_and_notify(self, event_id: uuid.UUID) -> ReadyAlertResponse:
        """Run the ready alert for one event.

        Only an unknown event raises (EventNotFoundError). Channel failures
        are reported in the response, and the status transition happens
        whether or not any notification went out.
        """
        event = await self.event_repo.get_event_by_id(event_id)
        if not event:
            raise EventNotFoundError("Event not found")

        # Read everything needed from the event up front; a failed audit write
        # rolls the session back and expires it.
        resident_name = event.resident.full_name
        room_number = event.resident.room_number
        ready_push = build_ready_push(event)
        response = ReadyAlertResponse()

        phone = self.resolve_recipient_phone(event)
        sms_result: Optional[ChannelDeliveryResult] = None
        if phone:
            sms_result = await self.sms_channel.send_ready_notification(
                phone=phone,
                resident_name=resident_name,
                room_number=room_number,
            )
            await self.audit.append(
                event_id=event_id,
                channel=NotificationChannel.SMS,
                recipient=phone,
                message=ready_log_message(resident_name, room_number),
                status=NotificationStatus.SENT if sms_result.success else NotificationStatus.FAILED,
                error_message=sms_result.error,
            )
            response.sms_sent = sms_result.success
            response.message_id = sms_result.message_id
            response.error = sms_result.error
        else:
            response.reason = NO_PHONE_REASON

        await self.transport_service.update_status(event_id, EventStatus.READY.value)

        push_result = await self.dispatcher.send_to_audience(
            ready_push,
            audience=PushAudience.ADMIN.value,
        )
        response.push_sent = push_result.sent
        response.push_failed = push_result.failed

        if push_result.sent > 0:
            await self.audit.append(
                event_id=event_id,
                channel=NotificationChannel.PUSH,
                recipient=f"{push_result.sent} admin devices",
                message=f"{resident_name} (Room {room_number}) is ready!",
                status=NotificationStatus.SENT,
            )

        if sms_result is None:
            sms_outcome = "skipped"
        else:
            sms_outcome = "sent" if sms_result.success else "failed"
        READY_ALERTS_TOTAL.labels(sms_outcome=sms_outcome).inc()

        log_info(
            logger,
            "Ready alert processed",
            event_id=str(event_id),
            sms_outcome=sms_outcome,
            phone=mask_phone(phone),
            push_sent=push_result.sent,
            push_failed=push_result.failed,
        )
        return response


class PushService:
    """Push subscription management and ad-hoc pushes."""

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: Optional[PushDispatcher] = None,
    ):
        self.session = session
        self.subscription_repo = PushSubscriptionRepository(session)
        self.audit = AuditLogWriter(session)
        self.dispatcher = dispatcher or PushDispatcher(session, PushChannel())

    async def subscribe(
        self,
        request: PushSubscribeRequest,
        user_agent: Optional[str] = None,
    ) -> None:
        """Save a device subscription. Re-subscribing overwrites keys and audience."""
        await self.subscription_repo.upsert_subscription(
            endpoint=request.subscription.endpoint,
            p256dh=request.subscription.keys.p256dh,
            auth=request.subscription.keys.auth,
            audience=request.audience.value,
            user_agent=user_agent,
        )

    async def unsubscribe(self, endpoint: str) -> bool:
        return await self.subscription_repo.delete_subscription(endpoint)

    async def send(self, request: PushSendRequest) -> DispatchResult:
        """Push to every device; audit it when tied to an event and delivered."""
        data = {"eventId": str(request.event_id) if request.event_id else None}
        if request.audience:
            data["audience"] = request.audience.value

        payload = PushPayload(
            title=request.title,
            body=request.body,
            tag=request.tag,
            data=data,
        )
        result = await self.dispatcher.send_to_audience(payload)

        if request.event_id and result.sent > 0:
            await self.audit.append(
                event_id=request.event_id,
                channel=NotificationChannel.PUSH,
                recipient=f"{result.sent} devices",
                message=f"{request.title}: {request.body}",
                status=NotificationStatus.SENT,
            )
        return result

    async def broadcast_new_event(self, event: TransportEvent) -> DispatchResult:
        """Announce a newly scheduled pickup to every device."""
        return await self.dispatcher.send_to_audience(build_new_event_push(event))

    async def debug(self) -> PushDebugResponse:
        subscriptions = await self.subscription_repo.list_recent()
        public_key = settings.VAPID_PUBLIC_KEY

        return PushDebugResponse(
            config=PushConfigStatus(
                vapid_public_key_set=bool(public_key),
                vapid_private_key_set=bool(settings.VAPID_PRIVATE_KEY),
                vapid_subject_set=bool(settings.VAPID_SUBJECT),
                vapid_public_key_preview=public_key[:20] + "..." if public_key else None,
            ),
            subscriptions=[
                PushSubscriptionPreview(
                    id=sub.id,
                    audience=sub.audience,
                    user_agent=sub.user_agent[:50] if sub.user_agent else None,
                    created_at=sub.created_at,
                    endpoint_preview=sub.endpoint[:60] + "...",
                )
                for sub in subscriptions
            ],
            subscription_count=len(subscriptions),
        )

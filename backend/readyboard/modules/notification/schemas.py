"""Pydantic schemas for notifications.

Request bodies accept the camelCase keys sent by the board's browser client
(``eventId``, ``viewType``) as well as snake_case.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from readyboard.modules.notification.models import PushAudience


# ==================== Ready alert ====================

class ReadyAlertRequest(BaseModel):
    """Request to mark an event ready and notify."""
    event_id: uuid.UUID = Field(..., alias="eventId")

    class Config:
        populate_by_name = True


class ReadyAlertResponse(BaseModel):
    """Combined outcome of a ready alert. Partial failures are still a success."""
    success: bool = True
    sms_sent: bool = False
    message_id: Optional[str] = None
    error: Optional[str] = None
    reason: Optional[str] = None
    push_sent: int = 0
    push_failed: int = 0


# ==================== Push ====================

class PushKeys(BaseModel):
    """Encryption keys issued by the browser."""
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscriptionInfo(BaseModel):
    """Browser PushSubscription.toJSON() shape."""
    endpoint: str = Field(..., min_length=1)
    keys: PushKeys


class PushSubscribeRequest(BaseModel):
    """Request to save a push subscription."""
    subscription: PushSubscriptionInfo
    audience: PushAudience = Field(PushAudience.FLOOR, alias="viewType")

    class Config:
        populate_by_name = True


class PushUnsubscribeRequest(BaseModel):
    """Request to remove a push subscription."""
    endpoint: str = Field(..., min_length=1)


class PushSendRequest(BaseModel):
    """Ad-hoc push to every subscribed device."""
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    tag: Optional[str] = None
    audience: Optional[PushAudience] = Field(None, alias="viewType")
    event_id: Optional[uuid.UUID] = Field(None, alias="eventId")

    class Config:
        populate_by_name = True


class PushSendResponse(BaseModel):
    """Fan-out counts."""
    success: bool = True
    sent: int
    failed: int
    total: int


class PushConfigStatus(BaseModel):
    """Which VAPID settings are present."""
    vapid_public_key_set: bool
    vapid_private_key_set: bool
    vapid_subject_set: bool
    vapid_public_key_preview: Optional[str] = None


class PushSubscriptionPreview(BaseModel):
    """Subscription summary safe to show in a debug view."""
    id: uuid.UUID
    audience: str
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None
    endpoint_preview: str


class PushDebugResponse(BaseModel):
    """Push configuration and current subscriptions."""
    config: PushConfigStatus
    subscriptions: list[PushSubscriptionPreview]
    subscription_count: int


class SimpleSuccessResponse(BaseModel):
    success: bool = True


# ==================== Audit log ====================

class NotificationLogInfo(BaseModel):
    """One audit log entry."""
    id: uuid.UUID
    event_id: Optional[uuid.UUID] = None
    channel: str
    recipient: str
    message: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationLogListResponse(BaseModel):
    """Page of audit log entries."""
    logs: list[NotificationLogInfo]
    total: int
    limit: int
    offset: int


# ==================== SMS self-test ====================

class SmsTestResponse(BaseModel):
    """Outcome of the SMS gateway self-test."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    debug: dict

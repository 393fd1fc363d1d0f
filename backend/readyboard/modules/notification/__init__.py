"""Notification module: SMS, web push fan-out and the audit log."""

from readyboard.modules.notification.router import router as notification_router
from readyboard.modules.notification.service import ReadyAlertService, PushService
from readyboard.modules.notification.models import (
    NotificationLog,
    PushSubscription,
    NotificationChannel,
    NotificationStatus,
    PushAudience,
)

__all__ = [
    "notification_router",
    "ReadyAlertService",
    "PushService",
    "NotificationLog",
    "PushSubscription",
    "NotificationChannel",
    "NotificationStatus",
    "PushAudience",
]

"""Celery tasks for notification delivery."""

import asyncio
import logging
import uuid

from readyboard.core.celery_app import celery_app
from readyboard.core.database import async_session_maker, engine
from readyboard.core.logging import log_info, log_warning

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=0,
    name="notification.broadcast_new_event",
)
def broadcast_new_event_task(self, event_id: str) -> dict:
    """Push a "new pickup" notification for a freshly created event.

    Not retried: a late duplicate "new pickup" is worse than a missed one.

    Args:
        event_id: Transport event UUID string
    """
    return asyncio.run(_broadcast_new_event(uuid.UUID(event_id)))


async def _broadcast_new_event(event_id: uuid.UUID) -> dict:
    """Async implementation of the new-event broadcast."""
    from readyboard.modules.notification.service import PushService
    from readyboard.modules.transport.repository import TransportEventRepository

    try:
        async with async_session_maker() as session:
            event = await TransportEventRepository(session).get_event_by_id(event_id)
            if not event:
                log_warning(logger, "Event vanished before broadcast", event_id=str(event_id))
                return {"event_id": str(event_id), "sent": 0, "failed": 0, "total": 0}

            result = await PushService(session).broadcast_new_event(event)
    finally:
        # Each task runs in a fresh event loop; pooled connections cannot outlive it
        await engine.dispose()

    log_info(
        logger,
        "New event broadcast",
        event_id=str(event_id),
        sent=result.sent,
        failed=result.failed,
    )
    return {
        "event_id": str(event_id),
        "sent": result.sent,
        "failed": result.failed,
        "total": result.total,
    }

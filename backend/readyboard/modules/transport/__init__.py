"""Transport module: the board's scheduled events and their change feed."""

from readyboard.modules.transport.router import router as transport_router
from readyboard.modules.transport.service import TransportEventService
from readyboard.modules.transport.models import TransportEvent, EventStatus, EventType
from readyboard.modules.transport.feed import ChangeFeed, ChangeType

__all__ = [
    "transport_router",
    "TransportEventService",
    "TransportEvent",
    "EventStatus",
    "EventType",
    "ChangeFeed",
    "ChangeType",
]

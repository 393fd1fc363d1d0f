"""Change feed for the transport events table.

Every committed mutation of ``transport_events`` publishes a small message on
a Redis pub/sub channel. Listeners must treat the message as a hint only and
re-fetch the board; the payload carries no guarantee of completeness.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from readyboard.core.config import settings
from readyboard.core.logging import log_warning

logger = logging.getLogger(__name__)


class ChangeType(str, Enum):
    """Kind of table mutation."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeFeed:
    """Publish and listen for transport event changes over Redis pub/sub."""

    def __init__(
        self,
        client: redis.Redis,
        channel: Optional[str] = None,
    ):
        self.client = client
        self.channel = channel or settings.CHANGE_FEED_CHANNEL

    async def publish(
        self,
        change_type: ChangeType,
        event_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """Announce a change. Failures are logged, never raised.

        The store is the source of truth, so a lost announcement only delays
        listeners until their next poll.
        """
        message = json.dumps({
            "table": "transport_events",
            "type": change_type.value,
            "id": str(event_id) if event_id else None,
            "at": datetime.now(timezone.utc).isoformat(),
        })

        try:
            await self.client.publish(self.channel, message)
            return True
        except RedisError as e:
            log_warning(
                logger,
                "Change feed publish failed",
                channel=self.channel,
                change_type=change_type.value,
                error=str(e),
            )
            return False

    async def listen(self, timeout: float) -> AsyncIterator[Optional[dict]]:
        """Yield change messages as they arrive.

        Yields ``None`` when ``timeout`` seconds pass without a message, so
        callers can fall back to polling on a quiet or broken feed.
        """
        pubsub = self.client.pubsub()
        await pubsub.subscribe(self.channel)
        logger.info("Subscribed to change feed", extra={"channel": self.channel})

        try:
            while True:
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=timeout,
                )
                if message is None:
                    yield None
                    continue

                yield self._decode(message.get("data"))
        finally:
            try:
                await pubsub.unsubscribe(self.channel)
            except RedisError as e:
                log_warning(logger, "Change feed unsubscribe failed", error=str(e))
            await pubsub.aclose()

    @staticmethod
    def _decode(data) -> dict:
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8", errors="replace")
        try:
            decoded = json.loads(data)
        except (TypeError, ValueError):
            return {"raw": data}
        return decoded if isinstance(decoded, dict) else {"raw": decoded}

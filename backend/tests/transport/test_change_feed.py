"""Tests for the Redis change feed."""

import json
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from readyboard.modules.transport.feed import ChangeFeed, ChangeType


class FakePubSub:
    """Pub/sub stub replaying scripted ``get_message`` results."""

    def __init__(self, messages):
        self.messages = list(messages)
        self.subscribe = AsyncMock()
        self.unsubscribe = AsyncMock()
        self.aclose = AsyncMock()

    async def get_message(self, ignore_subscribe_messages=False, timeout=0.0):
        if not self.messages:
            return None
        return self.messages.pop(0)


class TestPublish:

    @pytest.mark.asyncio
    async def test_publishes_json_message(self):
        client = MagicMock()
        client.publish = AsyncMock(return_value=1)
        feed = ChangeFeed(client, channel="test_changes")
        event_id = uuid.uuid4()

        assert await feed.publish(ChangeType.UPDATE, event_id) is True

        channel, message = client.publish.await_args.args
        assert channel == "test_changes"
        decoded = json.loads(message)
        assert decoded["type"] == "UPDATE"
        assert decoded["id"] == str(event_id)
        assert decoded["table"] == "transport_events"

    @pytest.mark.asyncio
    async def test_redis_failure_is_not_raised(self):
        client = MagicMock()
        client.publish = AsyncMock(side_effect=RedisConnectionError("redis down"))
        feed = ChangeFeed(client, channel="test_changes")

        assert await feed.publish(ChangeType.DELETE) is False


class TestListen:

    @pytest.mark.asyncio
    async def test_yields_messages_and_none_on_timeout(self):
        pubsub = FakePubSub([
            {"type": "message", "data": json.dumps({"type": "INSERT", "id": "abc"})},
            None,
            {"type": "message", "data": "not json"},
        ])
        client = MagicMock()
        client.pubsub.return_value = pubsub
        feed = ChangeFeed(client, channel="test_changes")

        received = []
        listener = feed.listen(timeout=0.01)
        async for message in listener:
            received.append(message)
            if len(received) == 3:
                break
        await listener.aclose()

        assert received == [{"type": "INSERT", "id": "abc"}, None, {"raw": "not json"}]
        pubsub.subscribe.assert_awaited_once_with("test_changes")
        pubsub.unsubscribe.assert_awaited_once_with("test_changes")
        pubsub.aclose.assert_awaited_once()

    def test_decode_bytes(self):
        assert ChangeFeed._decode(b'{"type": "DELETE"}') == {"type": "DELETE"}
        assert ChangeFeed._decode("[1, 2]") == {"raw": [1, 2]}

"""Tests for the board watcher and client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from readyboard.modules.monitor.client import BoardAPIError, BoardClient
from readyboard.modules.monitor.detector import ChangeDetector, SignalKind
from readyboard.modules.monitor.watcher import BoardWatcher


def event(event_id: str, status: str) -> dict:
    return {"id": event_id, "status": status, "resident_name": "Rose Park", "room_number": "12"}


def make_watcher(snapshots, feed=None, poll_interval=0.01):
    client = MagicMock()
    client.fetch_todays_events = AsyncMock(side_effect=list(snapshots))
    alerts = MagicMock()
    alerts.new_event = AsyncMock()
    alerts.ready = AsyncMock()
    watcher = BoardWatcher(
        client=client,
        alerts=alerts,
        detector=ChangeDetector(max_tracked_ids=100),
        feed=feed,
        poll_interval=poll_interval,
    )
    return watcher, client, alerts


class TestRefresh:

    @pytest.mark.asyncio
    async def test_baseline_then_new_then_ready(self):
        watcher, _, alerts = make_watcher([
            [],
            [event("a", "scheduled")],
            [event("a", "ready")],
        ])

        assert await watcher.refresh() == []
        alerts.new_event.assert_not_awaited()

        signals = await watcher.refresh()
        assert [s.kind for s in signals] == [SignalKind.NEW]
        alerts.new_event.assert_awaited_once_with(event("a", "scheduled"))

        signals = await watcher.refresh()
        assert [s.kind for s in signals] == [SignalKind.READY]
        alerts.ready.assert_awaited_once_with(event("a", "ready"))

    @pytest.mark.asyncio
    async def test_fetch_failure_keeps_previous_state(self):
        watcher, _, alerts = make_watcher([
            [event("a", "prepping")],
            BoardAPIError("Failed to fetch events: 503"),
            [event("a", "ready")],
        ])

        await watcher.refresh()
        assert await watcher.refresh() == []
        assert watcher.last_error == "Failed to fetch events: 503"
        assert watcher.events == [event("a", "prepping")]

        await watcher.refresh()
        alerts.ready.assert_awaited_once()
        assert watcher.last_error is None

    @pytest.mark.asyncio
    async def test_refresh_consumes_signal_holders(self):
        watcher, _, alerts = make_watcher([
            [event("a", "prepping")],
            [event("a", "ready")],
            [event("a", "ready")],
            [event("a", "departed"), event("b", "scheduled")],
        ])

        for _ in range(4):
            await watcher.refresh()

        alerts.ready.assert_awaited_once_with(event("a", "ready"))
        alerts.new_event.assert_awaited_once_with(event("b", "scheduled"))
        assert watcher.detector.take_ready_event() is None
        assert watcher.detector.take_new_event() is None


class FakeFeed:
    """Feed yielding scripted items; an exception instance is raised."""

    def __init__(self, script):
        self.script = list(script)
        self.listens = 0

    async def listen(self, timeout):
        self.listens += 1
        while self.script:
            item = self.script.pop(0)
            if isinstance(item, Exception):
                raise item
            yield item
        while True:
            await asyncio.sleep(timeout)
            yield None


class TestRun:

    @pytest.mark.asyncio
    async def test_polls_without_feed(self):
        snapshots = [[], [event("a", "scheduled")], [event("a", "ready")]]
        watcher, client, alerts = make_watcher(snapshots + [[event("a", "ready")]] * 10)

        async def stop_when_ready(*args, **kwargs):
            watcher.stop()

        alerts.ready.side_effect = stop_when_ready
        await asyncio.wait_for(watcher.run(), timeout=2.0)

        alerts.new_event.assert_awaited_once()
        alerts.ready.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refreshes_on_feed_messages(self):
        feed = FakeFeed([{"type": "INSERT"}, {"type": "UPDATE"}])
        watcher, client, alerts = make_watcher(
            [[event("a", "prepping")], [event("a", "prepping"), event("b", "scheduled")], [event("a", "ready")]]
            + [[event("a", "ready")]] * 10,
            feed=feed,
            poll_interval=5.0,
        )

        async def stop_when_ready(*args, **kwargs):
            watcher.stop()

        alerts.ready.side_effect = stop_when_ready
        await asyncio.wait_for(watcher.run(), timeout=2.0)

        alerts.new_event.assert_awaited_once_with(event("b", "scheduled"))
        alerts.ready.assert_awaited_once_with(event("a", "ready"))
        assert client.fetch_todays_events.await_count == 3

    @pytest.mark.asyncio
    async def test_lost_feed_falls_back_to_poll_and_rebaselines(self):
        feed = FakeFeed([RedisConnectionError("redis down")])
        watcher, client, alerts = make_watcher(
            [[event("a", "prepping")], [event("a", "ready")]] + [[event("a", "ready")]] * 50,
            feed=feed,
            poll_interval=0.01,
        )

        async def stop_after_reconnect():
            while feed.listens < 2:
                await asyncio.sleep(0.005)
            watcher.stop()

        await asyncio.wait_for(
            asyncio.gather(watcher.run(), stop_after_reconnect()),
            timeout=2.0,
        )

        # The refresh after the outage is a fresh baseline
        alerts.ready.assert_not_awaited()
        assert client.fetch_todays_events.await_count >= 2


class TestBoardClient:

    @pytest.mark.asyncio
    async def test_fetches_events_list(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/events"
            return httpx.Response(200, json=[event("a", "ready")])

        client = BoardClient(
            base_url="http://board.test/api/v1/",
            transport=httpx.MockTransport(handler),
        )

        assert await client.fetch_todays_events() == [event("a", "ready")]

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        client = BoardClient(
            base_url="http://board.test/api/v1",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )

        with pytest.raises(BoardAPIError):
            await client.fetch_todays_events()

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = BoardClient(
            base_url="http://board.test/api/v1",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(BoardAPIError):
            await client.fetch_todays_events()

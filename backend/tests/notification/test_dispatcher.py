"""Tests for the push fan-out dispatcher.

**Validates: concurrent fan-out, gone-subscription pruning, aggregate counts**
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import given, settings, strategies as st

from readyboard.modules.notification.channels import PushDeliveryResult, PushPayload
from readyboard.modules.notification.dispatcher import PushDispatcher


PAYLOAD = PushPayload(title="Rose Park is READY!", body="Room 12")


class FakePushChannel:
    """Push channel returning a scripted outcome per endpoint."""

    def __init__(self, outcomes: dict[str, str], delay: float = 0.0):
        self.outcomes = outcomes
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.sent_to: list[str] = []

    async def send(self, subscription, payload) -> PushDeliveryResult:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        endpoint = subscription.endpoint
        self.sent_to.append(endpoint)
        outcome = self.outcomes[endpoint]
        if outcome == "ok":
            return PushDeliveryResult(success=True, endpoint=endpoint, status_code=201)
        if outcome == "gone":
            return PushDeliveryResult(success=False, endpoint=endpoint, gone=True, status_code=410)
        return PushDeliveryResult(success=False, endpoint=endpoint, status_code=500, error="boom")


def make_subscriptions(endpoints: list[str]) -> list[SimpleNamespace]:
    return [SimpleNamespace(endpoint=e, p256dh="k", auth="a") for e in endpoints]


def make_dispatcher(outcomes: dict[str, str], delay: float = 0.0):
    channel = FakePushChannel(outcomes, delay=delay)
    dispatcher = PushDispatcher(session=MagicMock(), channel=channel)
    dispatcher.subscription_repo = MagicMock()
    dispatcher.subscription_repo.list_subscriptions = AsyncMock(
        return_value=make_subscriptions(list(outcomes))
    )
    dispatcher.subscription_repo.delete_subscription = AsyncMock(return_value=True)
    return dispatcher, channel


class TestPushDispatcher:

    @pytest.mark.asyncio
    async def test_mixed_outcomes_are_counted_and_only_gone_is_pruned(self):
        dispatcher, _ = make_dispatcher({
            "https://push/ok": "ok",
            "https://push/gone": "gone",
            "https://push/flaky": "fail",
        })

        result = await dispatcher.send_to_audience(PAYLOAD)

        assert result.sent == 1
        assert result.failed == 2
        assert result.total == 3
        assert result.pruned == 1
        dispatcher.subscription_repo.delete_subscription.assert_awaited_once_with("https://push/gone")

    @pytest.mark.asyncio
    async def test_no_subscriptions_returns_zero_counts(self):
        dispatcher, channel = make_dispatcher({})

        result = await dispatcher.send_to_audience(PAYLOAD)

        assert (result.sent, result.failed, result.total, result.pruned) == (0, 0, 0, 0)
        assert channel.sent_to == []

    @pytest.mark.asyncio
    async def test_audience_filter_is_passed_to_the_store(self):
        dispatcher, _ = make_dispatcher({"https://push/admin": "ok"})

        await dispatcher.send_to_audience(PAYLOAD, audience="admin")

        dispatcher.subscription_repo.list_subscriptions.assert_awaited_once_with("admin")

    @pytest.mark.asyncio
    async def test_subscriptions_are_read_fresh_on_every_call(self):
        dispatcher, _ = make_dispatcher({"https://push/1": "ok"})

        await dispatcher.send_to_audience(PAYLOAD)
        await dispatcher.send_to_audience(PAYLOAD)

        assert dispatcher.subscription_repo.list_subscriptions.await_count == 2

    @pytest.mark.asyncio
    async def test_sends_run_concurrently(self):
        outcomes = {f"https://push/{i}": "ok" for i in range(5)}
        dispatcher, channel = make_dispatcher(outcomes, delay=0.01)

        result = await dispatcher.send_to_audience(PAYLOAD)

        assert result.sent == 5
        assert channel.max_in_flight == 5

    @pytest.mark.asyncio
    async def test_failures_do_not_block_other_deliveries(self):
        outcomes = {
            "https://push/a": "fail",
            "https://push/b": "gone",
            "https://push/c": "ok",
            "https://push/d": "fail",
        }
        dispatcher, channel = make_dispatcher(outcomes)

        result = await dispatcher.send_to_audience(PAYLOAD)

        assert sorted(channel.sent_to) == sorted(outcomes)
        assert result.sent == 1


class TestDispatchCountsProperty:
    """For any mix of outcomes: sent + failed == total and pruned == gone."""

    @given(outcomes=st.lists(st.sampled_from(["ok", "gone", "fail"]), min_size=0, max_size=20))
    @settings(max_examples=100)
    def test_counts_add_up(self, outcomes: list[str]):
        scripted = {f"https://push/{i}": o for i, o in enumerate(outcomes)}
        dispatcher, _ = make_dispatcher(scripted)

        result = asyncio.run(dispatcher.send_to_audience(PAYLOAD))

        assert result.total == len(outcomes)
        assert result.sent + result.failed == result.total
        assert result.sent == outcomes.count("ok")
        assert result.pruned == outcomes.count("gone")
        assert dispatcher.subscription_repo.delete_subscription.await_count == outcomes.count("gone")

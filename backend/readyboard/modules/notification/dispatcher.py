"""Push fan-out.

Sends one payload to every subscription of an audience at once. Individual
failures never fail the fan-out; subscriptions the push service reports gone
are removed from the store.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.core.logging import log_info, log_warning, mask_endpoint
from readyboard.core.metrics import (
    PUSH_DELIVERIES_TOTAL,
    PUSH_FANOUT_DURATION_SECONDS,
    PUSH_SUBSCRIPTIONS_PRUNED_TOTAL,
)
from readyboard.modules.notification.channels import (
    PushChannel,
    PushDeliveryResult,
    PushPayload,
)
from readyboard.modules.notification.repository import PushSubscriptionRepository

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Aggregate outcome of one fan-out."""
    sent: int = 0
    failed: int = 0
    total: int = 0
    pruned: int = 0


class PushDispatcher:
    """Deliver push payloads to every device in an audience."""

    def __init__(
        self,
        session: AsyncSession,
        channel: Optional[PushChannel] = None,
    ):
        self.subscription_repo = PushSubscriptionRepository(session)
        self.channel = channel or PushChannel()

    async def send_to_audience(
        self,
        payload: PushPayload,
        audience: Optional[str] = None,
    ) -> DispatchResult:
        """Send ``payload`` to ``audience`` (``None`` means every device).

        Subscriptions are read fresh on every call.
        """
        subscriptions = await self.subscription_repo.list_subscriptions(audience)
        result = DispatchResult(total=len(subscriptions))
        if not subscriptions:
            return result

        audience_label = audience or "all"
        start_time = time.perf_counter()

        outcomes: list[PushDeliveryResult] = await asyncio.gather(
            *(self.channel.send(sub, payload) for sub in subscriptions)
        )

        PUSH_FANOUT_DURATION_SECONDS.labels(audience=audience_label).observe(
            time.perf_counter() - start_time
        )

        # The session is not safe for concurrent use, so pruning waits until
        # every send has settled.
        for outcome in outcomes:
            if outcome.success:
                result.sent += 1
                PUSH_DELIVERIES_TOTAL.labels(audience=audience_label, outcome="sent").inc()
                continue

            result.failed += 1
            if outcome.gone:
                await self.subscription_repo.delete_subscription(outcome.endpoint)
                result.pruned += 1
                PUSH_SUBSCRIPTIONS_PRUNED_TOTAL.inc()
                PUSH_DELIVERIES_TOTAL.labels(audience=audience_label, outcome="gone").inc()
            else:
                PUSH_DELIVERIES_TOTAL.labels(audience=audience_label, outcome="failed").inc()

            log_warning(
                logger,
                "Push delivery failed",
                endpoint=mask_endpoint(outcome.endpoint),
                gone=outcome.gone,
                error=outcome.error,
            )

        log_info(
            logger,
            "Push fan-out finished",
            audience=audience_label,
            sent=result.sent,
            failed=result.failed,
            total=result.total,
            pruned=result.pruned,
        )
        return result

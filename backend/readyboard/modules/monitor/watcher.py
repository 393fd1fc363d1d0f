"""Board watcher: keep a live copy of today's board and alert on changes."""

import asyncio
import logging
from typing import Optional

from redis.exceptions import RedisError

from readyboard.core.config import settings
from readyboard.core.logging import log_info, log_warning
from readyboard.modules.monitor.alerts import AlertService
from readyboard.modules.monitor.client import BoardAPIError, BoardClient
from readyboard.modules.monitor.detector import ChangeDetector, DetectorSignal, SignalKind
from readyboard.modules.transport.feed import ChangeFeed

logger = logging.getLogger(__name__)


class BoardWatcher:
    """Re-fetch the board on every feed message and on a poll interval.

    The detector is owned by this watcher. Feed messages are only a hint to
    re-fetch; their payload is not trusted.
    """

    def __init__(
        self,
        client: BoardClient,
        alerts: AlertService,
        detector: Optional[ChangeDetector] = None,
        feed: Optional[ChangeFeed] = None,
        poll_interval: Optional[float] = None,
    ):
        self.client = client
        self.alerts = alerts
        self.detector = detector or ChangeDetector()
        self.feed = feed
        self.poll_interval = poll_interval or settings.BOARD_POLL_INTERVAL_SECONDS
        self.events: list[dict] = []
        self.last_error: Optional[str] = None
        self._stopped = asyncio.Event()

    async def refresh(self) -> list[DetectorSignal]:
        """Fetch the board once, run the detector and fire alerts."""
        try:
            events = await self.client.fetch_todays_events()
        except BoardAPIError as e:
            self.last_error = str(e)
            log_warning(logger, "Board refresh failed", error=str(e))
            return []

        self.events = events
        self.last_error = None

        signals = self.detector.observe(events)
        for signal in signals:
            await self._alert(signal)
        # Every event already went out through the signal list
        self.detector.take_new_event()
        self.detector.take_ready_event()
        return signals

    async def _alert(self, signal: DetectorSignal) -> None:
        log_info(
            logger,
            "Board signal",
            kind=signal.kind.value,
            event_id=signal.event_id,
        )
        if signal.kind == SignalKind.NEW:
            await self.alerts.new_event(signal.event)
        else:
            await self.alerts.ready(signal.event)

    def stop(self) -> None:
        self._stopped.set()

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        """Watch until ``stop()`` is called.

        Without a feed the board is polled. With a feed, every message and
        every quiet ``poll_interval`` triggers a refresh. A broken feed is
        retried after one poll; the detector takes a fresh baseline then,
        the same as a board page reloading after a lost connection.
        """
        await self.refresh()

        while not self._stopped.is_set():
            if self.feed is None:
                await self._sleep(self.poll_interval)
                if not self._stopped.is_set():
                    await self.refresh()
                continue

            listener = self.feed.listen(timeout=self.poll_interval)
            try:
                async for _ in listener:
                    if self._stopped.is_set():
                        break
                    await self.refresh()
                    if self._stopped.is_set():
                        break
            except RedisError as e:
                log_warning(logger, "Change feed lost, polling", error=str(e))
                self.detector.reset_baseline()
                await self._sleep(self.poll_interval)
                if not self._stopped.is_set():
                    await self.refresh()
            finally:
                await listener.aclose()

"""Change detector for the board's event snapshots.

The board re-fetches today's events every time the change feed fires, and the
feed may fire several times for one change or replay an unchanged state. The
detector turns that stream of snapshots into one-shot signals:

* ``new``: an event id that was not in the previous snapshot.
* ``ready``: an event whose previous status was known and not ``ready`` and
  whose current status is ``ready``.

Each id fires each kind at most once for the life of the detector. The first
snapshot only establishes the baseline and fires nothing.
"""

from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from readyboard.core.config import settings
from readyboard.core.metrics import DETECTOR_SIGNALS_TOTAL

READY_STATUS = "ready"


class SignalKind(str, Enum):
    NEW = "new"
    READY = "ready"


@dataclass
class DetectorSignal:
    """A condition that just became true for one event."""
    kind: SignalKind
    event: Any

    @property
    def event_id(self) -> str:
        return str(_field(self.event, "id"))


def _field(record: Any, name: str) -> Any:
    """Read a field from a JSON dict or an attribute-style record."""
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


class BoundedIdSet:
    """Insertion-ordered id set that evicts the oldest id past ``maxsize``."""

    def __init__(self, maxsize: int):
        if maxsize < 1:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._ids: OrderedDict[str, None] = OrderedDict()

    def add(self, item: str) -> None:
        if item in self._ids:
            return
        self._ids[item] = None
        while len(self._ids) > self.maxsize:
            self._ids.popitem(last=False)

    def __contains__(self, item: object) -> bool:
        return item in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class ChangeDetector:
    """Classify snapshot refreshes into de-duplicated new/ready signals.

    Not thread-safe. One watcher owns one detector and feeds it snapshots
    in order.
    """

    def __init__(self, max_tracked_ids: Optional[int] = None):
        maxsize = max_tracked_ids or settings.DETECTOR_MAX_TRACKED_IDS
        self._flagged_new = BoundedIdSet(maxsize)
        self._flagged_ready = BoundedIdSet(maxsize)
        self._last_ids: set[str] = set()
        self._last_status: dict[str, Optional[str]] = {}
        self._baseline_pending = True
        self._new_event: Any = None
        self._ready_event: Any = None

    @property
    def has_baseline(self) -> bool:
        return not self._baseline_pending

    def observe(self, snapshot: Iterable[Any]) -> list[DetectorSignal]:
        """Process one refresh and return the signals it fired."""
        self._new_event = None
        self._ready_event = None
        records = list(snapshot)
        current_status: dict[str, Optional[str]] = {}
        for record in records:
            current_status[str(_field(record, "id"))] = _field(record, "status")

        signals: list[DetectorSignal] = []
        if not self._baseline_pending:
            for record in records:
                event_id = str(_field(record, "id"))

                if event_id not in self._last_ids and event_id not in self._flagged_new:
                    self._flagged_new.add(event_id)
                    self._new_event = record
                    signals.append(DetectorSignal(SignalKind.NEW, record))

                previous = self._last_status.get(event_id)
                if (
                    previous is not None
                    and previous != READY_STATUS
                    and current_status[event_id] == READY_STATUS
                    and event_id not in self._flagged_ready
                ):
                    self._flagged_ready.add(event_id)
                    self._ready_event = record
                    signals.append(DetectorSignal(SignalKind.READY, record))

        self._last_ids = set(current_status)
        self._last_status = current_status
        self._baseline_pending = False

        for signal in signals:
            DETECTOR_SIGNALS_TOTAL.labels(kind=signal.kind.value).inc()
        return signals

    def take_new_event(self) -> Any:
        """Return the last unconsumed new-event signal and clear it."""
        event, self._new_event = self._new_event, None
        return event

    def take_ready_event(self) -> Any:
        """Return the last unconsumed ready signal and clear it."""
        event, self._ready_event = self._ready_event, None
        return event

    def reset_baseline(self) -> None:
        """Treat the next snapshot as a fresh baseline.

        Flagged ids are kept, so an event that already alerted stays quiet.
        """
        self._baseline_pending = True
        self._new_event = None
        self._ready_event = None

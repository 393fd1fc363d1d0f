"""Board monitor: change detection and operator alerts."""

from readyboard.modules.monitor.detector import ChangeDetector, DetectorSignal, SignalKind
from readyboard.modules.monitor.alerts import (
    AlertService,
    DesktopSink,
    SoundSink,
    ToastSink,
)
from readyboard.modules.monitor.client import BoardAPIError, BoardClient
from readyboard.modules.monitor.watcher import BoardWatcher

__all__ = [
    "ChangeDetector",
    "DetectorSignal",
    "SignalKind",
    "AlertService",
    "DesktopSink",
    "SoundSink",
    "ToastSink",
    "BoardAPIError",
    "BoardClient",
    "BoardWatcher",
]

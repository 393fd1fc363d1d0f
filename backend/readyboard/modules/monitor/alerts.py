"""Operator-facing alerts for the board monitor.

``AlertService`` owns its sinks and is passed to whoever needs to alert. No
sink holds module-level state: the sound stream is opened on first use by
its own ``SoundSink`` and the desktop permission is a constructor flag.
"""

import asyncio
import logging
import sys
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TextIO

from readyboard.core.config import settings
from readyboard.core.logging import log_warning
from readyboard.modules.monitor.detector import _field

logger = logging.getLogger(__name__)

APP_NAME = "Facility Ready Board"


@dataclass
class Alert:
    title: str
    message: str
    variant: str = "info"


@dataclass
class Toast:
    title: str
    message: str
    variant: str
    expires_at: float
    created_at: float = field(default_factory=time.monotonic)


class AlertSink(ABC):
    """One way of getting an operator's attention."""

    name: str = "sink"

    @abstractmethod
    async def fire(self, alert: Alert) -> bool:
        """Deliver the alert. Returns False when the sink is switched off."""
        pass


class ToastSink(AlertSink):
    """In-memory toast list for the board UI, newest last."""

    name = "toast"

    def __init__(self, duration: Optional[float] = None, max_toasts: int = 20):
        self.duration = duration if duration is not None else settings.ALERT_TOAST_SECONDS
        self._toasts: deque[Toast] = deque(maxlen=max_toasts)

    async def fire(self, alert: Alert) -> bool:
        now = time.monotonic()
        self._toasts.append(
            Toast(
                title=alert.title,
                message=alert.message,
                variant=alert.variant,
                created_at=now,
                expires_at=now + self.duration,
            )
        )
        return True

    def active(self, now: Optional[float] = None) -> list[Toast]:
        """Toasts still within their display duration."""
        now = time.monotonic() if now is None else now
        return [t for t in self._toasts if t.expires_at > now]

    def dismiss_all(self) -> None:
        self._toasts.clear()


class SoundSink(AlertSink):
    """Terminal bell. The output stream is opened on the first alert."""

    name = "sound"

    def __init__(
        self,
        enabled: Optional[bool] = None,
        open_stream: Optional[Callable[[], TextIO]] = None,
    ):
        self.enabled = settings.ALERT_SOUND_ENABLED if enabled is None else enabled
        self._open_stream = open_stream or (lambda: sys.stdout)
        self._stream: Optional[TextIO] = None

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    async def fire(self, alert: Alert) -> bool:
        if not self.enabled:
            return False
        if self._stream is None:
            self._stream = self._open_stream()
        self._stream.write("\a")
        self._stream.flush()
        return True


class DesktopSink(AlertSink):
    """Native desktop notification through plyer.

    Nothing is shown unless ``permitted`` is set, mirroring a browser's
    notification permission.
    """

    name = "desktop"

    def __init__(
        self,
        permitted: Optional[bool] = None,
        timeout: int = 10,
    ):
        self.permitted = settings.ALERT_DESKTOP_ENABLED if permitted is None else permitted
        self.timeout = timeout

    async def fire(self, alert: Alert) -> bool:
        if not self.permitted:
            return False
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._notify, alert)
        return True

    def _notify(self, alert: Alert) -> None:
        from plyer import notification

        notification.notify(
            title=alert.title,
            message=alert.message,
            app_name=APP_NAME,
            timeout=self.timeout,
        )


class AlertService:
    """Route detector signals to the toast, sound and desktop sinks."""

    def __init__(
        self,
        toast: Optional[ToastSink] = None,
        sound: Optional[SoundSink] = None,
        desktop: Optional[DesktopSink] = None,
    ):
        self.toast = toast or ToastSink()
        self.sound = sound or SoundSink()
        self.desktop = desktop or DesktopSink()

    async def _fire(self, alert: Alert, sinks: list[AlertSink]) -> dict[str, bool]:
        fired = {}
        for sink in sinks:
            try:
                fired[sink.name] = await sink.fire(alert)
            except Exception as e:
                fired[sink.name] = False
                log_warning(
                    logger,
                    "Alert sink failed",
                    sink=sink.name,
                    title=alert.title,
                    error=str(e),
                )
        return fired

    async def new_event(self, event: Any) -> dict[str, bool]:
        """Toast and ding for a newly scheduled pickup."""
        name = _field(event, "resident_name")
        room = _field(event, "room_number")
        alert = Alert(
            title="New pickup",
            message=f"New pickup: {name} (Room {room})",
            variant="info",
        )
        return await self._fire(alert, [self.toast, self.sound])

    async def ready(self, event: Any) -> dict[str, bool]:
        """Toast, ding and desktop notification for a ready resident."""
        name = _field(event, "resident_name")
        room = _field(event, "room_number")
        toast_alert = Alert(
            title="Ready for pickup",
            message=f"{name} is READY! (Room {room})",
            variant="success",
        )
        fired = await self._fire(toast_alert, [self.toast, self.sound])

        desktop_alert = Alert(
            title=f"{name} is READY!",
            message=f"Room {room} - Waiting in the lobby",
            variant="success",
        )
        fired.update(await self._fire(desktop_alert, [self.desktop]))
        return fired

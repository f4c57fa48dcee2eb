"""Race clock state machine and the periodic display ticker."""

from __future__ import annotations

import datetime as dt
import enum
import logging
import threading
import time
from typing import Callable, Optional

from .errors import IllegalStateTransition
from .timecodec import ZERO_TIME, format_time

logger = logging.getLogger(__name__)

TICK_INTERVAL = 0.1

Now = Callable[[], float]


class ClockPhase(str, enum.Enum):
    CLEARED = "cleared"
    RUNNING = "running"
    STOPPED = "stopped"


class ClockState:
    """Cleared -> Running -> Stopped -> Cleared.

    ``now`` returns seconds on a monotonic scale; only differences matter.
    """

    def __init__(self, now: Now = time.monotonic) -> None:
        self._now = now
        self.phase = ClockPhase.CLEARED
        self.started_at: Optional[float] = None
        self.display = ZERO_TIME

    @property
    def is_running(self) -> bool:
        return self.phase is ClockPhase.RUNNING

    @property
    def is_cleared(self) -> bool:
        return self.phase is ClockPhase.CLEARED

    def start(self) -> float:
        if self.phase is not ClockPhase.CLEARED:
            raise IllegalStateTransition(f"cannot start a {self.phase.value} clock; clear it first")
        self.started_at = self._now()
        self.phase = ClockPhase.RUNNING
        self.display = ZERO_TIME
        return self.started_at

    def stop(self) -> None:
        if self.phase is not ClockPhase.RUNNING:
            raise IllegalStateTransition(f"cannot stop a {self.phase.value} clock")
        self.display = format_time(self.elapsed())
        self.phase = ClockPhase.STOPPED

    def clear(self) -> None:
        if self.phase is ClockPhase.RUNNING:
            raise IllegalStateTransition("cannot clear a running clock; stop it first")
        self.phase = ClockPhase.CLEARED
        self.started_at = None
        self.display = ZERO_TIME

    def elapsed(self) -> dt.timedelta:
        if self.started_at is None:
            return dt.timedelta(0)
        return dt.timedelta(seconds=max(self._now() - self.started_at, 0.0))


class DisplayTicker:
    """Produces the running clock text at a fixed rate on its own thread.

    The ticker only knows the start instant it was given. Each tick the
    formatted elapsed time is handed to ``post``, which must deliver it to the
    thread that owns the session.
    """

    def __init__(
        self,
        started_at: float,
        post: Callable[[str], None],
        interval: float = TICK_INTERVAL,
        now: Now = time.monotonic,
    ) -> None:
        self.started_at = started_at
        self.interval = interval
        self._post = post
        self._now = now
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def text(self) -> str:
        return format_time(dt.timedelta(seconds=max(self._now() - self.started_at, 0.0)))

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="regatta-clock-ticker", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 1.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._post(self.text())
            except RuntimeError:
                # event loop closed underneath us
                logger.debug("Display hand-off rejected; stopping ticker")
                return

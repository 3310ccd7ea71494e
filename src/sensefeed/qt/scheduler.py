"""Single-shot ``QTimer`` backend for aggregators living on the Qt GUI thread."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Set

from PySide6.QtCore import QElapsedTimer, QObject, QTimer, Qt

logger = logging.getLogger(__name__)


class _QtHandle:
    __slots__ = ("_timer", "_scheduler")

    def __init__(self, timer: QTimer, scheduler: "QtScheduler") -> None:
        self._timer: Optional[QTimer] = timer
        self._scheduler = scheduler

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        timer = self._timer
        if timer is None:
            return
        self._timer = None
        timer.stop()
        self._scheduler._release(timer)

    def _fired(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            self._scheduler._release(timer)


class QtScheduler:
    """
    Schedules fire-once callbacks with ``QTimer`` on the calling thread's
    event loop.

    Everything runs on the Qt thread, so the aggregator's lock is never
    contended. Timers use ``Qt.PreciseTimer`` so short debounce windows
    (50 ms chart refresh) are not rounded by coarse timer slack.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent
        self._clock = QElapsedTimer()
        self._clock.start()
        self._live: Set[QTimer] = set()

    def now(self) -> float:
        return self._clock.nsecsElapsed() / 1_000_000_000.0

    @property
    def pending(self) -> int:
        return len(self._live)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> _QtHandle:
        interval_ms = max(0, int(round(max(0.0, float(delay_s)) * 1000.0)))
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setTimerType(Qt.PreciseTimer)
        timer.setInterval(interval_ms)
        handle = _QtHandle(timer, self)

        def _on_timeout() -> None:
            handle._fired()
            try:
                callback()
            except Exception:
                logger.exception("Qt timer callback %r failed", callback)

        timer.timeout.connect(_on_timeout)
        self._live.add(timer)
        timer.start()
        return handle

    def _release(self, timer: QTimer) -> None:
        self._live.discard(timer)
        timer.deleteLater()

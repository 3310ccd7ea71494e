"""Fire-once timer backends used by the aggregators.

Every backend implements the small :class:`Scheduler` protocol:
``call_later(delay_s, callback)`` returns a :class:`TimerHandle` that can be
cancelled, and ``now()`` reports the backend's clock in seconds. Re-arming
is always done by the caller cancelling the old handle first.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import threading
import time
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle(Protocol):
    """Handle for one pending callback."""

    @property
    def active(self) -> bool:  # pragma: no cover - protocol
        ...

    def cancel(self) -> None:  # pragma: no cover - protocol
        ...


class Scheduler(Protocol):
    """Schedules fire-once callbacks on the host's event thread."""

    def call_later(self, delay_s: float, callback: Callback) -> TimerHandle:  # pragma: no cover - protocol
        ...

    def now(self) -> float:  # pragma: no cover - protocol
        ...


def _clamp_delay(delay_s: float) -> float:
    try:
        delay = float(delay_s)
    except (TypeError, ValueError):
        return 0.0
    if delay != delay or delay < 0.0:
        return 0.0
    return delay


# --------------------------------------------------------------------- manual
class _ManualHandle:
    __slots__ = ("deadline", "callback", "_active")

    def __init__(self, deadline: float, callback: Callback) -> None:
        self.deadline = deadline
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False

    def _fire(self) -> None:
        if not self._active:
            return
        self._active = False
        self.callback()


class ManualScheduler:
    """
    Deterministic virtual-clock scheduler.

    Time only moves when :meth:`advance` is called, which makes debounce and
    periodic timing fully reproducible in tests and in the virtual benchmark.
    Callbacks sharing a deadline fire in the order they were scheduled.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._heap: List[Tuple[float, int, _ManualHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_s: float, callback: Callback) -> _ManualHandle:
        handle = _ManualHandle(self._now + _clamp_delay(delay_s), callback)
        heapq.heappush(self._heap, (handle.deadline, next(self._counter), handle))
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not fired or been cancelled."""
        return sum(1 for _, _, handle in self._heap if handle.active)

    def next_deadline(self) -> Optional[float]:
        self._discard_cancelled()
        if not self._heap:
            return None
        return self._heap[0][0]

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward by ``seconds`` and run every callback due.

        Callbacks scheduled while advancing fire too if they fall inside the
        window. Returns the number of callbacks that ran.
        """
        target = self._now + _clamp_delay(seconds)
        fired = 0
        while True:
            self._discard_cancelled()
            if not self._heap or self._heap[0][0] > target:
                break
            deadline, _, handle = heapq.heappop(self._heap)
            self._now = max(self._now, deadline)
            handle._fire()
            fired += 1
        self._now = target
        return fired

    def advance_to(self, timestamp: float) -> int:
        return self.advance(max(0.0, float(timestamp) - self._now))

    def _discard_cancelled(self) -> None:
        while self._heap and not self._heap[0][2].active:
            heapq.heappop(self._heap)


# ------------------------------------------------------------------ threading
class _ThreadHandle:
    __slots__ = ("_timer",)

    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    @property
    def active(self) -> bool:
        return self._timer.is_alive() and not self._timer.finished.is_set()

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler:
    """
    ``threading.Timer`` backend for hosts without a UI event loop.

    Callbacks run on short-lived daemon threads, so whatever they touch has
    to be lock protected (the aggregator guards its state with an RLock).
    """

    def __init__(self, *, name: str = "SenseFeedTimer") -> None:
        self._name = name

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay_s: float, callback: Callback) -> _ThreadHandle:
        def _run() -> None:
            try:
                callback()
            except Exception:
                logger.exception("Timer callback %r failed", callback)

        timer = threading.Timer(_clamp_delay(delay_s), _run)
        timer.name = self._name
        timer.daemon = True
        handle = _ThreadHandle(timer)
        timer.start()
        return handle


# -------------------------------------------------------------------- asyncio
class _AsyncioHandle:
    __slots__ = ("_handle", "_loop")

    def __init__(self, handle: asyncio.TimerHandle, loop: asyncio.AbstractEventLoop) -> None:
        self._handle = handle
        self._loop = loop

    @property
    def active(self) -> bool:
        return not self._handle.cancelled() and self._handle.when() > self._loop.time()

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop via ``loop.call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay_s: float, callback: Callback) -> _AsyncioHandle:
        loop = self.loop
        return _AsyncioHandle(loop.call_later(_clamp_delay(delay_s), callback), loop)


__all__ = [
    "AsyncioScheduler",
    "Callback",
    "ManualScheduler",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
]

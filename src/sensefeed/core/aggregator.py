"""
Throttled stream aggregator: bounded batching between a fast event source
and a slow consumer.

Each instance owns one batch queue, one visibility flag and at most one
pending emission timer. Events are accepted only while the consumer is
visible; the queue keeps the newest ``max_queue`` events; when the timer
fires a snapshot of the queue is delivered to the consumer exactly once.

Two re-arm strategies are available and must be picked per consumer:

``EmissionPolicy.PERIODIC_BATCH``
    The first accepted event arms the timer; later events only join the
    batch until it fires.
``EmissionPolicy.DEBOUNCE``
    Every accepted event cancels the pending timer and arms a new one, so
    emission happens ``interval_s`` after the burst goes quiet.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

from ..tools.debug import debug_enabled, time_block
from .events import Event
from .ringbuffer import RingBuffer
from .scheduling import Scheduler, TimerHandle
from .snapshots import BatchSnapshot, SnapshotBuilder, batch_snapshot

logger = logging.getLogger(__name__)

S = TypeVar("S")

DEFAULT_VISIBILITY_THRESHOLD = 0.1


class EmissionPolicy(str, Enum):
    DEBOUNCE = "debounce"
    PERIODIC_BATCH = "periodic-batch"

    @classmethod
    def parse(cls, value: "EmissionPolicy | str") -> "EmissionPolicy":
        if isinstance(value, EmissionPolicy):
            return value
        key = str(value).strip().lower().replace("_", "-")
        if key in {"periodic", "batch", "throttle"}:
            return cls.PERIODIC_BATCH
        return cls(key)


class DrainPolicy(str, Enum):
    FULL = "full"
    RETAIN_LAST = "retain-last"

    @classmethod
    def parse(cls, value: "DrainPolicy | str") -> "DrainPolicy":
        if isinstance(value, DrainPolicy):
            return value
        key = str(value).strip().lower().replace("_", "-")
        if key in {"retain", "keep-last"}:
            return cls.RETAIN_LAST
        return cls(key)


class AggregatorState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


@dataclass(frozen=True)
class AggregatorConfig:
    """
    Static tuning for one aggregator.

    Parameters
    ----------
    max_queue:
        Batch queue bound (oldest events are evicted beyond it).
    interval_s:
        Debounce delay or batching period in seconds.
    policy:
        Timer re-arm strategy, see :class:`EmissionPolicy`.
    drain:
        What happens to the queue after an emission.
    retain_last:
        Events kept after emission under ``DrainPolicy.RETAIN_LAST``.
    visibility_threshold:
        Minimum visible fraction that counts as on-screen.
    """

    max_queue: int = 20
    interval_s: float = 0.1
    policy: EmissionPolicy = EmissionPolicy.PERIODIC_BATCH
    drain: DrainPolicy = DrainPolicy.FULL
    retain_last: int = 0
    visibility_threshold: float = DEFAULT_VISIBILITY_THRESHOLD
    name: str = "feed"

    def __post_init__(self) -> None:
        object.__setattr__(self, "policy", EmissionPolicy.parse(self.policy))
        object.__setattr__(self, "drain", DrainPolicy.parse(self.drain))
        if isinstance(self.max_queue, bool) or not isinstance(self.max_queue, int):
            raise ValueError(f"max_queue must be an integer, got {self.max_queue!r}")
        if self.max_queue <= 0:
            raise ValueError(f"max_queue must be > 0, got {self.max_queue}")
        interval = float(self.interval_s)
        if not math.isfinite(interval) or interval < 0.0:
            raise ValueError(f"interval_s must be finite and >= 0, got {self.interval_s}")
        if self.retain_last < 0 or self.retain_last > self.max_queue:
            raise ValueError(
                f"retain_last must be within [0, max_queue={self.max_queue}], got {self.retain_last}"
            )
        threshold = float(self.visibility_threshold)
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(
                f"visibility_threshold must be within [0, 1], got {self.visibility_threshold}"
            )

    def with_overrides(self, **changes: Any) -> "AggregatorConfig":
        return replace(self, **changes)


@dataclass
class AggregatorStats:
    """Running counters; the drops are policy, not errors."""

    received: int = 0
    accepted: int = 0
    dropped_invisible: int = 0
    evicted: int = 0
    emitted: int = 0
    ticks_dropped: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "received": self.received,
            "accepted": self.accepted,
            "dropped_invisible": self.dropped_invisible,
            "evicted": self.evicted,
            "emitted": self.emitted,
            "ticks_dropped": self.ticks_dropped,
        }


Consumer = Callable[[S], None]


class ThrottledAggregator(Generic[S]):
    """
    Batch, gate and rate-limit one event channel for one consumer.

    All state lives behind a single re-entrant lock so the instance can be
    driven either from a single UI thread (Qt, asyncio) or from timer
    threads. The consumer is always invoked outside the lock.
    """

    def __init__(
        self,
        config: AggregatorConfig,
        scheduler: Scheduler,
        consumer: Consumer[S],
        *,
        snapshot_builder: SnapshotBuilder[S] | None = None,
        visible: bool = True,
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._consumer = consumer
        self._builder = snapshot_builder
        self._queue: RingBuffer[Event] = RingBuffer(config.max_queue)
        self._visible = bool(visible)
        self._timer: Optional[TimerHandle] = None
        self._generation = 0
        self._state = AggregatorState.IDLE
        self._disposed = False
        self._evicted_since_emit = 0
        self._stats = AggregatorStats()
        self._lock = threading.RLock()

    # ------------------------------------------------------------ properties
    @property
    def config(self) -> AggregatorConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def state(self) -> AggregatorState:
        with self._lock:
            return self._state

    @property
    def visible(self) -> bool:
        with self._lock:
            return self._visible

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def stats(self) -> AggregatorStats:
        with self._lock:
            return replace(self._stats)

    def queued(self) -> Tuple[Event, ...]:
        """Copy of the batch queue, oldest first."""
        with self._lock:
            return tuple(self._queue)

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    # ------------------------------------------------------------ operations
    def on_event(self, event: Event) -> None:
        """Accept ``event`` into the batch (silently ignored while invisible)."""
        with self._lock:
            if self._disposed:
                return
            self._stats.received += 1
            if not self._visible:
                self._stats.dropped_invisible += 1
                return

            if self._queue.append(event) is not None:
                self._evicted_since_emit += 1
                self._stats.evicted += 1
            self._stats.accepted += 1

            if self._config.policy is EmissionPolicy.DEBOUNCE:
                self._arm_timer()
            elif self._state is AggregatorState.IDLE:
                self._arm_timer()

    def on_tick(self) -> None:
        """
        Emission timer callback.

        A tick that arrives while idle belongs to a cancelled or reset timer
        and is ignored. A tick while invisible is dropped without re-arming.
        """
        self._tick(None)

    def _tick(self, generation: int | None) -> None:
        with self._lock:
            if self._disposed or self._state is AggregatorState.IDLE:
                return
            # A timer thread may wake after its handle was cancelled and replaced.
            if generation is not None and generation != self._generation:
                return
            self._state = AggregatorState.IDLE
            self._cancel_timer()

            if not self._visible:
                self._stats.ticks_dropped += 1
                logger.debug("[%s] tick dropped while invisible (%d queued)", self.name, len(self._queue))
                return

            events = self._take_batch()
            if debug_enabled():
                with time_block(f"{self.name}: build snapshot", emitter=logger.debug):
                    snapshot = self._build_snapshot(events)
            else:
                snapshot = self._build_snapshot(events)
            self._evicted_since_emit = 0
            self._stats.emitted += 1

        try:
            self._consumer(snapshot)
        except Exception:
            logger.exception("[%s] consumer failed for snapshot of %d events", self.name, len(events))

    def set_visibility(self, visible: bool) -> None:
        """Update the on-screen flag; hiding never flushes queued data."""
        with self._lock:
            if self._disposed:
                return
            visible = bool(visible)
            if visible != self._visible:
                logger.debug("[%s] visibility -> %s", self.name, visible)
            self._visible = visible

    def update_visible_fraction(self, fraction: float) -> bool:
        """
        Apply a visible fraction in ``[0, 1]`` against the configured threshold.

        Returns the resulting visibility.
        """
        try:
            value = float(fraction)
        except (TypeError, ValueError):
            value = 0.0
        if not math.isfinite(value):
            value = 0.0
        visible = value >= self._config.visibility_threshold
        self.set_visibility(visible)
        return visible

    def reset(self) -> None:
        """Clear the queue and cancel any pending timer."""
        with self._lock:
            self._cancel_timer()
            self._queue.clear()
            self._evicted_since_emit = 0
            self._state = AggregatorState.IDLE

    def dispose(self) -> None:
        """Tear down for good; later calls on this instance are no-ops."""
        with self._lock:
            if self._disposed:
                return
            self.reset()
            self._disposed = True
            logger.debug("[%s] disposed: %s", self.name, self._stats.as_dict())

    # --------------------------------------------------------------- helpers
    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._generation += 1
        generation = self._generation
        self._timer = self._scheduler.call_later(
            self._config.interval_s, lambda: self._tick(generation)
        )
        self._state = AggregatorState.PENDING

    def _cancel_timer(self) -> None:
        self._generation += 1
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()

    def _build_snapshot(self, events: list[Event]) -> S:
        if self._builder is not None:
            return self._builder(events)
        snapshot: BatchSnapshot = batch_snapshot(
            events,
            emitted_at=self._scheduler.now(),
            evicted=self._evicted_since_emit,
            sequence=self._stats.emitted + 1,
        )
        return snapshot  # type: ignore[return-value]

    def _take_batch(self) -> list[Event]:
        """Remove the batch from the queue; retain-last leaves the newest events queued."""
        if self._config.drain is DrainPolicy.RETAIN_LAST:
            events = self._queue.to_list()
            self._queue.keep_last(self._config.retain_last)
            return events
        return self._queue.drain()


__all__ = [
    "AggregatorConfig",
    "AggregatorState",
    "AggregatorStats",
    "Consumer",
    "DEFAULT_VISIBILITY_THRESHOLD",
    "DrainPolicy",
    "EmissionPolicy",
    "ThrottledAggregator",
]

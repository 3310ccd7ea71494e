"""Headless model of the real-time sensor log panel."""

from __future__ import annotations

import logging
import time
from collections import Counter, deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Protocol

from ..core.events import Channel, Event, IntegratedReading, VectorReading
from ..core.snapshots import BatchSnapshot

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOG_MESSAGES = 100


class EventSink(Protocol):
    def on_event(self, event: Event) -> None:  # pragma: no cover - protocol
        ...


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# First match wins, so errors outrank successes in mixed messages.
_LEVEL_MARKERS = (
    (LogLevel.ERROR, ("❌", "failed", "error")),
    (LogLevel.SUCCESS, ("✅", "completed", "done")),
    (LogLevel.WARNING, ("⚠️", "warning")),
    (LogLevel.INFO, ("📝", "started", "stopped")),
)


def classify_level(message: str) -> LogLevel:
    """Pick a level from the markers a message carries (debug otherwise)."""
    text = message.lower()
    for level, markers in _LEVEL_MARKERS:
        if any(marker in text for marker in markers):
            return level
    return LogLevel.DEBUG


def format_event(event: Event) -> str:
    """One log line per sensor event."""
    payload = event.payload
    if isinstance(payload, VectorReading):
        label = {
            Channel.ACCELEROMETER: "📱 Accelerometer",
            Channel.GYROSCOPE: "🔄 Gyroscope",
        }.get(event.channel, "📡 Sensor")
        return f"{label}: X={payload.x:.3f}, Y={payload.y:.3f}, Z={payload.z:.3f}"
    if isinstance(payload, IntegratedReading):
        return (
            f"🔗 Integrated: intensity={round(payload.combined_intensity * 100)}%, "
            f"state={payload.motion_state}, quality={payload.motion_quality}"
        )
    return f"📡 {event.channel.value if event.channel else 'event'}: {payload!r}"


@dataclass(frozen=True)
class LogEntry:
    message: str
    timestamp: float
    level: LogLevel


class RealtimeLogModel:
    """
    Bounded log history fed by full-drain batches.

    The model is the downstream consumer of one or more log-role
    aggregators. ``logging_enabled`` mirrors the panel's start/stop button:
    while disabled, :meth:`on_event` never reaches the aggregators, so
    nothing is queued.
    """

    def __init__(
        self,
        *,
        max_messages: int = DEFAULT_MAX_LOG_MESSAGES,
        formatter: Callable[[Event], str] = format_event,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_messages <= 0:
            raise ValueError("max_messages must be positive")
        self._entries: Deque[LogEntry] = deque(maxlen=max_messages)
        self._formatter = formatter
        self._clock = clock
        self._feeds: List[EventSink] = []
        self.logging_enabled = False
        self.revision = 0

    @property
    def max_messages(self) -> int:
        return self._entries.maxlen or 0

    def attach(self, feed: EventSink) -> None:
        """Register the aggregator (or channel feeds) whose snapshots land here."""
        self._feeds.append(feed)

    def on_event(self, event: Event) -> None:
        """Forward an upstream event to the attached feeds."""
        if not self.logging_enabled:
            return
        for feed in self._feeds:
            feed.on_event(event)

    def start(self) -> None:
        self.logging_enabled = True
        self.add_message("📝 Logging started")

    def stop(self) -> None:
        self.logging_enabled = False
        self.add_message("📝 Logging stopped")

    def add_message(self, message: str, *, timestamp: Optional[float] = None) -> LogEntry:
        entry = LogEntry(
            message=message,
            timestamp=self._clock() if timestamp is None else float(timestamp),
            level=classify_level(message),
        )
        self._entries.append(entry)
        self.revision += 1
        return entry

    def __call__(self, snapshot: BatchSnapshot) -> None:
        """Consume one batch; an empty batch changes nothing."""
        if snapshot.empty:
            return
        for event in snapshot.events:
            message = self._formatter(event)
            self._entries.append(
                LogEntry(message=message, timestamp=event.timestamp_s, level=classify_level(message))
            )
        if snapshot.evicted:
            logger.debug("Log batch #%d lost %d events to the queue bound", snapshot.sequence, snapshot.evicted)
        self.revision += 1

    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def level_counts(self) -> Dict[LogLevel, int]:
        return dict(Counter(entry.level for entry in self._entries))

    def clear(self) -> None:
        self._entries.clear()
        self.revision += 1

    def __len__(self) -> int:
        return len(self._entries)

"""Immutable view-ready summaries built from an aggregator's batch queue."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, TypeVar

from .events import Channel, Event

S = TypeVar("S")

# Pure function from the queued events (oldest first) to a snapshot.
SnapshotBuilder = Callable[[Sequence[Event]], S]


@dataclass(frozen=True, slots=True)
class BatchSnapshot:
    """Events collected since the last emission, in arrival order."""

    events: Tuple[Event, ...] = ()
    emitted_at: float = 0.0
    evicted: int = 0
    sequence: int = 0

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def empty(self) -> bool:
        return not self.events

    @property
    def latest(self) -> Optional[Event]:
        return self.events[-1] if self.events else None

    @property
    def first_timestamp(self) -> Optional[float]:
        return self.events[0].timestamp_s if self.events else None

    @property
    def last_timestamp(self) -> Optional[float]:
        return self.events[-1].timestamp_s if self.events else None

    def payloads(self) -> Tuple[Any, ...]:
        return tuple(event.payload for event in self.events)

    def by_channel(self) -> Dict[Optional[Channel], int]:
        """Count events per channel (``None`` for unlabelled events)."""
        return dict(Counter(event.channel for event in self.events))


def batch_snapshot(
    events: Sequence[Event],
    *,
    emitted_at: float = 0.0,
    evicted: int = 0,
    sequence: int = 0,
) -> BatchSnapshot:
    """Default snapshot builder: keep the batch as-is."""
    return BatchSnapshot(
        events=tuple(events),
        emitted_at=float(emitted_at),
        evicted=int(evicted),
        sequence=int(sequence),
    )


def latest_payload(events: Sequence[Event]) -> Any:
    """Snapshot builder for consumers that only care about the newest value."""
    if not events:
        return None
    return events[-1].payload


__all__ = ["BatchSnapshot", "SnapshotBuilder", "batch_snapshot", "latest_payload"]

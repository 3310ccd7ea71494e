"""Event and reading types flowing from a sensor source into the aggregators."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


class Channel(str, Enum):
    """Independent upstream channels; each gets its own aggregator."""

    ACCELEROMETER = "accelerometer"
    GYROSCOPE = "gyroscope"
    INTEGRATED = "integrated"

    @classmethod
    def parse(cls, value: "Channel | str") -> "Channel":
        if isinstance(value, Channel):
            return value
        key = str(value).strip().lower()
        aliases = {
            "accel": cls.ACCELEROMETER,
            "acc": cls.ACCELEROMETER,
            "gyro": cls.GYROSCOPE,
            "fused": cls.INTEGRATED,
        }
        if key in aliases:
            return aliases[key]
        return cls(key)


@dataclass(frozen=True, slots=True)
class VectorReading:
    """Three-axis reading (m/s² for accelerometer, deg/s for gyroscope)."""

    x: float
    y: float
    z: float

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


@dataclass(frozen=True, slots=True)
class IntegratedReading:
    """Fused accelerometer/gyroscope summary produced upstream."""

    movement_magnitude: float
    rotation_magnitude: float
    combined_intensity: float
    motion_state: str = "unknown"
    motion_quality: str = "unknown"


@dataclass(frozen=True, slots=True)
class Event:
    """One timestamped upstream payload. Never mutated after creation."""

    payload: Any
    timestamp_s: float
    channel: Optional[Channel] = None


def make_event(
    payload: Any,
    channel: Channel | str | None = None,
    *,
    timestamp_s: float | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> Event:
    """Stamp ``payload`` with an arrival time (``clock()`` when not given)."""
    ts = clock() if timestamp_s is None else float(timestamp_s)
    ch = Channel.parse(channel) if channel is not None else None
    return Event(payload=payload, timestamp_s=ts, channel=ch)


__all__ = [
    "Channel",
    "Event",
    "IntegratedReading",
    "VectorReading",
    "make_event",
]

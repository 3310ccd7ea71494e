"""Headless model of the fused-motion line chart."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from ..analysis.normalize import normalize_series
from ..core.events import Event, IntegratedReading
from ..core.snapshots import BatchSnapshot

DEFAULT_MAX_DATA_POINTS = 100


@dataclass(frozen=True)
class ChartSeries:
    """Immutable copy of the chart's series, oldest point first."""

    timestamps: Tuple[float, ...]
    movement: Tuple[float, ...]
    rotation: Tuple[float, ...]
    intensity: Tuple[float, ...]

    def __len__(self) -> int:
        return len(self.timestamps)

    def normalized(self) -> "ChartSeries":
        """Min/max normalize each value series onto [0, 1]."""
        return ChartSeries(
            timestamps=self.timestamps,
            movement=normalize_series(self.movement),
            rotation=normalize_series(self.rotation),
            intensity=normalize_series(self.intensity),
        )


class SensorChartModel:
    """
    Keeps the last ``max_points`` fused readings for plotting.

    Each snapshot contributes at most one point: its newest integrated
    reading. The chart role retains the last event across emissions, so a
    snapshot whose newest event was already plotted adds nothing.
    """

    def __init__(self, *, max_points: int = DEFAULT_MAX_DATA_POINTS) -> None:
        if max_points <= 0:
            raise ValueError("max_points must be positive")
        self._timestamps: Deque[float] = deque(maxlen=max_points)
        self._movement: Deque[float] = deque(maxlen=max_points)
        self._rotation: Deque[float] = deque(maxlen=max_points)
        self._intensity: Deque[float] = deque(maxlen=max_points)
        self._last_event: Optional[Event] = None
        self.revision = 0

    @property
    def max_points(self) -> int:
        return self._timestamps.maxlen or 0

    def __call__(self, snapshot: BatchSnapshot) -> None:
        latest = self._latest_integrated(snapshot)
        if latest is None or latest is self._last_event:
            return
        reading: IntegratedReading = latest.payload
        self._timestamps.append(latest.timestamp_s)
        self._movement.append(float(reading.movement_magnitude))
        self._rotation.append(float(reading.rotation_magnitude))
        self._intensity.append(float(reading.combined_intensity))
        self._last_event = latest
        self.revision += 1

    @staticmethod
    def _latest_integrated(snapshot: BatchSnapshot) -> Optional[Event]:
        for event in reversed(snapshot.events):
            if isinstance(event.payload, IntegratedReading):
                return event
        return None

    def series(self) -> ChartSeries:
        return ChartSeries(
            timestamps=tuple(self._timestamps),
            movement=tuple(self._movement),
            rotation=tuple(self._rotation),
            intensity=tuple(self._intensity),
        )

    def normalized(self) -> ChartSeries:
        return self.series().normalized()

    def needs_repaint(self, painted_revision: int) -> bool:
        return painted_revision != self.revision

    def clear(self) -> None:
        for series in (self._timestamps, self._movement, self._rotation, self._intensity):
            series.clear()
        self._last_event = None
        self.revision += 1

    def __len__(self) -> int:
        return len(self._timestamps)

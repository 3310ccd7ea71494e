"""Redraw timings reported by the dashboard consumers to the perf HUD."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List

import numpy as np

from ..analysis.rate import safe_rate

MAX_SAMPLES_PERF = 300


@dataclass(frozen=True, slots=True)
class FrameTiming:
    """Payload of a monitor event: one redraw of some consumer."""

    start_s: float
    end_s: float
    sample_time_s: float | None = None

    @property
    def duration_s(self) -> float:
        return max(0.0, self.end_s - self.start_s)

    @property
    def latency_s(self) -> float | None:
        """Time from the newest drawn sample's arrival to the end of the redraw."""
        if self.sample_time_s is None:
            return None
        return max(0.0, self.end_s - self.sample_time_s)


@dataclass
class PlotPerfStats:
    """The last ``MAX_SAMPLES_PERF`` redraws and the figures derived from them."""

    frames: Deque[FrameTiming] = field(default_factory=lambda: deque(maxlen=MAX_SAMPLES_PERF))

    def record(self, timing: FrameTiming) -> None:
        self.frames.append(timing)

    def __len__(self) -> int:
        return len(self.frames)

    def compute_fps(self) -> float:
        if len(self.frames) < 2:
            return 0.0
        return safe_rate(len(self.frames) - 1, self.frames[-1].end_s - self.frames[0].end_s)

    def avg_frame_ms(self) -> float:
        if not self.frames:
            return 0.0
        return 1000.0 * float(np.mean([f.duration_s for f in self.frames]))

    def _latencies(self) -> List[float]:
        return [f.latency_s for f in self.frames if f.latency_s is not None]

    def avg_latency_ms(self) -> float:
        latencies = self._latencies()
        return 1000.0 * float(np.mean(latencies)) if latencies else 0.0

    def max_latency_ms(self) -> float:
        latencies = self._latencies()
        return 1000.0 * max(latencies) if latencies else 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            "fps": self.compute_fps(),
            "avg_frame_ms": self.avg_frame_ms(),
            "avg_latency_ms": self.avg_latency_ms(),
            "max_latency_ms": self.max_latency_ms(),
        }

    def reset(self) -> None:
        self.frames.clear()

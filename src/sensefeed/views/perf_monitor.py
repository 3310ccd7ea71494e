"""Headless model of the advanced performance monitor card."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..core.snapshots import BatchSnapshot
from .perf_metrics import FrameTiming, PlotPerfStats
from .perf_system import get_process_cpu_percent, get_process_memory_mb

FRAME_BUDGET_MS = 1000.0 / 60.0
MEMORY_ALERT_MB = 800.0
REBUILD_ALERT_COUNT = 100

OK_ALERT = "✅ Performance OK"


@dataclass(frozen=True)
class PerformanceReport:
    fps: float
    avg_frame_ms: float
    avg_latency_ms: float
    max_latency_ms: float
    memory_mb: float
    cpu_percent: float
    rebuild_count: int
    alerts: Tuple[str, ...]


def performance_alerts(avg_frame_ms: float, memory_mb: float, rebuild_count: int) -> List[str]:
    alerts: List[str] = []
    if avg_frame_ms > FRAME_BUDGET_MS:
        alerts.append(f"⚠️ Frame drops detected: {avg_frame_ms:.1f}ms")
    if memory_mb > MEMORY_ALERT_MB:
        alerts.append(f"⚠️ High memory usage: {memory_mb:.0f}MB")
    if rebuild_count > REBUILD_ALERT_COUNT:
        alerts.append(f"⚠️ Excessive rebuilds: {rebuild_count}")
    if not alerts:
        alerts.append(OK_ALERT)
    return alerts


class PerformanceMonitor:
    """
    Consumes batches of :class:`FrameTiming` events from monitor-role feeds
    and turns them into a :class:`PerformanceReport` per batch.

    Process probes default to psutil and can be replaced for tests.
    """

    def __init__(
        self,
        *,
        memory_probe: Callable[[], float] = get_process_memory_mb,
        cpu_probe: Callable[[], float] = get_process_cpu_percent,
    ) -> None:
        self._stats = PlotPerfStats()
        self._memory_probe = memory_probe
        self._cpu_probe = cpu_probe
        self.rebuild_count = 0
        self.report: Optional[PerformanceReport] = None

    @property
    def stats(self) -> PlotPerfStats:
        return self._stats

    def __call__(self, snapshot: BatchSnapshot) -> None:
        for event in snapshot.events:
            if isinstance(event.payload, FrameTiming):
                self._stats.record(event.payload)
                self.rebuild_count += 1
        self.report = self.build_report()

    def build_report(self) -> PerformanceReport:
        metrics = self._stats.as_dict()
        memory_mb = float(self._memory_probe())
        return PerformanceReport(
            fps=metrics["fps"],
            avg_frame_ms=metrics["avg_frame_ms"],
            avg_latency_ms=metrics["avg_latency_ms"],
            max_latency_ms=metrics["max_latency_ms"],
            memory_mb=memory_mb,
            cpu_percent=float(self._cpu_probe()),
            rebuild_count=self.rebuild_count,
            alerts=tuple(performance_alerts(metrics["avg_frame_ms"], memory_mb, self.rebuild_count)),
        )

    def reset(self) -> None:
        self._stats.reset()
        self.rebuild_count = 0
        self.report = None

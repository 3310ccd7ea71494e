"""Headless model of the sensor throughput statistics panel."""

from __future__ import annotations

from collections import Counter
from typing import Dict, Optional

from ..analysis.rate import RateController, RateMeter
from ..core.events import Channel
from ..core.snapshots import BatchSnapshot


class PerformanceStatsModel:
    """
    Per-channel event counters and the resulting update rate.

    Counters come from stats-role batches; events the batch queue evicted
    still count, since the panel reports throughput rather than what was
    displayed. :meth:`refresh_rate` is meant to run on a slower (1 s)
    cadence than the batches arrive.
    """

    def __init__(self) -> None:
        self._channel_counts: Counter[Optional[Channel]] = Counter()
        self._meter = RateMeter()
        self._arrivals = RateController()
        self.total_events = 0
        self.error_count = 0
        self.batches = 0
        self.revision = 0

    def __call__(self, snapshot: BatchSnapshot) -> None:
        if snapshot.empty:
            return
        self._channel_counts.update(snapshot.by_channel())
        # Evicted events are not attributable to a channel any more.
        if snapshot.evicted:
            self._channel_counts[None] += snapshot.evicted
        delivered = snapshot.count + snapshot.evicted
        self.total_events += delivered
        self._meter.add(delivered)
        self._arrivals.observe_events(snapshot.events)
        self.batches += 1
        self.revision += 1

    def record_error(self, count: int = 1) -> None:
        self.error_count += max(0, int(count))
        self.revision += 1

    def report_source_rate(self, hz: float | None) -> None:
        """Nominal event rate of the upstream source, fused into :attr:`input_rate_hz`."""
        self._arrivals.report_rate(hz)
        self.revision += 1

    def refresh_rate(self, now: float) -> float:
        """Close the current rate interval and return events per second."""
        rate = self._meter.sample(now)
        self.revision += 1
        return rate

    @property
    def update_rate(self) -> float:
        return self._meter.rate

    @property
    def input_rate_hz(self) -> float:
        """Event arrival rate from the delivered timestamps and the reported source rate."""
        return self._arrivals.estimate().effective_hz

    def channel_count(self, channel: Channel | None) -> int:
        return int(self._channel_counts.get(channel, 0))

    def as_dict(self) -> Dict[str, float]:
        data: Dict[str, float] = {
            "total_events": float(self.total_events),
            "error_count": float(self.error_count),
            "batches": float(self.batches),
            "update_rate_hz": self.update_rate,
            "input_rate_hz": self.input_rate_hz,
        }
        for channel in Channel:
            data[f"{channel.value}_events"] = float(self.channel_count(channel))
        return data

    def reset(self) -> None:
        self._channel_counts.clear()
        self._meter.reset()
        self._arrivals.reset()
        self.total_events = 0
        self.error_count = 0
        self.batches = 0
        self.revision += 1

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from ..core.events import Event
from ..core.ringbuffer import RingBuffer

RateQuality = Literal["default", "reported_only", "window_only", "fused"]


def safe_rate(count: float, elapsed_s: float) -> float:
    """
    Return ``count / elapsed_s`` or 0.0 when the division is meaningless.

    Zero, negative or non-finite elapsed time (and a non-finite count) all
    yield 0.0 so callers never see ``inf``/``nan`` or a ZeroDivisionError.
    """
    try:
        num = float(count)
        den = float(elapsed_s)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(num) or not math.isfinite(den) or den <= 0.0:
        return 0.0
    rate = num / den
    return rate if math.isfinite(rate) else 0.0


@dataclass(frozen=True)
class RateEstimate:
    """Arrival rate of one event stream and where the number came from."""

    effective_hz: float
    reported_hz: Optional[float]
    window_hz: Optional[float]
    quality: RateQuality


class RateController:
    """
    Track how fast events actually arrive on a stream.

    Arrival timestamps (seconds, non-decreasing) fill a fixed window; a
    source may also report its nominal rate. With both available the
    effective rate is their mean, otherwise whichever one is known, and
    ``default_hz`` before anything is known.
    """

    def __init__(self, window_size: int = 100, default_hz: float = 0.0) -> None:
        if window_size <= 1:
            raise ValueError("window_size must be > 1")
        self._arrivals: RingBuffer[float] = RingBuffer(window_size)
        self.default_hz = float(default_hz)
        self._reported_hz: Optional[float] = None

    def observe(self, timestamp_s: float) -> None:
        self._arrivals.append(float(timestamp_s))

    def observe_events(self, events: Iterable[Event]) -> None:
        for event in events:
            self.observe(event.timestamp_s)

    def report_rate(self, hz: float | None) -> None:
        """Record the source's nominal rate; ``None`` forgets it."""
        if hz is None:
            self._reported_hz = None
            return
        value = float(hz)
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"reported rate must be finite and >= 0, got {hz!r}")
        self._reported_hz = value

    @property
    def window_size(self) -> int:
        return len(self._arrivals)

    @property
    def window_span_s(self) -> float:
        if len(self._arrivals) < 2:
            return 0.0
        return self._arrivals[-1] - self._arrivals[0]

    def window_hz(self) -> Optional[float]:
        """Rate over the timestamp window; None until it covers a positive span."""
        span = self.window_span_s
        if span <= 0.0:
            return None
        return safe_rate(len(self._arrivals) - 1, span)

    def estimate(self) -> RateEstimate:
        window = self.window_hz()
        reported = self._reported_hz
        if reported is not None and window is not None:
            return RateEstimate(0.5 * (reported + window), reported, window, "fused")
        if window is not None:
            return RateEstimate(window, None, window, "window_only")
        if reported is not None:
            return RateEstimate(reported, reported, None, "reported_only")
        return RateEstimate(self.default_hz, None, None, "default")

    def reset(self) -> None:
        self._arrivals.clear()
        self._reported_hz = None


class RateMeter:
    """
    Count-per-interval meter ("updates per second" on a stats panel).

    Counts accumulate through :meth:`add`; :meth:`sample` turns the count
    since the previous sample into a rate and starts a new interval.
    """

    def __init__(self) -> None:
        self._count = 0
        self._last_sample: Optional[float] = None
        self._rate = 0.0

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def pending_count(self) -> int:
        return self._count

    def add(self, count: int = 1) -> None:
        self._count += max(0, int(count))

    def sample(self, now: float) -> float:
        if self._last_sample is not None:
            self._rate = safe_rate(self._count, now - self._last_sample)
        self._last_sample = float(now)
        self._count = 0
        return self._rate

    def reset(self) -> None:
        self._count = 0
        self._last_sample = None
        self._rate = 0.0

"""sensefeed: throttled, visibility-aware sensor feeds for dashboards.

High-frequency accelerometer, gyroscope and fused motion events are batched
in bounded queues and handed to presentation models at a bounded rate, and
only while those models are on screen.
"""

from .core import (
    AggregatorConfig,
    BatchSnapshot,
    Channel,
    DrainPolicy,
    EmissionPolicy,
    Event,
    ManualScheduler,
    ThrottledAggregator,
    make_event,
)

__version__ = "0.1.0"

__all__ = [
    "AggregatorConfig",
    "BatchSnapshot",
    "Channel",
    "DrainPolicy",
    "EmissionPolicy",
    "Event",
    "ManualScheduler",
    "ThrottledAggregator",
    "make_event",
]

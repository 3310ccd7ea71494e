"""Core feed pipeline: events, bounded batch queues, timers and aggregators.

This package sits between an upstream sensor source and the presentation
models in :mod:`sensefeed.views`. It owns no rendering and no sensor
acquisition; it only decides *when* and *with what* a consumer is updated.
"""

from .aggregator import (
    AggregatorConfig,
    AggregatorState,
    AggregatorStats,
    DrainPolicy,
    EmissionPolicy,
    ThrottledAggregator,
)
from .events import Channel, Event, IntegratedReading, VectorReading, make_event
from .feeds import ChannelFeeds
from .ringbuffer import RingBuffer
from .scheduling import AsyncioScheduler, ManualScheduler, Scheduler, ThreadingScheduler
from .snapshots import BatchSnapshot, batch_snapshot, latest_payload
from .tabs import TabActivation

__all__ = [
    "AggregatorConfig",
    "AggregatorState",
    "AggregatorStats",
    "AsyncioScheduler",
    "BatchSnapshot",
    "Channel",
    "ChannelFeeds",
    "DrainPolicy",
    "EmissionPolicy",
    "Event",
    "IntegratedReading",
    "ManualScheduler",
    "RingBuffer",
    "Scheduler",
    "TabActivation",
    "ThreadingScheduler",
    "ThrottledAggregator",
    "VectorReading",
    "batch_snapshot",
    "latest_payload",
    "make_event",
]

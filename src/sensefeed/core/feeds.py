"""One independent aggregator per upstream channel."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .aggregator import AggregatorConfig, ThrottledAggregator
from .events import Channel, Event
from .scheduling import Scheduler

logger = logging.getLogger(__name__)


class ChannelFeeds:
    """
    Mapping of :class:`Channel` -> :class:`ThrottledAggregator`.

    Channels never share a queue or a timer, so there is no ordering
    between them; visibility and teardown are fanned out to all of them
    because they belong to the same on-screen consumer.
    """

    def __init__(self, aggregators: Mapping[Channel, ThrottledAggregator]) -> None:
        self._feeds: Dict[Channel, ThrottledAggregator] = {
            Channel.parse(channel): agg for channel, agg in aggregators.items()
        }

    @classmethod
    def build(
        cls,
        channels: Iterable[Channel | str],
        config: AggregatorConfig,
        scheduler: Scheduler,
        consumer_factory: Callable[[Channel], Callable[[object], None]],
        *,
        visible: bool = True,
    ) -> "ChannelFeeds":
        """Create one aggregator per channel, all sharing ``config``."""
        feeds: Dict[Channel, ThrottledAggregator] = {}
        for raw in channels:
            channel = Channel.parse(raw)
            feeds[channel] = ThrottledAggregator(
                config.with_overrides(name=f"{config.name}:{channel.value}"),
                scheduler,
                consumer_factory(channel),
                visible=visible,
            )
        return cls(feeds)

    def __contains__(self, channel: object) -> bool:
        return channel in self._feeds

    def __getitem__(self, channel: Channel | str) -> ThrottledAggregator:
        return self._feeds[Channel.parse(channel)]

    def __iter__(self) -> Iterator[Channel]:
        return iter(self._feeds)

    def __len__(self) -> int:
        return len(self._feeds)

    def items(self) -> Tuple[Tuple[Channel, ThrottledAggregator], ...]:
        return tuple(self._feeds.items())

    def get(self, channel: Channel | str) -> Optional[ThrottledAggregator]:
        try:
            return self._feeds.get(Channel.parse(channel))
        except ValueError:
            return None

    def on_event(self, event: Event) -> None:
        """Route ``event`` to its channel's aggregator; unknown channels are ignored."""
        feed = self._feeds.get(event.channel) if event.channel is not None else None
        if feed is None:
            logger.debug("No feed for channel %r; event ignored", event.channel)
            return
        feed.on_event(event)

    def set_visibility(self, visible: bool) -> None:
        for feed in self._feeds.values():
            feed.set_visibility(visible)

    def update_visible_fraction(self, fraction: float) -> bool:
        visible = False
        for feed in self._feeds.values():
            visible = feed.update_visible_fraction(fraction)
        return visible

    def reset(self) -> None:
        for feed in self._feeds.values():
            feed.reset()

    def dispose(self) -> None:
        for feed in self._feeds.values():
            feed.dispose()

    def stats(self) -> Dict[str, Dict[str, int]]:
        return {channel.value: feed.stats.as_dict() for channel, feed in self._feeds.items()}

"""Lazy per-tab feed activation.

Only the selected tab's feeds are visible. Feeds for a tab are built the
first time the tab is selected and then kept (hidden) until disposal, so a
tab switch never re-subscribes and never flushes queued data.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Hashable, Optional, Protocol, Set

logger = logging.getLogger(__name__)


class VisibilityGated(Protocol):
    def set_visibility(self, visible: bool) -> None:  # pragma: no cover - protocol
        ...

    def dispose(self) -> None:  # pragma: no cover - protocol
        ...


FeedFactory = Callable[[], VisibilityGated]


class TabActivation:
    def __init__(self, factories: Dict[Hashable, FeedFactory], *, initial: Hashable | None = None) -> None:
        if not factories:
            raise ValueError("at least one tab factory is required")
        self._factories = dict(factories)
        self._feeds: Dict[Hashable, VisibilityGated] = {}
        self._current: Optional[Hashable] = None
        if initial is not None:
            self.select(initial)

    @property
    def current(self) -> Optional[Hashable]:
        return self._current

    @property
    def initialized(self) -> Set[Hashable]:
        return set(self._feeds)

    def feed(self, tab: Hashable) -> Optional[VisibilityGated]:
        return self._feeds.get(tab)

    def select(self, tab: Hashable) -> VisibilityGated:
        """Make ``tab`` the visible one, building its feed on first use."""
        if tab not in self._factories:
            raise KeyError(f"unknown tab {tab!r}")
        previous = self._current
        if previous is not None and previous != tab:
            self._feeds[previous].set_visibility(False)

        feed = self._feeds.get(tab)
        if feed is None:
            logger.debug("Initializing feeds for tab %r", tab)
            feed = self._factories[tab]()
            self._feeds[tab] = feed
        feed.set_visibility(True)
        self._current = tab
        return feed

    def dispose(self) -> None:
        for tab, feed in self._feeds.items():
            logger.debug("Disposing feeds for tab %r", tab)
            feed.dispose()
        self._feeds.clear()
        self._current = None

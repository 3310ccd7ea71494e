"""Composition of the sensor test screen: tabs, feeds and their models.

Every tab owns the feeds its panels consume. Tabs are initialized lazily on
first selection, and only the selected tab's feeds are visible, so hidden
panels neither queue events nor get snapshots.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, List, Optional

from ..config.presets import ROLE_CHART, ROLE_LOG, ROLE_MONITOR, ROLE_SETTINGS, ROLE_STATS
from ..config.runtime import FeedConfig
from ..core.aggregator import ThrottledAggregator
from ..core.events import Channel, Event, make_event
from ..core.feeds import ChannelFeeds
from ..core.scheduling import Scheduler
from ..core.tabs import TabActivation, VisibilityGated
from .chart_feed import DEFAULT_MAX_DATA_POINTS, SensorChartModel
from .log_feed import DEFAULT_MAX_LOG_MESSAGES, RealtimeLogModel
from .perf_metrics import FrameTiming
from .perf_monitor import PerformanceMonitor
from .settings_form import DebouncedSettingsForm, FilterSettings, OptimizationSettings
from .stats_feed import PerformanceStatsModel

logger = logging.getLogger(__name__)

TAB_OVERVIEW = "overview"
TAB_CHARTS = "charts"
TAB_LOGS = "logs"
TAB_SETTINGS = "settings"
TABS = (TAB_OVERVIEW, TAB_CHARTS, TAB_LOGS, TAB_SETTINGS)


class FeedGroup:
    """Several visibility-gated members switched on and off together."""

    def __init__(self, members: Iterable[VisibilityGated]) -> None:
        self._members: List[VisibilityGated] = list(members)

    def set_visibility(self, visible: bool) -> None:
        for member in self._members:
            member.set_visibility(visible)

    def dispose(self) -> None:
        for member in self._members:
            member.dispose()


class SensorDashboard:
    def __init__(
        self,
        scheduler: Scheduler,
        *,
        config: FeedConfig | None = None,
        initial_tab: str = TAB_OVERVIEW,
        on_filter_settings: Callable[[FilterSettings], None] | None = None,
        on_optimization_settings: Callable[[OptimizationSettings], None] | None = None,
        perf_clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._scheduler = scheduler
        self._config = config or FeedConfig()
        self._perf_clock = perf_clock
        self._on_screen = True

        self.log = RealtimeLogModel(
            max_messages=self._config.role(ROLE_LOG).history or DEFAULT_MAX_LOG_MESSAGES
        )
        self.chart = SensorChartModel(
            max_points=self._config.role(ROLE_CHART).history or DEFAULT_MAX_DATA_POINTS
        )
        self.stats = PerformanceStatsModel()
        self.monitor = PerformanceMonitor()
        self.filter_form: Optional[DebouncedSettingsForm[FilterSettings]] = None
        self.optimization_form: Optional[DebouncedSettingsForm[OptimizationSettings]] = None
        self._on_filter_settings = on_filter_settings or self._log_applied
        self._on_optimization_settings = on_optimization_settings or self._log_applied

        self._stats_feed: Optional[ThrottledAggregator] = None
        self._chart_feed: Optional[ThrottledAggregator] = None
        self._log_feeds: Optional[ChannelFeeds] = None
        # The perf HUD overlays every tab, so its feed lives outside the tabs.
        self._monitor_feed: Optional[ThrottledAggregator] = self._aggregator(ROLE_MONITOR, self.monitor)

        self._tabs = TabActivation(
            {
                TAB_OVERVIEW: self._build_overview,
                TAB_CHARTS: self._build_charts,
                TAB_LOGS: self._build_logs,
                TAB_SETTINGS: self._build_settings,
            },
            initial=initial_tab,
        )

    # ----------------------------------------------------------------- tabs
    @property
    def current_tab(self) -> Optional[str]:
        return self._tabs.current  # type: ignore[return-value]

    @property
    def initialized_tabs(self) -> set:
        return self._tabs.initialized

    def select_tab(self, tab: str) -> None:
        feed = self._tabs.select(tab)
        if not self._on_screen:
            feed.set_visibility(False)

    def update_visible_fraction(self, fraction: float) -> bool:
        """Gate the selected tab on the on-screen fraction of the whole dashboard."""
        try:
            value = float(fraction)
        except (TypeError, ValueError):
            value = 0.0
        visible = value >= self._config.visibility_threshold
        self._on_screen = visible
        current = self.current_tab
        feed = self._tabs.feed(current) if current is not None else None
        if feed is not None:
            feed.set_visibility(visible)
        return visible

    def set_perf_hud_visible(self, visible: bool) -> None:
        if self._monitor_feed is not None:
            self._monitor_feed.set_visibility(visible)

    # --------------------------------------------------------------- ingest
    def on_event(self, event: Event) -> None:
        """Fan an upstream sensor event out to every initialized panel feed."""
        if self._stats_feed is not None:
            self._stats_feed.on_event(event)
        if self._chart_feed is not None and event.channel is Channel.INTEGRATED:
            self._chart_feed.on_event(event)
        self.log.on_event(event)

    def on_error(self, error: BaseException) -> None:
        """Upstream stream error: counted by the stats panel, logged."""
        logger.warning("Sensor stream error: %r", error)
        self.stats.record_error()

    def feed_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {}
        if self._stats_feed is not None:
            stats[ROLE_STATS] = self._stats_feed.stats.as_dict()
        if self._chart_feed is not None:
            stats[ROLE_CHART] = self._chart_feed.stats.as_dict()
        if self._log_feeds is not None:
            stats[ROLE_LOG] = self._log_feeds.stats()
        if self._monitor_feed is not None:
            stats[ROLE_MONITOR] = self._monitor_feed.stats.as_dict()
        return stats

    def dispose(self) -> None:
        self._tabs.dispose()
        if self._monitor_feed is not None:
            self._monitor_feed.dispose()
        self._stats_feed = None
        self._chart_feed = None
        self._log_feeds = None
        self._monitor_feed = None

    # ------------------------------------------------------------- builders
    def _aggregator(self, role: str, consumer: Callable[[Any], None]) -> ThrottledAggregator:
        return ThrottledAggregator(
            self._config.aggregator_config(role),
            self._scheduler,
            consumer,
            visible=False,
        )

    def _timed(self, consumer: Callable[[Any], None]) -> Callable[[Any], None]:
        """Wrap a panel consumer so each redraw is reported to the monitor feed."""

        def _consume(snapshot: Any) -> None:
            start = self._perf_clock()
            consumer(snapshot)
            end = self._perf_clock()
            monitor_feed = self._monitor_feed
            if monitor_feed is not None:
                latest = getattr(snapshot, "last_timestamp", None)
                monitor_feed.on_event(
                    make_event(FrameTiming(start, end, latest), timestamp_s=self._scheduler.now())
                )

        return _consume

    def _build_overview(self) -> VisibilityGated:
        self._stats_feed = self._aggregator(ROLE_STATS, self._timed(self.stats))
        return self._stats_feed

    def _build_charts(self) -> VisibilityGated:
        self._chart_feed = self._aggregator(ROLE_CHART, self._timed(self.chart))
        return self._chart_feed

    def _build_logs(self) -> VisibilityGated:
        feeds = ChannelFeeds.build(
            list(Channel),
            self._config.aggregator_config(ROLE_LOG),
            self._scheduler,
            lambda _channel: self._timed(self.log),
            visible=False,
        )
        self.log.attach(feeds)
        self._log_feeds = feeds
        return feeds

    def _build_settings(self) -> VisibilityGated:
        settings_config = self._config.aggregator_config(ROLE_SETTINGS)
        self.filter_form = DebouncedSettingsForm(
            FilterSettings(),
            self._scheduler,
            self._on_filter_settings,
            config=settings_config.with_overrides(name="settings:filter"),
        )
        self.optimization_form = DebouncedSettingsForm(
            OptimizationSettings(),
            self._scheduler,
            self._on_optimization_settings,
            config=settings_config.with_overrides(name="settings:optimization"),
        )
        return FeedGroup([self.filter_form, self.optimization_form])

    @staticmethod
    def _log_applied(settings: Any) -> None:
        logger.info("Applied %s", settings)

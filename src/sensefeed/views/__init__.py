"""Headless presentation models that consume aggregator snapshots.

Each model is the downstream collaborator of one feed role: it accepts
snapshots (including empty ones), keeps its own bounded history and
exposes plain data for whatever toolkit renders it.
"""

from .chart_feed import ChartSeries, SensorChartModel
from .dashboard import TABS, FeedGroup, SensorDashboard
from .log_feed import LogEntry, LogLevel, RealtimeLogModel, classify_level, format_event
from .perf_metrics import FrameTiming, PlotPerfStats
from .perf_monitor import PerformanceMonitor, PerformanceReport, performance_alerts
from .settings_form import DebouncedSettingsForm, FilterSettings, OptimizationSettings
from .stats_feed import PerformanceStatsModel

__all__ = [
    "ChartSeries",
    "DebouncedSettingsForm",
    "FeedGroup",
    "FilterSettings",
    "FrameTiming",
    "LogEntry",
    "LogLevel",
    "OptimizationSettings",
    "PerformanceMonitor",
    "PerformanceReport",
    "PerformanceStatsModel",
    "PlotPerfStats",
    "RealtimeLogModel",
    "SensorChartModel",
    "SensorDashboard",
    "TABS",
    "classify_level",
    "format_event",
    "performance_alerts",
]

"""Synthetic benchmark for the sensor dashboard feeds.

Drives :class:`~sensefeed.views.dashboard.SensorDashboard` with the
synthetic source and logs how many snapshots each panel received, how many
events the bounded queues evicted and what the process cost. Three timer
backends are available: ``virtual`` (as fast as possible on a virtual
clock), ``thread`` (wall clock, ``threading.Timer``) and ``qt`` (wall clock,
``QTimer`` on a ``QCoreApplication``).
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ..config.runtime import FeedConfig, load_config
from ..core.scheduling import ManualScheduler, Scheduler, ThreadingScheduler
from ..sources.synthetic import SyntheticSensorSource
from ..views.dashboard import TAB_OVERVIEW, TABS, SensorDashboard
from ..views.perf_system import get_process_cpu_percent

logger = logging.getLogger(__name__)

SCHEDULERS = ("virtual", "thread", "qt")

CSV_FIELDS = [
    "t",
    "events",
    "stats_batches",
    "stats_rate_hz",
    "input_rate_hz",
    "chart_points",
    "log_entries",
    "evicted",
    "dropped_invisible",
    "cpu_percent",
]


@dataclass
class BenchmarkOptions:
    rate_hz: float = 200.0
    duration_s: float = 10.0
    scheduler: str = "virtual"
    tab: str = TAB_OVERVIEW
    visible_fraction: float = 1.0
    log_interval_s: float = 1.0
    enable_log: bool = True
    perf_hud: bool = True
    # metrics CSV is written only when a path is set
    csv_path: Optional[Path] = None
    config: Optional[FeedConfig] = None


class FeedBenchmark:
    """Shared bookkeeping for every scheduler backend."""

    def __init__(self, options: BenchmarkOptions, scheduler: Scheduler) -> None:
        self.options = options
        self.scheduler = scheduler
        self.source = SyntheticSensorSource(rate_hz=options.rate_hz)
        self.dashboard = SensorDashboard(
            scheduler,
            config=options.config,
            initial_tab=options.tab,
        )
        self.dashboard.set_perf_hud_visible(options.perf_hud)
        self.dashboard.stats.report_source_rate(self.source.rate_hz * len(self.source.channels))
        if options.enable_log:
            self.dashboard.log.start()
        self.rows: List[Dict[str, float]] = []
        self.events_sent = 0
        self._started_at: Optional[float] = None

    def ingest(self, timestamp_s: float) -> None:
        if self._started_at is None:
            self._started_at = timestamp_s
            self._apply_visibility()
        for event in self.source.next_events(timestamp_s):
            self.dashboard.on_event(event)
            self.events_sent += 1

    def log_row(self, elapsed_s: float) -> Dict[str, float]:
        self.dashboard.stats.refresh_rate(self.scheduler.now())
        evicted = 0
        dropped = 0
        for role_stats in self.dashboard.feed_stats().values():
            per_feed = role_stats.values() if _is_nested(role_stats) else [role_stats]
            for feed_stats in per_feed:
                evicted += int(feed_stats["evicted"])
                dropped += int(feed_stats["dropped_invisible"])

        cpu_percent = get_process_cpu_percent()

        row = {
            "t": elapsed_s,
            "events": float(self.events_sent),
            "stats_batches": float(self.dashboard.stats.batches),
            "stats_rate_hz": self.dashboard.stats.update_rate,
            "input_rate_hz": self.dashboard.stats.input_rate_hz,
            "chart_points": float(len(self.dashboard.chart)),
            "log_entries": float(len(self.dashboard.log)),
            "evicted": float(evicted),
            "dropped_invisible": float(dropped),
            "cpu_percent": cpu_percent,
        }
        self.rows.append(row)
        logger.info(
            (
                "[benchmark] t=%5.1fs events=%6d batches=%4d rate=%7.1fHz chart=%3d log=%3d "
                "evicted=%6d hidden=%6d cpu=%5.1f%%"
            ),
            elapsed_s,
            self.events_sent,
            self.dashboard.stats.batches,
            self.dashboard.stats.update_rate,
            len(self.dashboard.chart),
            len(self.dashboard.log),
            evicted,
            dropped,
            cpu_percent,
        )
        return row

    def finish(self) -> None:
        report = self.dashboard.monitor.report
        if report is not None:
            logger.info("[benchmark] perf HUD: %s", ", ".join(report.alerts))
        self.dashboard.dispose()
        if self.options.csv_path and self.rows:
            write_csv(self.options.csv_path, self.rows)
        logger.info("[benchmark] completed; duration %.1f s", self.options.duration_s)

    def _apply_visibility(self) -> None:
        fraction = float(self.options.visible_fraction)
        if not self.dashboard.update_visible_fraction(fraction):
            logger.info("[benchmark] dashboard hidden (visible fraction %.2f)", fraction)


def _is_nested(stats: Dict) -> bool:
    return bool(stats) and all(isinstance(v, dict) for v in stats.values())


def write_csv(path: Path, rows: Sequence[Dict[str, float]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows({k: row.get(k, 0.0) for k in CSV_FIELDS} for row in rows)
    logger.info("[benchmark] metrics written to %s", path)


# ------------------------------------------------------------------ runners
def run_virtual(options: BenchmarkOptions) -> FeedBenchmark:
    """Run on a virtual clock; completes as fast as the CPU allows."""
    scheduler = ManualScheduler()
    bench = FeedBenchmark(options, scheduler)
    interval = bench.source.interval_s
    total = int(round(options.duration_s * options.rate_hz))
    next_log = options.log_interval_s
    for i in range(total):
        t = i * interval
        scheduler.advance_to(t)
        bench.ingest(t)
        if t >= next_log:
            bench.log_row(t)
            next_log += options.log_interval_s
    scheduler.advance_to(options.duration_s)
    bench.log_row(options.duration_s)
    bench.finish()
    return bench


def run_threaded(options: BenchmarkOptions, *, sleep: Callable[[float], None] = time.sleep) -> FeedBenchmark:
    """Run in wall-clock time with ``threading.Timer`` emission timers."""
    scheduler = ThreadingScheduler()
    bench = FeedBenchmark(options, scheduler)
    interval = bench.source.interval_s
    start = scheduler.now()
    next_sample = start
    next_log = start + options.log_interval_s
    while True:
        now = scheduler.now()
        if now - start >= options.duration_s:
            break
        if now >= next_sample:
            bench.ingest(next_sample)
            next_sample += interval
        if now >= next_log:
            bench.log_row(now - start)
            next_log += options.log_interval_s
        sleep(max(0.0, min(next_sample, next_log) - scheduler.now()))
    bench.log_row(scheduler.now() - start)
    bench.finish()
    return bench


def run_qt(options: BenchmarkOptions) -> FeedBenchmark:
    """Run on a ``QCoreApplication`` event loop with ``QTimer`` timers."""
    from PySide6.QtCore import QCoreApplication, QTimer, Qt

    from ..qt.scheduler import QtScheduler

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    scheduler = QtScheduler()
    bench = FeedBenchmark(options, scheduler)
    start = scheduler.now()

    source_timer = QTimer()
    source_timer.setTimerType(Qt.PreciseTimer)
    source_timer.setInterval(max(1, int(round(1000.0 / max(1.0, options.rate_hz)))))
    source_timer.timeout.connect(lambda: bench.ingest(scheduler.now()))

    log_timer = QTimer()
    log_timer.setInterval(int(max(100, round(options.log_interval_s * 1000.0))))
    log_timer.timeout.connect(lambda: bench.log_row(scheduler.now() - start))

    def _finish() -> None:
        source_timer.stop()
        log_timer.stop()
        bench.log_row(scheduler.now() - start)
        bench.finish()
        app.quit()

    source_timer.start()
    log_timer.start()
    QTimer.singleShot(int(max(0.0, options.duration_s) * 1000.0), _finish)
    app.exec()
    return bench


RUNNERS: Dict[str, Callable[[BenchmarkOptions], FeedBenchmark]] = {
    "virtual": run_virtual,
    "thread": run_threaded,
    "qt": run_qt,
}


# ---------------------------------------------------------------------- cli
def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="sensefeed synthetic dashboard benchmark")
    parser.add_argument("--rate", type=float, default=200.0, help="Synthetic input rate in Hz (default: 200)")
    parser.add_argument("--duration", type=float, default=10.0, help="Benchmark duration in seconds (default: 10)")
    parser.add_argument(
        "--scheduler",
        choices=SCHEDULERS,
        default="virtual",
        help="Timer backend (default: virtual)",
    )
    parser.add_argument("--tab", choices=TABS, default=TAB_OVERVIEW, help="Dashboard tab to show")
    parser.add_argument(
        "--visible-fraction",
        type=float,
        default=1.0,
        help="On-screen fraction of the dashboard (default: 1.0)",
    )
    parser.add_argument(
        "--log-interval",
        type=float,
        default=1.0,
        help="Seconds between benchmark log snapshots (default: 1.0)",
    )
    parser.add_argument("--config", type=str, default=None, help="YAML feed configuration")
    parser.add_argument("--no-log-panel", action="store_true", help="Keep the log panel stopped")
    parser.add_argument("--no-perf-hud", action="store_true", help="Hide the performance HUD feed")
    parser.add_argument("--csv", type=str, default=None, help="CSV file for benchmark metrics")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    options = BenchmarkOptions(
        rate_hz=max(1.0, float(args.rate)),
        duration_s=max(0.0, float(args.duration)),
        scheduler=args.scheduler,
        tab=args.tab,
        visible_fraction=float(args.visible_fraction),
        log_interval_s=max(0.1, float(args.log_interval)),
        enable_log=not args.no_log_panel,
        perf_hud=not args.no_perf_hud,
        csv_path=Path(args.csv).expanduser().resolve() if args.csv else None,
        config=load_config(args.config),
    )
    logger.info(
        "[benchmark] running at %.1f Hz for %.1f s, scheduler=%s, tab=%s",
        options.rate_hz,
        options.duration_s,
        options.scheduler,
        options.tab,
    )
    RUNNERS[options.scheduler](options)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

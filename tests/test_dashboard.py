import pytest

from sensefeed.core.scheduling import ManualScheduler
from sensefeed.sources.synthetic import SyntheticSensorSource
from sensefeed.views.dashboard import TAB_CHARTS, TAB_LOGS, TAB_OVERVIEW, TAB_SETTINGS, SensorDashboard
from sensefeed.views.settings_form import FilterSettings


def _feed(dashboard: SensorDashboard, source: SyntheticSensorSource, scheduler: ManualScheduler, samples: int) -> None:
    for _ in range(samples):
        for event in source.next_events(scheduler.now()):
            dashboard.on_event(event)


@pytest.fixture
def setup():
    scheduler = ManualScheduler()
    applied: list = []
    dashboard = SensorDashboard(scheduler, on_filter_settings=applied.append)
    source = SyntheticSensorSource(rate_hz=100.0)
    yield dashboard, source, scheduler, applied
    dashboard.dispose()


def test_overview_is_built_eagerly_and_others_lazily(setup) -> None:
    dashboard, _, _, _ = setup
    assert dashboard.current_tab == TAB_OVERVIEW
    assert dashboard.initialized_tabs == {TAB_OVERVIEW}
    assert dashboard.filter_form is None


def test_stats_panel_counts_evicted_events(setup) -> None:
    dashboard, source, scheduler, _ = setup
    _feed(dashboard, source, scheduler, 10)
    scheduler.advance(0.2)
    assert dashboard.stats.batches == 1
    assert dashboard.stats.total_events == 30
    assert dashboard.feed_stats()["stats"]["evicted"] == 10


def test_hidden_tabs_receive_nothing(setup) -> None:
    dashboard, source, scheduler, _ = setup
    dashboard.select_tab(TAB_CHARTS)
    _feed(dashboard, source, scheduler, 5)
    scheduler.advance(0.05)
    assert len(dashboard.chart) == 1
    assert dashboard.stats.batches == 0
    assert dashboard.feed_stats()["stats"]["dropped_invisible"] == 15

    dashboard.select_tab(TAB_OVERVIEW)
    _feed(dashboard, source, scheduler, 1)
    scheduler.advance(0.2)
    assert dashboard.stats.batches == 1
    assert len(dashboard.chart) == 1


def test_logs_tab_collects_batches_once_started(setup) -> None:
    dashboard, source, scheduler, _ = setup
    dashboard.select_tab(TAB_LOGS)
    _feed(dashboard, source, scheduler, 2)
    scheduler.advance(0.1)
    assert len(dashboard.log) == 0

    dashboard.log.start()
    _feed(dashboard, source, scheduler, 2)
    scheduler.advance(0.1)
    assert len(dashboard.log) == 1 + 6
    assert set(dashboard.feed_stats()["log"]) == {"accelerometer", "gyroscope", "integrated"}


def test_settings_tab_applies_settled_filter_settings(setup) -> None:
    dashboard, _, scheduler, applied = setup
    dashboard.select_tab(TAB_SETTINGS)
    form = dashboard.filter_form
    assert form is not None
    form.edit(enable_median_filter=True)
    scheduler.advance(0.3)
    assert form.apply()
    assert applied == [FilterSettings(enable_median_filter=True)]

    dashboard.select_tab(TAB_OVERVIEW)
    assert form.edit(median_window=11).median_window == 5


def test_visible_fraction_gates_current_tab(setup) -> None:
    dashboard, source, scheduler, _ = setup
    assert dashboard.update_visible_fraction(0.05) is False
    _feed(dashboard, source, scheduler, 3)
    scheduler.advance(1.0)
    assert dashboard.stats.batches == 0
    assert dashboard.update_visible_fraction(0.5) is True


def test_perf_hud_reports_redraws_when_visible(setup) -> None:
    dashboard, source, scheduler, _ = setup
    dashboard.set_perf_hud_visible(True)
    for _ in range(10):
        _feed(dashboard, source, scheduler, 2)
        scheduler.advance(0.25)
    report = dashboard.monitor.report
    assert report is not None
    assert report.rebuild_count >= 8
    assert dashboard.feed_stats()["monitor"]["emitted"] == 1


def test_switching_tabs_while_dashboard_hidden_keeps_new_tab_hidden(setup) -> None:
    dashboard, source, scheduler, _ = setup
    dashboard.update_visible_fraction(0.0)
    dashboard.select_tab(TAB_CHARTS)
    for _ in range(5):
        _feed(dashboard, source, scheduler, 1)
        scheduler.advance(0.05)
    assert len(dashboard.chart) == 0
    assert dashboard.feed_stats()["chart"]["accepted"] == 0

    dashboard.update_visible_fraction(1.0)
    _feed(dashboard, source, scheduler, 1)
    scheduler.advance(0.05)
    assert len(dashboard.chart) == 1

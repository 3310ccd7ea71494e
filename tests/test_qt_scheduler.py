import pytest

QtCore = pytest.importorskip("PySide6.QtCore")

from sensefeed.core.aggregator import AggregatorConfig, ThrottledAggregator  # noqa: E402
from sensefeed.core.events import make_event  # noqa: E402
from sensefeed.qt.scheduler import QtScheduler  # noqa: E402


@pytest.fixture(scope="module")
def app():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


def _spin(app, loop_ms: int) -> None:
    loop = QtCore.QEventLoop()
    QtCore.QTimer.singleShot(loop_ms, loop.quit)
    loop.exec()


def test_qt_scheduler_fires_single_shot_callbacks(app) -> None:
    scheduler = QtScheduler()
    fired = []
    scheduler.call_later(0.01, lambda: fired.append("a"))
    cancelled = scheduler.call_later(0.01, lambda: fired.append("b"))
    cancelled.cancel()
    assert scheduler.pending == 1
    _spin(app, 100)
    assert fired == ["a"]
    assert scheduler.pending == 0
    assert not cancelled.active


def test_qt_scheduler_drives_aggregator(app) -> None:
    scheduler = QtScheduler()
    snapshots = []
    agg = ThrottledAggregator(AggregatorConfig(interval_s=0.02), scheduler, snapshots.append)
    for i in range(5):
        agg.on_event(make_event(i, timestamp_s=scheduler.now()))
    _spin(app, 150)
    assert len(snapshots) == 1
    assert snapshots[0].payloads() == (0, 1, 2, 3, 4)
    assert scheduler.now() > 0.0

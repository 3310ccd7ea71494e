import math

import pytest

from sensefeed.analysis.rate import RateController, RateMeter, safe_rate
from sensefeed.core.events import make_event


def test_rate_controller_estimates_rate_for_regular_arrivals() -> None:
    rc = RateController(window_size=100)
    t = 0.0
    for _ in range(100):
        rc.observe(t)
        t += 0.01  # 100 Hz
    est = rc.estimate()
    assert est.quality == "window_only"
    assert 90.0 < est.effective_hz < 110.0


def test_rate_controller_fuses_reported_and_window_rates() -> None:
    rc = RateController(window_size=10, default_hz=5.0)
    assert rc.estimate().effective_hz == 5.0
    assert rc.estimate().quality == "default"
    rc.report_rate(20.0)
    assert rc.estimate().quality == "reported_only"
    rc.observe_events(make_event(i, timestamp_s=0.1 * i) for i in range(4))
    est = rc.estimate()
    assert est.quality == "fused"
    assert est.effective_hz == pytest.approx(15.0)
    rc.reset()
    assert rc.window_size == 0
    assert rc.estimate().quality == "default"


def test_rate_controller_window_needs_positive_span() -> None:
    rc = RateController(window_size=4, default_hz=1.5)
    for _ in range(3):
        rc.observe(2.0)
    assert rc.window_hz() is None
    assert rc.estimate().effective_hz == 1.5
    assert rc.window_span_s == 0.0


def test_rate_controller_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        RateController(window_size=1)
    with pytest.raises(ValueError):
        RateController().report_rate(-1.0)


@pytest.mark.parametrize("elapsed", [0.0, -1.0, float("nan"), float("inf")])
def test_safe_rate_is_zero_for_meaningless_elapsed(elapsed) -> None:
    assert safe_rate(10, elapsed) == 0.0


def test_safe_rate_divides() -> None:
    assert safe_rate(30, 1.5) == pytest.approx(20.0)
    assert safe_rate(float("nan"), 1.0) == 0.0
    assert math.isfinite(safe_rate(1e308, 1e-308))


def test_rate_meter_samples_counts_per_interval() -> None:
    meter = RateMeter()
    meter.add(50)
    assert meter.sample(0.0) == 0.0
    meter.add(30)
    meter.add(10)
    assert meter.pending_count == 40
    assert meter.sample(2.0) == pytest.approx(20.0)
    assert meter.sample(2.0) == 0.0
    meter.reset()
    assert meter.rate == 0.0

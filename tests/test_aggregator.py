import logging
import threading

import pytest

from sensefeed.core.aggregator import (
    AggregatorConfig,
    AggregatorState,
    DrainPolicy,
    EmissionPolicy,
    ThrottledAggregator,
)
from sensefeed.core.events import make_event
from sensefeed.core.scheduling import ManualScheduler
from sensefeed.core.snapshots import BatchSnapshot


def _make(config: AggregatorConfig | None = None, *, visible: bool = True):
    scheduler = ManualScheduler()
    snapshots: list[BatchSnapshot] = []
    agg = ThrottledAggregator(config or AggregatorConfig(), scheduler, snapshots.append, visible=visible)
    return agg, scheduler, snapshots


def _push(agg, scheduler, values) -> None:
    for value in values:
        agg.on_event(make_event(value, timestamp_s=scheduler.now()))


def test_queue_holds_newest_max_queue_events_in_order() -> None:
    agg, scheduler, _ = _make(AggregatorConfig(max_queue=5))
    _push(agg, scheduler, range(1, 9))
    assert [e.payload for e in agg.queued()] == [4, 5, 6, 7, 8]
    assert agg.stats.evicted == 3
    assert agg.stats.accepted == 8


def test_single_tick_delivers_newest_twenty_of_twenty_five() -> None:
    agg, scheduler, snapshots = _make(AggregatorConfig(max_queue=20, interval_s=0.1))
    _push(agg, scheduler, range(1, 26))
    scheduler.advance(0.1)
    assert len(snapshots) == 1
    assert snapshots[0].payloads() == tuple(range(6, 26))
    assert snapshots[0].evicted == 5
    assert snapshots[0].sequence == 1
    assert len(agg) == 0
    assert agg.state is AggregatorState.IDLE


def test_periodic_batch_arms_only_once_per_batch() -> None:
    agg, scheduler, snapshots = _make(AggregatorConfig(interval_s=0.1))
    _push(agg, scheduler, ["a"])
    scheduler.advance(0.05)
    _push(agg, scheduler, ["b"])
    scheduler.advance(0.05)
    assert [s.payloads() for s in snapshots] == [("a", "b")]
    assert scheduler.pending == 0


def test_debounce_emits_once_after_burst_goes_quiet() -> None:
    config = AggregatorConfig(max_queue=1, interval_s=0.3, policy=EmissionPolicy.DEBOUNCE)
    agg, scheduler, snapshots = _make(config)
    _push(agg, scheduler, ["first"])
    scheduler.advance(0.1)
    _push(agg, scheduler, ["second"])
    scheduler.advance(0.29)
    assert snapshots == []
    scheduler.advance(0.02)
    assert len(snapshots) == 1
    assert snapshots[0].payloads() == ("second",)
    assert snapshots[0].emitted_at == pytest.approx(0.4)


def test_invisible_events_are_dropped() -> None:
    agg, scheduler, snapshots = _make(visible=False)
    _push(agg, scheduler, range(3))
    scheduler.advance(1.0)
    assert snapshots == []
    assert len(agg) == 0
    assert agg.stats.dropped_invisible == 3
    assert agg.state is AggregatorState.IDLE


def test_tick_while_invisible_is_dropped_and_not_rearmed() -> None:
    agg, scheduler, snapshots = _make(AggregatorConfig(interval_s=0.1))
    _push(agg, scheduler, [1, 2])
    agg.set_visibility(False)
    scheduler.advance(0.5)
    assert snapshots == []
    assert agg.stats.ticks_dropped == 1
    assert scheduler.pending == 0
    # Hiding does not flush; the batch goes out with the next visible tick.
    assert [e.payload for e in agg.queued()] == [1, 2]
    agg.set_visibility(True)
    _push(agg, scheduler, [3])
    scheduler.advance(0.1)
    assert snapshots[0].payloads() == (1, 2, 3)


def test_reset_then_ticks_deliver_nothing() -> None:
    agg, scheduler, snapshots = _make()
    _push(agg, scheduler, range(4))
    agg.reset()
    for _ in range(3):
        agg.on_tick()
    scheduler.advance(1.0)
    assert snapshots == []
    assert len(agg) == 0


def test_rapid_visibility_toggling_never_exceeds_bound_or_leaks() -> None:
    agg, scheduler, snapshots = _make(AggregatorConfig(max_queue=4, interval_s=0.01))
    delivered_while_hidden = []

    def consumer(snapshot: BatchSnapshot) -> None:
        if not agg.visible:
            delivered_while_hidden.append(snapshot)
        snapshots.append(snapshot)

    agg._consumer = consumer
    for i in range(200):
        agg.set_visibility(i % 3 != 0)
        agg.on_event(make_event(i, timestamp_s=scheduler.now()))
        assert len(agg) <= 4
        scheduler.advance(0.004)
    assert delivered_while_hidden == []
    assert all(s.count <= 4 for s in snapshots)


def test_retain_last_keeps_newest_event_after_emission() -> None:
    config = AggregatorConfig(interval_s=0.05, drain=DrainPolicy.RETAIN_LAST, retain_last=1)
    agg, scheduler, snapshots = _make(config)
    _push(agg, scheduler, ["a", "b", "c"])
    scheduler.advance(0.05)
    assert snapshots[0].payloads() == ("a", "b", "c")
    assert [e.payload for e in agg.queued()] == ["c"]
    _push(agg, scheduler, ["d"])
    scheduler.advance(0.05)
    assert snapshots[1].payloads() == ("c", "d")


def test_consumer_exception_is_logged_and_aggregator_keeps_working(caplog) -> None:
    scheduler = ManualScheduler()
    calls = []

    def consumer(snapshot: BatchSnapshot) -> None:
        calls.append(snapshot)
        if len(calls) == 1:
            raise RuntimeError("boom")

    agg = ThrottledAggregator(AggregatorConfig(interval_s=0.1, name="flaky"), scheduler, consumer)
    _push(agg, scheduler, [1])
    scheduler.advance(0.1)
    _push(agg, scheduler, [2])
    scheduler.advance(0.1)
    assert len(calls) == 2
    assert "consumer failed" in caplog.text


def test_custom_snapshot_builder_and_dispose() -> None:
    scheduler = ManualScheduler()
    seen = []
    agg = ThrottledAggregator(
        AggregatorConfig(interval_s=0.1),
        scheduler,
        seen.append,
        snapshot_builder=lambda events: sum(e.payload for e in events),
    )
    _push(agg, scheduler, [1, 2, 3])
    scheduler.advance(0.1)
    assert seen == [6]
    agg.dispose()
    _push(agg, scheduler, [4])
    scheduler.advance(0.1)
    assert seen == [6]
    assert agg.disposed


def test_update_visible_fraction_uses_inclusive_threshold() -> None:
    agg, _, _ = _make(AggregatorConfig(visibility_threshold=0.1))
    assert agg.update_visible_fraction(0.1) is True
    assert agg.update_visible_fraction(0.09) is False
    assert agg.update_visible_fraction(float("nan")) is False
    assert agg.update_visible_fraction(1.0) is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_queue": 0},
        {"interval_s": -0.1},
        {"interval_s": float("inf")},
        {"retain_last": 21},
        {"visibility_threshold": 1.5},
    ],
)
def test_misconfiguration_raises_value_error(kwargs) -> None:
    with pytest.raises(ValueError):
        AggregatorConfig(**kwargs)


def test_config_parses_policy_names() -> None:
    config = AggregatorConfig(policy="debounce", drain="retain", retain_last=1)
    assert config.policy is EmissionPolicy.DEBOUNCE
    assert config.drain is DrainPolicy.RETAIN_LAST
    assert EmissionPolicy.parse("periodic") is EmissionPolicy.PERIODIC_BATCH


class _HookedLock:
    """RLock that runs a one-shot hook right after its outermost release."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        self.after_release = None

    def __enter__(self) -> "_HookedLock":
        self._lock.acquire()
        self._depth += 1
        return self

    def __exit__(self, *exc) -> bool:
        self._depth -= 1
        self._lock.release()
        if self._depth == 0 and self.after_release is not None:
            hook, self.after_release = self.after_release, None
            hook()
        return False


def test_event_racing_a_firing_debounce_timer_does_not_shorten_the_delay() -> None:
    config = AggregatorConfig(interval_s=0.3, policy=EmissionPolicy.DEBOUNCE)
    agg, scheduler, snapshots = _make(config)
    lock = _HookedLock()
    agg._lock = lock

    _push(agg, scheduler, ["a"])
    # Another thread's event lands the moment the timer callback lets go of the lock.
    lock.after_release = lambda: _push(agg, scheduler, ["b"])
    scheduler.advance(0.3)

    assert [(s.payloads(), s.emitted_at) for s in snapshots] == [(("a",), pytest.approx(0.3))]
    scheduler.advance(0.3)
    assert snapshots[1].payloads() == ("b",)
    assert snapshots[1].emitted_at == pytest.approx(0.6)


def test_stale_timer_generation_is_ignored() -> None:
    config = AggregatorConfig(interval_s=0.3, policy=EmissionPolicy.DEBOUNCE)
    agg, scheduler, snapshots = _make(config)
    _push(agg, scheduler, ["a"])
    stale = agg._generation
    _push(agg, scheduler, ["b"])
    agg._tick(stale)
    assert snapshots == []
    assert agg.state is AggregatorState.PENDING


def test_full_drain_empties_queue_on_emission() -> None:
    agg, scheduler, snapshots = _make(AggregatorConfig(interval_s=0.1))
    _push(agg, scheduler, [1, 2])
    scheduler.advance(0.1)
    assert snapshots[0].payloads() == (1, 2)
    assert agg.queued() == ()


def test_snapshot_timing_is_logged_only_in_debug_mode(monkeypatch, caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="sensefeed.core.aggregator")
    monkeypatch.delenv("SENSEFEED_DEBUG", raising=False)
    agg, scheduler, _ = _make(AggregatorConfig(interval_s=0.1, name="timed"))
    _push(agg, scheduler, [1])
    scheduler.advance(0.1)
    assert "build snapshot took" not in caplog.text

    monkeypatch.setenv("SENSEFEED_DEBUG", "1")
    _push(agg, scheduler, [2])
    scheduler.advance(0.1)
    assert "[DEBUG] timed: build snapshot took" in caplog.text

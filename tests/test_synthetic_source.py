import pytest

from sensefeed.core.events import Channel, IntegratedReading, VectorReading
from sensefeed.sources.synthetic import SyntheticSensorSource, motion_state_for


def test_source_emits_one_event_per_channel_per_instant() -> None:
    source = SyntheticSensorSource(rate_hz=50.0)
    events = source.next_events(1.0)
    assert [e.channel for e in events] == [Channel.ACCELEROMETER, Channel.GYROSCOPE, Channel.INTEGRATED]
    assert all(e.timestamp_s == 1.0 for e in events)
    assert isinstance(events[0].payload, VectorReading)
    fused = events[2].payload
    assert isinstance(fused, IntegratedReading)
    assert 0.0 <= fused.combined_intensity <= 1.0
    assert fused.motion_quality == "synthetic"


def test_source_is_deterministic_and_counts_instants() -> None:
    a = SyntheticSensorSource(rate_hz=10.0, channels=["accel"])
    b = SyntheticSensorSource(rate_hz=10.0, channels=["accel"])
    assert a.events_until(0.0, 1.0) == b.events_until(0.0, 1.0)
    assert a.samples_emitted == 10
    a.reset()
    assert a.samples_emitted == 0


def test_source_validation_and_motion_states() -> None:
    with pytest.raises(ValueError):
        SyntheticSensorSource(rate_hz=0)
    assert motion_state_for(0.05) == "stationary"
    assert motion_state_for(0.2) == "walking"
    assert motion_state_for(0.9) == "running"

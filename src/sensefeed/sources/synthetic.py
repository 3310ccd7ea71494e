"""Synthetic accelerometer / gyroscope / fused event generator."""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence

from ..core.events import Channel, Event, IntegratedReading, VectorReading

# Full-scale references used to squash magnitudes into a 0..1 intensity.
GRAVITY_MS2 = 9.81
GYRO_FULL_SCALE_DPS = 250.0


def motion_state_for(intensity: float) -> str:
    if intensity < 0.1:
        return "stationary"
    if intensity < 0.4:
        return "walking"
    return "running"


class SyntheticSensorSource:
    """
    Deterministic sine/cosine motion at a fixed rate.

    Each sample instant yields one event per requested channel, all sharing
    the instant's timestamp. Phase advances one step per sample so the
    output only depends on the sample index.
    """

    def __init__(
        self,
        rate_hz: float = 100.0,
        channels: Iterable[Channel | str] = tuple(Channel),
        *,
        amplitude: float = 2.0,
        gyro_amplitude: float = 60.0,
    ) -> None:
        if rate_hz <= 0:
            raise ValueError("rate_hz must be positive")
        self.rate_hz = float(rate_hz)
        self.channels: Sequence[Channel] = tuple(Channel.parse(ch) for ch in channels)
        self.amplitude = float(amplitude)
        self.gyro_amplitude = float(gyro_amplitude)
        self._phase_step = 2.0 * math.pi / self.rate_hz
        self._index = 0

    @property
    def interval_s(self) -> float:
        return 1.0 / self.rate_hz

    @property
    def samples_emitted(self) -> int:
        return self._index

    def next_events(self, timestamp_s: float) -> List[Event]:
        """Produce the events of the next sample instant."""
        phase = self._index * self._phase_step
        self._index += 1

        accel = VectorReading(
            x=self.amplitude * math.sin(phase),
            y=self.amplitude * math.sin(phase + 0.5),
            z=GRAVITY_MS2 + self.amplitude * math.sin(phase + 1.0),
        )
        gyro = VectorReading(
            x=self.gyro_amplitude * math.cos(phase),
            y=self.gyro_amplitude * math.cos(phase + 0.5),
            z=self.gyro_amplitude * math.cos(phase + 1.0),
        )

        events: List[Event] = []
        for channel in self.channels:
            if channel is Channel.ACCELEROMETER:
                payload: object = accel
            elif channel is Channel.GYROSCOPE:
                payload = gyro
            else:
                payload = self._integrate(accel, gyro)
            events.append(Event(payload=payload, timestamp_s=float(timestamp_s), channel=channel))
        return events

    def events_until(self, start_s: float, end_s: float) -> List[Event]:
        """All events for sample instants in ``[start_s, end_s)`` at the source rate."""
        events: List[Event] = []
        count = max(0, int(math.ceil((end_s - start_s) * self.rate_hz - 1e-9)))
        for i in range(count):
            events.extend(self.next_events(start_s + i * self.interval_s))
        return events

    def reset(self) -> None:
        self._index = 0

    @staticmethod
    def _integrate(accel: VectorReading, gyro: VectorReading) -> IntegratedReading:
        movement = abs(accel.magnitude() - GRAVITY_MS2)
        rotation = gyro.magnitude()
        intensity = 0.5 * min(1.0, movement / GRAVITY_MS2) + 0.5 * min(1.0, rotation / GYRO_FULL_SCALE_DPS)
        return IntegratedReading(
            movement_magnitude=movement,
            rotation_magnitude=rotation,
            combined_intensity=intensity,
            motion_state=motion_state_for(intensity),
            motion_quality="synthetic",
        )

"""Debounced settings forms for the filter and optimization panels."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Generic, Optional, TypeVar

from ..config.presets import ROLE_SETTINGS, preset_config
from ..core.aggregator import AggregatorConfig, ThrottledAggregator
from ..core.events import make_event
from ..core.scheduling import Scheduler
from ..core.snapshots import latest_payload

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FilterSettings:
    """Smoothing filter knobs handed to the (external) data filter."""

    enable_moving_average: bool = True
    enable_low_pass_filter: bool = True
    enable_kalman_filter: bool = False
    enable_median_filter: bool = False
    enable_outlier_removal: bool = True
    moving_average_window: int = 5
    low_pass_alpha: float = 0.1
    median_window: int = 5
    outlier_threshold: float = 3.0
    kalman_process_noise: float = 0.01
    kalman_measurement_noise: float = 0.1


@dataclass(frozen=True)
class OptimizationSettings:
    """Sampling/battery knobs handed to the (external) optimization manager."""

    enable_adaptive_sampling: bool = True
    enable_battery_optimization: bool = True
    enable_smart_filtering: bool = True
    enable_background_processing: bool = False
    enable_data_compression: bool = False
    enable_selective_processing: bool = True
    base_sampling_rate: int = 50
    max_sampling_rate: int = 100
    min_sampling_rate: int = 10
    battery_threshold: float = 0.2
    motion_threshold: float = 0.1
    background_processing_interval: int = 1000


class DebouncedSettingsForm(Generic[T]):
    """
    Form state where edits only settle after the user stops changing them.

    Every :meth:`edit` produces a new draft and pushes it through a
    debounce-policy aggregator; when the burst goes quiet the newest draft
    becomes :attr:`current` and :attr:`has_changes` turns on. Nothing reaches
    the owner until :meth:`apply`. Edits made while the form is off-screen
    are ignored, like every other hidden consumer.
    """

    def __init__(
        self,
        initial: T,
        scheduler: Scheduler,
        on_settings_changed: Callable[[T], None],
        *,
        config: AggregatorConfig | None = None,
    ) -> None:
        self._applied = initial
        self._current = initial
        self._draft = initial
        self._on_settings_changed = on_settings_changed
        self._scheduler = scheduler
        self.has_changes = False
        self._aggregator: ThrottledAggregator[Optional[T]] = ThrottledAggregator(
            config or preset_config(ROLE_SETTINGS),
            scheduler,
            self._on_settled,
            snapshot_builder=latest_payload,
        )

    @property
    def current(self) -> T:
        return self._current

    @property
    def draft(self) -> T:
        return self._draft

    @property
    def applied(self) -> T:
        return self._applied

    @property
    def aggregator(self) -> ThrottledAggregator[Optional[T]]:
        return self._aggregator

    def edit(self, **changes: Any) -> T:
        """Apply field ``changes`` on top of the newest draft and debounce it."""
        if not self._aggregator.visible:
            return self._draft
        self._validate_fields(changes)
        self._draft = replace(self._draft, **changes)
        self._aggregator.on_event(make_event(self._draft, timestamp_s=self._scheduler.now()))
        return self._draft

    def set_visibility(self, visible: bool) -> None:
        self._aggregator.set_visibility(visible)

    def update_visible_fraction(self, fraction: float) -> bool:
        return self._aggregator.update_visible_fraction(fraction)

    def apply(self) -> bool:
        """Hand the settled settings to the owner; False when nothing changed."""
        if not self.has_changes:
            return False
        self._on_settings_changed(self._current)
        self._applied = self._current
        self.has_changes = False
        logger.info("Settings applied: %s", self._current)
        return True

    def discard(self) -> None:
        """Forget unsettled and unapplied edits."""
        self._aggregator.reset()
        self._current = self._applied
        self._draft = self._applied
        self.has_changes = False

    def dispose(self) -> None:
        self._aggregator.dispose()

    def _on_settled(self, settings: Optional[T]) -> None:
        if settings is None:
            return
        self._current = settings
        self.has_changes = True

    def _validate_fields(self, changes: dict[str, Any]) -> None:
        known = {f.name for f in fields(self._draft)}  # type: ignore[arg-type]
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown settings field(s): {sorted(unknown)}")

"""Per-role defaults for the dashboards' feeds.

Each consumer role picks one emission policy explicitly:

- ``log``: the log panel appends whole batches every 100 ms.
- ``chart``: the chart plots the newest fused reading at 20 fps and keeps
  the last event queued so a quiet stream still has a current value.
- ``stats``: the stats panel batches counters for 200 ms after the first
  event of a burst.
- ``settings``: settings edits settle 300 ms after the last change.
- ``monitor``: performance samples are batched every 2 s.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from ..core.aggregator import AggregatorConfig, DrainPolicy, EmissionPolicy

ROLE_LOG = "log"
ROLE_CHART = "chart"
ROLE_STATS = "stats"
ROLE_SETTINGS = "settings"
ROLE_MONITOR = "monitor"


@dataclass(frozen=True)
class RolePreset:
    policy: EmissionPolicy
    interval_ms: float
    max_queue: int
    drain: DrainPolicy = DrainPolicy.FULL
    retain_last: int = 0
    history: int = 0


ROLE_PRESETS: Dict[str, RolePreset] = {
    ROLE_LOG: RolePreset(
        policy=EmissionPolicy.PERIODIC_BATCH,
        interval_ms=100.0,
        max_queue=20,
        history=100,
    ),
    ROLE_CHART: RolePreset(
        policy=EmissionPolicy.PERIODIC_BATCH,
        interval_ms=50.0,
        max_queue=20,
        drain=DrainPolicy.RETAIN_LAST,
        retain_last=1,
        history=100,
    ),
    ROLE_STATS: RolePreset(
        policy=EmissionPolicy.PERIODIC_BATCH,
        interval_ms=200.0,
        max_queue=20,
    ),
    ROLE_SETTINGS: RolePreset(
        policy=EmissionPolicy.DEBOUNCE,
        interval_ms=300.0,
        max_queue=1,
    ),
    ROLE_MONITOR: RolePreset(
        policy=EmissionPolicy.PERIODIC_BATCH,
        interval_ms=2000.0,
        max_queue=120,
    ),
}


def preset_config(role: str, *, visibility_threshold: float = 0.1) -> AggregatorConfig:
    """Return the default :class:`AggregatorConfig` for ``role``."""
    try:
        preset = ROLE_PRESETS[role]
    except KeyError:
        raise ValueError(f"Unknown feed role {role!r}; expected one of {sorted(ROLE_PRESETS)}") from None
    return AggregatorConfig(
        max_queue=preset.max_queue,
        interval_s=preset.interval_ms / 1000.0,
        policy=preset.policy,
        drain=preset.drain,
        retain_last=preset.retain_last,
        visibility_threshold=visibility_threshold,
        name=role,
    )

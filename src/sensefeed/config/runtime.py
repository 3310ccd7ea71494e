"""Runtime configuration for the feed roles, loaded from YAML."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping

import yaml

from ..core.aggregator import (
    DEFAULT_VISIBILITY_THRESHOLD,
    AggregatorConfig,
    DrainPolicy,
    EmissionPolicy,
)
from .presets import ROLE_PRESETS, RolePreset


@dataclass(slots=True)
class RoleConfig:
    """
    Tuning knobs for one consumer role.

    ``interval_ms`` is the debounce delay or batching period, ``max_queue``
    the batch queue bound and ``history`` the presentation model's own
    history cap (0 when the role keeps none).
    """

    policy: str = EmissionPolicy.PERIODIC_BATCH.value
    interval_ms: float = 100.0
    max_queue: int = 20
    drain: str = DrainPolicy.FULL.value
    retain_last: int = 0
    history: int = 0

    @classmethod
    def from_preset(cls, preset: RolePreset) -> "RoleConfig":
        return cls(
            policy=preset.policy.value,
            interval_ms=preset.interval_ms,
            max_queue=preset.max_queue,
            drain=preset.drain.value,
            retain_last=preset.retain_last,
            history=preset.history,
        )

    def sanitized(self) -> "RoleConfig":
        """Return a copy with soft limits applied (policy names normalized)."""
        interval = float(self.interval_ms)
        if not math.isfinite(interval):
            interval = 0.0
        return RoleConfig(
            policy=EmissionPolicy.parse(self.policy).value,
            interval_ms=max(0.0, interval),
            max_queue=int(self.max_queue),
            drain=DrainPolicy.parse(self.drain).value,
            retain_last=max(0, int(self.retain_last)),
            history=max(0, int(self.history)),
        )

    def to_aggregator_config(
        self,
        name: str,
        *,
        visibility_threshold: float = DEFAULT_VISIBILITY_THRESHOLD,
    ) -> AggregatorConfig:
        """Build the aggregator config; raises ``ValueError`` on bad bounds."""
        return AggregatorConfig(
            max_queue=int(self.max_queue),
            interval_s=float(self.interval_ms) / 1000.0,
            policy=EmissionPolicy.parse(self.policy),
            drain=DrainPolicy.parse(self.drain),
            retain_last=int(self.retain_last),
            visibility_threshold=float(visibility_threshold),
            name=name,
        )


def _default_roles() -> Dict[str, RoleConfig]:
    return {role: RoleConfig.from_preset(preset) for role, preset in ROLE_PRESETS.items()}


@dataclass(slots=True)
class FeedConfig:
    """Top-level configuration: visibility threshold plus per-role knobs."""

    visibility_threshold: float = DEFAULT_VISIBILITY_THRESHOLD
    roles: Dict[str, RoleConfig] = field(default_factory=_default_roles)

    def role(self, name: str) -> RoleConfig:
        try:
            return self.roles[name]
        except KeyError:
            raise ValueError(f"No configuration for feed role {name!r}") from None

    def aggregator_config(self, role: str) -> AggregatorConfig:
        return self.role(role).to_aggregator_config(
            role, visibility_threshold=self.visibility_threshold
        )

    def sanitized(self) -> "FeedConfig":
        threshold = float(self.visibility_threshold)
        if not math.isfinite(threshold):
            threshold = DEFAULT_VISIBILITY_THRESHOLD
        return FeedConfig(
            visibility_threshold=min(1.0, max(0.0, threshold)),
            roles={name: cfg.sanitized() for name, cfg in self.roles.items()},
        )


def _role_fields() -> set[str]:
    return {f.name for f in fields(RoleConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten a top-level ``feeds`` block into the root mapping."""
    if "feeds" in data and isinstance(data["feeds"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "feeds":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def config_from_mapping(data: Mapping[str, Any] | None) -> FeedConfig:
    """
    Build :class:`FeedConfig` from ``data`` (ignoring unknown keys).

    Supported shape::

        feeds:
          visibility_threshold: 0.1
          roles:
            log: {interval_ms: 100, max_queue: 20}
            settings: {policy: debounce, interval_ms: 300}

    Roles not mentioned keep their presets; a partial role block overrides
    only the keys it names.
    """
    if not data:
        return FeedConfig()
    normalized = _normalize_mapping(data)
    config = FeedConfig()

    if "visibility_threshold" in normalized:
        config.visibility_threshold = float(normalized["visibility_threshold"])

    roles_block = normalized.get("roles")
    if isinstance(roles_block, Mapping):
        known = _role_fields()
        for role_name, role_data in roles_block.items():
            if not isinstance(role_data, Mapping):
                continue
            base = config.roles.get(str(role_name), RoleConfig())
            merged = {f: getattr(base, f) for f in known}
            merged.update({key: role_data[key] for key in role_data.keys() & known})
            config.roles[str(role_name)] = RoleConfig(**merged)

    return config.sanitized()


def load_config(path: str | Path | None) -> FeedConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`FeedConfig`.
    """
    if path is None:
        return FeedConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return FeedConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


def save_config(path: str | Path, config: FeedConfig) -> None:
    """Persist ``config`` as YAML under a top-level ``feeds`` block."""
    cfg_path = Path(path)
    if cfg_path.parent and not cfg_path.parent.exists():
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "feeds": {
            "visibility_threshold": float(config.visibility_threshold),
            "roles": {
                name: {f: getattr(role, f) for f in _role_fields()}
                for name, role in config.roles.items()
            },
        }
    }
    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(payload, fh, default_flow_style=False, sort_keys=True)


__all__ = ["FeedConfig", "RoleConfig", "config_from_mapping", "load_config", "save_config"]

"""Configuration objects and helpers for sensefeed.

Feed roles (log, chart, stats, settings, monitor) get their defaults from
:mod:`presets`; :mod:`runtime` loads YAML overrides into typed dataclasses
that the views and the benchmark use to build their aggregators.
"""

from .presets import ROLE_PRESETS, preset_config
from .runtime import FeedConfig, RoleConfig, config_from_mapping, load_config, save_config

__all__ = [
    "FeedConfig",
    "ROLE_PRESETS",
    "RoleConfig",
    "config_from_mapping",
    "load_config",
    "preset_config",
    "save_config",
]

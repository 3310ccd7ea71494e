"""Upstream event sources (synthetic only; platform acquisition lives elsewhere)."""

from .synthetic import SyntheticSensorSource, motion_state_for

__all__ = ["SyntheticSensorSource", "motion_state_for"]

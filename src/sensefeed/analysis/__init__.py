"""Small numeric helpers shared by the presentation models."""

from .normalize import normalize_series, series_bounds
from .rate import RateController, RateEstimate, RateMeter, safe_rate

__all__ = [
    "RateController",
    "RateEstimate",
    "RateMeter",
    "normalize_series",
    "safe_rate",
    "series_bounds",
]

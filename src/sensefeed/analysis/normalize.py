"""Min/max normalization of chart series."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Tuple

import numpy as np

_CACHE_SIZE = 64


def normalize_series(values: Iterable[float]) -> Tuple[float, ...]:
    """
    Scale ``values`` linearly onto ``[0, 1]`` using their min and max.

    Non-finite entries count as 0. A flat series (zero span) maps to all
    zeros and an empty series stays empty. Results are memoized on the
    series content, so re-rendering unchanged data costs a tuple hash.
    """
    return _normalize_cached(tuple(float(v) for v in values))


@lru_cache(maxsize=_CACHE_SIZE)
def _normalize_cached(values: Tuple[float, ...]) -> Tuple[float, ...]:
    if not values:
        return ()
    arr = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
    lo = float(arr.min())
    span = float(arr.max()) - lo
    if span <= 0.0:
        return tuple(0.0 for _ in values)
    return tuple(float(v) for v in (arr - lo) / span)


def series_bounds(values: Iterable[float]) -> Tuple[float, float]:
    """Return ``(min, max)`` of the finite values, ``(0.0, 0.0)`` when none."""
    arr = np.asarray(list(values), dtype=np.float64)
    if arr.size:
        arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return 0.0, 0.0
    return float(arr.min()), float(arr.max())


def normalize_cache_info():
    """Expose the memo statistics (hits/misses) for tests and the HUD."""
    return _normalize_cached.cache_info()


def clear_normalize_cache() -> None:
    _normalize_cached.cache_clear()

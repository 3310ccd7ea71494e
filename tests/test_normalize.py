import pytest

from sensefeed.analysis.normalize import (
    clear_normalize_cache,
    normalize_cache_info,
    normalize_series,
    series_bounds,
)


def test_normalize_series_maps_onto_unit_interval() -> None:
    assert normalize_series([2.0, 4.0, 6.0]) == pytest.approx((0.0, 0.5, 1.0))


def test_normalize_series_edge_cases() -> None:
    assert normalize_series([]) == ()
    assert normalize_series([3.0, 3.0]) == (0.0, 0.0)
    assert normalize_series([float("nan"), 2.0]) == pytest.approx((0.0, 1.0))


def test_normalize_series_is_memoized_by_content() -> None:
    clear_normalize_cache()
    first = normalize_series([1.0, 2.0, 5.0])
    second = normalize_series((1.0, 2.0, 5.0))
    info = normalize_cache_info()
    assert first == second
    assert info.misses == 1
    assert info.hits == 1


def test_series_bounds_skips_non_finite_values() -> None:
    assert series_bounds([1.0, float("inf"), -2.0]) == (-2.0, 1.0)
    assert series_bounds([]) == (0.0, 0.0)

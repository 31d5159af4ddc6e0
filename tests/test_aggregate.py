"""Unit tests for polytherm.core.aggregate."""

import pytest

from polytherm.core.aggregate import aggregate, clamp_window
from polytherm.model import TimeSeries, TimeWindow


def test_single_hour_is_exact():
    series = [1.25, 3.5, -7.75, 9.0]
    for i, v in enumerate(series):
        assert aggregate(series, TimeWindow(i, i)) == v


def test_range_is_inclusive_mean():
    assert aggregate([1, 2, 3, 4], TimeWindow(0, 3)) == 2.5
    assert aggregate([1, 2, 3, 4], TimeWindow(1, 2)) == 2.5


def test_out_of_range_indices_are_clamped():
    assert aggregate([5, 6, 7], TimeWindow(-2, 99)) == 6
    assert aggregate([5, 6, 7], TimeWindow(50, 99)) == 7
    assert aggregate([5, 6, 7], TimeWindow(-5, -1)) == 5


def test_empty_series_is_zero():
    assert aggregate([], TimeWindow(0, 0)) == 0
    assert aggregate([], TimeWindow(-3, 40)) == 0
    assert aggregate(TimeSeries.from_values([]), TimeWindow(1, 2)) == 0


def test_inverted_window_collapses_to_lower_index():
    assert aggregate([5, 6, 7], TimeWindow(2, 0)) == 5
    assert aggregate([5, 6, 7], TimeWindow(99, 1)) == 6


def test_missing_sample_counts_as_zero():
    assert aggregate([None, 4.0], TimeWindow(0, 0)) == 0
    assert aggregate([None, 4.0], TimeWindow(0, 1)) == 2.0


def test_accepts_time_series():
    series = TimeSeries.from_values([10.0, 20.0, 30.0], ["t0", "t1", "t2"])
    assert aggregate(series, TimeWindow(0, 2)) == 20.0


def test_clamp_window():
    assert clamp_window(TimeWindow(-1, 10), 5) == TimeWindow(0, 4)
    assert clamp_window(TimeWindow(3, 1), 5) == TimeWindow(1, 1)
    assert clamp_window(TimeWindow(2, 2), 5).is_single


def test_bad_sample_type_raises_for_caller_to_contain():
    with pytest.raises((TypeError, ValueError)):
        aggregate(["warm", "cold"], TimeWindow(0, 1))

"""Tests for distribution statistics and min-max scaling.

Tests cover:
1. get_stats on empty, singleton and general populations
2. median for odd and even lengths
3. linearly interpolated quantiles
4. population standard deviation
5. scaled endpoints and degenerate populations
"""

from __future__ import annotations

import math

import pytest

from otv.models import Stats
from otv.stats import abs_max, abs_min, asc, get_stats, mean, median, q10, q25, q75, q90, scaled, std


class TestGetStats:
    """Test distribution summaries."""

    def test_empty_is_all_zero(self):
        stats = get_stats([])
        assert stats == Stats()
        assert all(v == 0 for v in stats.to_dict().values())

    def test_singleton(self):
        stats = get_stats([7])
        assert stats.min == stats.max == 7
        assert stats.mean == stats.median == 7
        assert stats.p10 == stats.p25 == stats.p75 == stats.p90 == 7
        assert stats.std == 0

    def test_general_population(self):
        stats = get_stats([4, 1, 3, 2, 5])
        assert stats.min == 1
        assert stats.max == 5
        assert stats.mean == 3
        assert stats.median == 3
        assert stats.p25 == 2
        assert stats.p75 == 4
        assert stats.std == pytest.approx(math.sqrt(2))

    def test_returns_plain_floats(self):
        stats = get_stats([1, 2])
        assert all(type(v) is float for v in stats.to_dict().values())


class TestSummaryHelpers:
    """Test individual summary helpers."""

    def test_median_odd(self):
        assert median([3, 1, 2]) == 2

    def test_median_even_averages_middle(self):
        assert median([1, 2, 3, 4]) == 2.5

    def test_quantiles_interpolate(self):
        values = [0, 10]
        assert q10(values) == pytest.approx(1)
        assert q25(values) == pytest.approx(2.5)
        assert q75(values) == pytest.approx(7.5)
        assert q90(values) == pytest.approx(9)

    def test_population_std(self):
        # Population (not sample) deviation of [2, 4, 4, 4, 5, 5, 7, 9] is 2
        assert std([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2)

    def test_empty_helpers(self):
        assert mean([]) == 0
        assert median([]) == 0
        assert std([]) == 0
        assert abs_min([]) == 0
        assert abs_max([]) == 0

    def test_asc(self):
        assert asc([3, 1, 2]) == [1, 2, 3]


class TestScaled:
    """Test min-max normalisation."""

    def test_min_maps_to_zero(self):
        assert scaled(10, [10, 20, 30]) == 0

    def test_max_maps_to_one(self):
        assert scaled(30, [10, 20, 30]) == 1

    def test_midpoint(self):
        assert scaled(20, [10, 20, 30]) == pytest.approx(0.5)

    @pytest.mark.parametrize("population", [[], [5], [5, 5, 5]])
    def test_degenerate_population_is_zero(self, population):
        assert scaled(5, population) == 0
        assert scaled(123, population) == 0

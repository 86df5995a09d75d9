"""Tests for coinsight.analysis.levels — S/R clustering and Fibonacci levels."""

import pytest

from coinsight.analysis.levels import (
    cluster_levels,
    fibonacci_extensions,
    fibonacci_levels,
    fibonacci_retracements,
    find_support_resistance,
)
from coinsight.market.models import Candle


def _candles_from_highs_lows(pairs: list[tuple[float, float]]) -> list[Candle]:
    return [
        Candle(time=i * 60_000, open=(h + l) / 2, high=h, low=l, close=(h + l) / 2)
        for i, (h, l) in enumerate(pairs)
    ]


class TestClusterLevels:
    def test_groups_within_sensitivity(self):
        result = cluster_levels([110.0, 100.0, 101.0], sensitivity=0.02)
        assert result == [(pytest.approx(100.5), 2), (pytest.approx(110.0), 1)]

    def test_distance_measured_from_last_member(self):
        # 1.5 % then ~1.48 %: one chained cluster
        result = cluster_levels([100.0, 101.5, 103.0], sensitivity=0.02)
        assert len(result) == 1
        assert result[0][1] == 3

    def test_empty(self):
        assert cluster_levels([]) == []


class TestSupportResistance:
    def test_local_extrema_clustered(self):
        highs = [10.0, 12.0, 10.0, 12.1, 10.0, 20.0, 10.0]
        candles = _candles_from_highs_lows([(h, h - 1.0) for h in highs])
        sr = find_support_resistance(candles)
        assert sr.resistance == [pytest.approx(12.05), pytest.approx(20.0)]
        assert sr.support == [pytest.approx(9.0)]

    def test_equal_neighbours_are_not_extrema(self):
        candles = _candles_from_highs_lows([(10.0, 9.0), (10.0, 9.0), (10.0, 9.0)])
        sr = find_support_resistance(candles)
        assert sr.support == [] and sr.resistance == []

    def test_too_few_candles(self):
        candles = _candles_from_highs_lows([(10.0, 9.0), (11.0, 8.0)])
        sr = find_support_resistance(candles)
        assert sr.support == [] and sr.resistance == []

    def test_tighter_sensitivity_keeps_levels_apart(self):
        highs = [10.0, 12.0, 10.0, 12.1, 10.0]
        candles = _candles_from_highs_lows([(h, h - 1.0) for h in highs])
        sr = find_support_resistance(candles, sensitivity=0.001)
        assert sr.resistance == [pytest.approx(12.0), pytest.approx(12.1)]


class TestFibonacci:
    def test_retracements(self):
        levels = fibonacci_retracements(200.0, 100.0)
        assert levels == pytest.approx([200.0, 176.4, 161.8, 150.0, 138.2, 121.4, 100.0])

    def test_retracements_decrease_monotonically(self):
        levels = fibonacci_retracements(64_250.0, 58_900.0)
        assert levels[0] == 64_250.0
        assert levels[-1] == pytest.approx(58_900.0)
        assert all(a > b for a, b in zip(levels, levels[1:]))

    def test_extensions(self):
        levels = fibonacci_extensions(200.0, 100.0, 150.0)
        assert levels == pytest.approx([150.0, 277.2, 311.8, 350.0, 411.8, 511.8])

    def test_levels_use_recent_window(self):
        spike = [(1000.0, 1.0)] * 5
        recent = [(110.0 + i, 100.0 + i) for i in range(20)]
        candles = _candles_from_highs_lows(spike + recent)
        levels = fibonacci_levels(candles, lookback=20)
        assert levels.retracements[0] == 129.0
        assert levels.retracements[-1] == pytest.approx(100.0)
        assert levels.extensions[0] == candles[-1].close

    def test_empty_batch(self):
        levels = fibonacci_levels([])
        assert levels.retracements == [] and levels.extensions == []

"""
Test Suite for Scoring Helpers

Tests the shared numeric helpers:
- Coercion and rounding
- Largest-remainder point distribution
- CTR curve, opportunity tiers and formatting
"""

import pytest

from rtv_engine.scoring.helpers import (
    RtvOpportunityLevel,
    distribute_points,
    estimate_traffic_value,
    format_volume,
    get_ctr_for_position,
    get_opportunity_level,
    round_half_up,
    to_finite_number,
)


class TestCoercion:
    """Test numeric coercion and rounding."""

    @pytest.mark.parametrize("value,expected", [
        (5, 5.0),
        ("2.5", 2.5),
        (True, 1.0),
        (None, 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        (float("-inf"), 0.0),
        ([3], 0.0),
    ])
    def test_to_finite_number(self, value, expected):
        assert to_finite_number(value) == expected

    def test_custom_fallback(self):
        assert to_finite_number("x", fallback=-1.0) == -1.0

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (1.5, 2),
        (2.5, 3),
        (2.49, 2),
        (5000.5, 5001),
        (0, 0),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestDistributePoints:
    """Test largest-remainder rescaling."""

    def test_sums_exactly_to_total(self):
        assert sum(distribute_points([50, 30, 15, 10], 85)) == 85

    def test_remainder_goes_to_largest_fraction(self):
        # 40.48, 24.29, 12.14, 8.10 -> one unit left, AI has the largest remainder
        assert distribute_points([50, 30, 15, 10], 85) == [41, 24, 12, 8]

    def test_ties_go_to_earlier_weight(self):
        assert distribute_points([1, 1], 1) == [1, 0]

    def test_exact_scale(self):
        assert distribute_points([20, 10], 15) == [10, 5]

    def test_zero_weights(self):
        assert distribute_points([0, 0], 85) == [0, 0]


class TestCtrCurve:
    """Test organic CTR estimates by position."""

    def test_top_positions(self):
        assert get_ctr_for_position(1) == 0.316
        assert get_ctr_for_position(3) == 0.096
        assert get_ctr_for_position(10) == 0.016

    def test_page_two(self):
        assert get_ctr_for_position(12) == pytest.approx(0.009)

    def test_deep_positions(self):
        assert get_ctr_for_position(30) == pytest.approx(0.004)
        assert get_ctr_for_position(80) == 0.001

    @pytest.mark.parametrize("position", [None, 0, -3])
    def test_no_position(self, position):
        assert get_ctr_for_position(position) == 0.0

    def test_monotonic_decrease(self):
        ctrs = [get_ctr_for_position(p) for p in range(1, 60)]
        assert ctrs == sorted(ctrs, reverse=True)


class TestOpportunityLevel:
    """Test tier boundaries."""

    @pytest.mark.parametrize("share,expected", [
        (1.0, RtvOpportunityLevel.EXCELLENT),
        (0.70, RtvOpportunityLevel.EXCELLENT),
        (0.69, RtvOpportunityLevel.GOOD),
        (0.50, RtvOpportunityLevel.GOOD),
        (0.35, RtvOpportunityLevel.MODERATE),
        (0.15, RtvOpportunityLevel.LOW),
        (1 - 0.85, RtvOpportunityLevel.LOW),
        (0.10, RtvOpportunityLevel.VERY_LOW),
    ])
    def test_levels(self, share, expected):
        assert get_opportunity_level(share) == expected


class TestFormatting:
    """Test value and volume formatting."""

    @pytest.mark.parametrize("volume,expected", [
        (1_500_000, "1.5M"),
        (12_300, "12.3K"),
        (1000, "1.0K"),
        (950, "950"),
        (0, "0"),
        ("n/a", "0"),
    ])
    def test_format_volume(self, volume, expected):
        assert format_volume(volume) == expected

    def test_traffic_value(self):
        assert estimate_traffic_value(1580, 0.5) == 790.0
        assert estimate_traffic_value(100, -2.0) == 0.0

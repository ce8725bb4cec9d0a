"""
Scoring Helper Functions and Constants

Contains numeric coercion, rounding, the organic CTR curve, RTV
opportunity tiers and formatting helpers used across the RTV calculations.
"""

import math
from typing import Any, Dict, List, Optional
from enum import Enum


# ============================================================================
# NUMERIC COERCION
# ============================================================================

def to_finite_number(value: Any, fallback: float = 0.0) -> float:
    """
    Coerce a loosely-typed value to a finite float.

    Accepts numbers, numeric strings and booleans. Anything that cannot be
    converted, or converts to NaN/inf, yields the fallback.

    Args:
        value: Raw value from upstream data
        fallback: Value returned when coercion fails

    Returns:
        Finite float
    """
    if value is None:
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return number


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounded up (not to even)."""
    return int(math.floor(value + 0.5))


def distribute_points(raw_points: List[int], total: int) -> List[int]:
    """
    Scale integer weights so they sum exactly to ``total``.

    Uses the largest-remainder method: each weight is scaled by
    ``total / sum(raw_points)``, floored, and the missing units go to the
    largest fractional remainders. Ties go to the earlier weight.

    Args:
        raw_points: Unscaled weights (non-negative)
        total: Target sum

    Returns:
        Scaled integer weights, same order as the input
    """
    raw_total = sum(raw_points)
    if raw_total <= 0:
        return [0 for _ in raw_points]

    exact = [p * total / raw_total for p in raw_points]
    floored = [int(math.floor(x)) for x in exact]
    missing = total - sum(floored)

    by_remainder = sorted(
        range(len(exact)),
        key=lambda i: (-(exact[i] - floored[i]), i),
    )
    for i in by_remainder[:missing]:
        floored[i] += 1

    return floored


# ============================================================================
# CTR CURVE (organic click-through rate by position, no SERP features)
# ============================================================================

CTR_CURVE: Dict[int, float] = {
    1: 0.316,   # 31.6% CTR for position 1
    2: 0.152,   # 15.2%
    3: 0.096,   # 9.6%
    4: 0.065,   # 6.5%
    5: 0.047,   # 4.7%
    6: 0.035,   # 3.5%
    7: 0.028,   # 2.8%
    8: 0.022,   # 2.2%
    9: 0.019,   # 1.9%
    10: 0.016,  # 1.6%
}


def get_ctr_for_position(position: Optional[int]) -> float:
    """
    Get estimated organic CTR for any position.

    Args:
        position: SERP position (1-100)

    Returns:
        Estimated CTR as decimal (0.0 - 1.0)
    """
    if not position or position <= 0:
        return 0.0
    if position <= 10:
        return CTR_CURVE.get(position, 0.01)
    if position <= 20:
        # Page 2: ~0.5-1% CTR
        return 0.01 - (position - 10) * 0.0005
    if position <= 50:
        # Page 3-5: ~0.2-0.5% CTR
        return 0.005 - (position - 20) * 0.0001
    # Page 6+: negligible
    return 0.001


# ============================================================================
# RTV OPPORTUNITY TIERS
# ============================================================================

class RtvOpportunityLevel(Enum):
    """How much of the raw volume an organic result can realistically capture."""
    EXCELLENT = "excellent"   # 70%+ of volume is realizable
    GOOD = "good"             # 50-69%
    MODERATE = "moderate"     # 30-49%
    LOW = "low"               # 15-29%
    VERY_LOW = "very_low"     # <15%


RTV_THRESHOLDS: Dict[str, float] = {
    "excellent": 0.70,
    "good": 0.50,
    "moderate": 0.30,
    "low": 0.15,
}


def get_opportunity_level(realizable_share: float) -> RtvOpportunityLevel:
    """
    Classify the realizable share of volume into an opportunity tier.

    Args:
        realizable_share: Fraction of volume left after SERP losses (0.0-1.0)

    Returns:
        RtvOpportunityLevel enum
    """
    # Compare on rounded values so 1 - 0.85 lands on the LOW boundary
    share = round(realizable_share, 6)
    if share >= RTV_THRESHOLDS["excellent"]:
        return RtvOpportunityLevel.EXCELLENT
    elif share >= RTV_THRESHOLDS["good"]:
        return RtvOpportunityLevel.GOOD
    elif share >= RTV_THRESHOLDS["moderate"]:
        return RtvOpportunityLevel.MODERATE
    elif share >= RTV_THRESHOLDS["low"]:
        return RtvOpportunityLevel.LOW
    else:
        return RtvOpportunityLevel.VERY_LOW


# ============================================================================
# TRAFFIC VALUE & FORMATTING
# ============================================================================

def estimate_traffic_value(traffic: int, cpc: float) -> float:
    """
    Estimate traffic value (SEO equivalent of PPC cost).

    Args:
        traffic: Monthly organic clicks
        cpc: Cost per click

    Returns:
        Monthly traffic value in currency units
    """
    return round(max(0, traffic) * max(0.0, cpc), 2)


def format_volume(volume: float) -> str:
    """
    Format a search volume for display.

    Examples:
        1500000 -> "1.5M", 12300 -> "12.3K", 950 -> "950"
    """
    volume = to_finite_number(volume, 0.0)
    if volume >= 1_000_000:
        return f"{volume / 1_000_000:.1f}M"
    if volume >= 1000:
        return f"{volume / 1000:.1f}K"
    return str(int(volume))

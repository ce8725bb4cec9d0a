"""
Realizable Traffic Value (RTV) Calculator

Search volume overstates what an organic result can capture: AI answers,
local packs, featured snippets, ads and video carousels take clicks before
the organic listings do. RTV discounts the raw volume for those features.

Formula:
    RTV = Volume × (1 - Loss)

    Loss = min(0.85, Σ triggered rule points / 100)

Loss Rules (fixed order):
    AI Overview          => 50
    Local Map Pack       => 30
    Featured Snippet     => 20  (ignored when an AI Overview is present)
    Paid Ads / Shopping  => 15  (paid results present, or CPC > 1.0)
    Video Carousel       => 10
    MAX TOTAL            => 85

When the cap applies, every contribution is rescaled by 85 / raw so the
reported breakdown still sums to 85.
"""

import logging
import math
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field

from .helpers import to_finite_number, round_half_up, distribute_points
from .serp_features import (
    AI_ANSWER,
    LOCAL_PACK,
    FEATURED_SNIPPET,
    PAID_RESULTS,
    VIDEO_CAROUSEL,
    SearchResultFeatureSet,
    resolve_serp_features,
    detect_traffic_stealers,
)

logger = logging.getLogger(__name__)


MAX_LOSS_POINTS = 85
PAID_CPC_THRESHOLD = 1.0


@dataclass(frozen=True)
class LossRule:
    """One traffic-loss rule: trigger, weight and display label."""
    feature: str
    label: str
    points: int
    applies: Callable[[SearchResultFeatureSet, float], bool]


LOSS_RULES = (
    LossRule(
        feature=AI_ANSWER,
        label="AI Overview",
        points=50,
        applies=lambda f, cpc: f.has_ai_answer,
    ),
    LossRule(
        feature=LOCAL_PACK,
        label="Local Map Pack",
        points=30,
        applies=lambda f, cpc: f.has_local_pack,
    ),
    LossRule(
        feature=FEATURED_SNIPPET,
        label="Featured Snippet",
        points=20,
        # AI answer already replaces the snippet's click diversion
        applies=lambda f, cpc: f.has_featured_snippet and not f.has_ai_answer,
    ),
    LossRule(
        feature=PAID_RESULTS,
        label="Paid Ads / Shopping",
        points=15,
        applies=lambda f, cpc: f.has_paid_results or cpc > PAID_CPC_THRESHOLD,
    ),
    LossRule(
        feature=VIDEO_CAROUSEL,
        label="Video Carousel",
        points=10,
        applies=lambda f, cpc: f.has_video_carousel,
    ),
)


@dataclass
class LossContribution:
    """One line of the loss breakdown."""
    feature: str
    label: str
    value: int  # percentage points of volume lost to this feature

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature": self.feature,
            "label": self.label,
            "value": self.value,
        }


@dataclass
class RtvResult:
    """Result of an RTV calculation."""
    rtv: int
    loss_percentage: float  # fraction, 0.0-0.85
    breakdown: List[LossContribution] = field(default_factory=list)

    @property
    def loss_percent(self) -> int:
        """Total loss in percentage points (0-85)."""
        return round_half_up(self.loss_percentage * 100)

    @property
    def realizable_share(self) -> float:
        """Fraction of volume left for organic results."""
        return round(1 - self.loss_percentage, 4)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rtv": self.rtv,
            "loss_percentage": self.loss_percentage,
            "loss_percent": self.loss_percent,
            "breakdown": [item.to_dict() for item in self.breakdown],
        }


def apply_loss_rules(
    volume: float,
    cpc: float,
    features: SearchResultFeatureSet
) -> RtvResult:
    """
    Evaluate the loss-rule table against a normalized feature set.

    Both public entry points feed this function. Inputs are assumed to be
    already coerced (finite, volume >= 0).

    Over the cap the breakdown is rescaled with largest-remainder rounding,
    not per-entry rounding, so its values always sum to the capped total.

    Args:
        volume: Monthly search volume
        cpc: Cost per click
        features: Detected SERP features

    Returns:
        RtvResult with capped loss and breakdown in rule order
    """
    triggered = [rule for rule in LOSS_RULES if rule.applies(features, cpc)]
    raw_points = sum(rule.points for rule in triggered)
    capped_points = min(raw_points, MAX_LOSS_POINTS)

    if raw_points > MAX_LOSS_POINTS:
        logger.debug(
            "Loss cap applied: raw=%d points, scaling by %.4f",
            raw_points, MAX_LOSS_POINTS / raw_points
        )
        values = distribute_points([rule.points for rule in triggered], MAX_LOSS_POINTS)
    else:
        values = [rule.points for rule in triggered]

    breakdown = [
        LossContribution(feature=rule.feature, label=rule.label, value=value)
        for rule, value in zip(triggered, values)
        if value > 0
    ]

    kept = volume * (100 - capped_points) / 100
    if not math.isfinite(kept):
        # Volumes near the float maximum overflow in the product
        kept = volume / 100 * (100 - capped_points)
    rtv = round_half_up(kept)

    return RtvResult(
        rtv=max(0, rtv),
        loss_percentage=capped_points / 100,
        breakdown=breakdown,
    )


def calculate_rtv(
    volume: Any,
    cpc: Any = None,
    serp_features: Any = None
) -> RtvResult:
    """
    Calculate Realizable Traffic Value (RTV).

    Never raises: invalid numbers degrade to 0 and unrecognised SERP input
    counts as "no features".

    Args:
        volume: Monthly search volume (negative or non-numeric -> 0)
        cpc: Cost per click (absent or invalid -> 0)
        serp_features: Any of
            - SearchResultFeatureSet
            - mapping of flag names ({"hasAIAnswer": True, ...})
            - list of raw SERP item records ([{"type": "ai_overview"}, ...])
            - free text, list of feature names, or a feature-keyed mapping

    Returns:
        RtvResult with rtv, loss_percentage and breakdown

    Example:
        >>> calculate_rtv(10000, 0.5, {"hasAIAnswer": True}).rtv
        5000
    """
    vol = max(0.0, to_finite_number(volume, 0.0))
    cost = to_finite_number(cpc, 0.0)
    features = resolve_serp_features(serp_features)

    return apply_loss_rules(vol, cost, features)


def calculate_rtv_from_items(
    volume: Any,
    serp_items: Optional[List[Any]],
    cpc: Any = 0
) -> RtvResult:
    """
    Calculate RTV from a raw SERP items array.

    Uses structural detection (``detect_traffic_stealers``) on the item
    ``type`` fields. The rule table and cap are the same as
    ``calculate_rtv``.

    Args:
        volume: Monthly search volume
        serp_items: Raw SERP items
        cpc: Cost per click

    Returns:
        RtvResult with breakdown
    """
    vol = max(0.0, to_finite_number(volume, 0.0))
    cost = to_finite_number(cpc, 0.0)
    features = detect_traffic_stealers(serp_items)

    return apply_loss_rules(vol, cost, features)

"""
Keyword RTV Analysis

Builds keyword-level analysis on top of the RTV calculator:

1. **Keyword mapping** - raw keyword records (flat rows, nested
   ``keyword_info`` / ``keyword_data`` blocks, live SERP ``items``) are
   reduced to volume, CPC, SERP input and position.
2. **Click estimates** - organic CTR for the ranking position applied to
   the realizable share of volume.
3. **Opportunity tiers and recommendations** - driven by the realizable
   share and the features present.
4. **Batch helpers** - bulk analysis, summary, comparison, insights and
   prioritization.

Formula:
    Organic_CTR      = CTR(position) × (1 - Loss)
    Estimated_Clicks = Volume × Organic_CTR
    Traffic_Value    = Estimated_Clicks × CPC
"""

import logging
from collections import Counter
from collections.abc import Mapping
from typing import Dict, Any, Iterable, List, Optional
from dataclasses import dataclass

from .helpers import (
    to_finite_number,
    round_half_up,
    get_ctr_for_position,
    get_opportunity_level,
    estimate_traffic_value,
    RtvOpportunityLevel,
)
from .rtv import RtvResult, apply_loss_rules
from .serp_features import (
    SearchResultFeatureSet,
    detect_traffic_stealers,
    resolve_serp_features,
)
from ..utils.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class KeywordMetrics:
    """Normalized inputs for one keyword."""
    keyword: str
    volume: float
    cpc: float
    serp_items: Optional[List[Any]] = None     # raw SERP item records
    serp_features: Any = None                  # flexible feature input
    position: Optional[int] = None

    def resolve_features(self) -> SearchResultFeatureSet:
        """Structural detection when raw items exist, flexible otherwise."""
        if self.serp_items is not None:
            return detect_traffic_stealers(self.serp_items)
        return resolve_serp_features(self.serp_features)


@dataclass
class RtvAnalysis:
    """Complete RTV analysis for a keyword."""
    keyword: str
    volume: float
    cpc: float
    position: int
    features: SearchResultFeatureSet
    result: RtvResult

    # Click estimates
    organic_ctr: float
    estimated_clicks: int
    traffic_value: float

    # Classification
    opportunity_level: RtvOpportunityLevel
    recommendation: str

    @property
    def rtv(self) -> int:
        return self.result.rtv

    @property
    def realizable_share(self) -> float:
        return self.result.realizable_share

    @property
    def lost_volume(self) -> int:
        return max(0, round_half_up(self.volume) - self.result.rtv)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "volume": self.volume,
            "cpc": self.cpc,
            "position": self.position,
            "serp_features": self.features.to_dict(),
            "rtv": self.result.rtv,
            "loss_percentage": self.result.loss_percentage,
            "breakdown": [item.to_dict() for item in self.result.breakdown],
            "organic_ctr": self.organic_ctr,
            "estimated_clicks": self.estimated_clicks,
            "traffic_value": self.traffic_value,
            "opportunity_level": self.opportunity_level.value,
            "recommendation": self.recommendation,
        }


# ============================================================================
# KEYWORD MAPPING
# ============================================================================

def _first_present(blocks: List[Mapping], *keys: str) -> Any:
    for block in blocks:
        for key in keys:
            value = block.get(key)
            if value is not None:
                return value
    return None


def _as_mapping(value: Any) -> Optional[Mapping]:
    return value if isinstance(value, Mapping) else None


def _parse_position(value: Any) -> Optional[int]:
    position = to_finite_number(value, 0.0)
    if position < 1:
        return None
    return int(position)


def extract_keyword_metrics(raw: Mapping) -> KeywordMetrics:
    """
    Map a raw keyword record to KeywordMetrics.

    Handles flat rows ({"keyword", "search_volume", "cpc", ...}) as well as
    keyword-provider records where metrics sit under ``keyword_info`` or
    ``keyword_data`` (optionally ``keyword_data.keyword_info``).

    Args:
        raw: Keyword record

    Returns:
        KeywordMetrics with coerced numbers (invalid -> 0)
    """
    keyword_data = _as_mapping(raw.get("keyword_data")) or {}
    blocks = [
        block for block in (
            raw,
            _as_mapping(raw.get("keyword_info")),
            keyword_data,
            _as_mapping(keyword_data.get("keyword_info")),
        )
        if block
    ]

    keyword = raw.get("keyword") or keyword_data.get("keyword") or ""
    volume = to_finite_number(_first_present(blocks, "search_volume", "volume"), 0.0)
    cpc = to_finite_number(_first_present(blocks, "cpc"), 0.0)

    serp_items = raw.get("serp_items")
    if serp_items is None:
        serp_items = raw.get("items")
    if not isinstance(serp_items, (list, tuple)):
        serp_items = None

    serp_features = raw.get("serp_features")
    if serp_features is None:
        serp_features = raw.get("serpFeatures")

    position = _parse_position(_first_present([raw], "position", "rank", "rank_absolute"))

    return KeywordMetrics(
        keyword=str(keyword),
        volume=max(0.0, volume),
        cpc=cpc,
        serp_items=list(serp_items) if serp_items is not None else None,
        serp_features=serp_features,
        position=position,
    )


# ============================================================================
# SINGLE KEYWORD ANALYSIS
# ============================================================================

def generate_recommendation(
    features: SearchResultFeatureSet,
    realizable_share: float,
    position: int,
    rtv: int
) -> str:
    """
    Generate a recommendation based on RTV analysis.

    Args:
        features: SERP features present
        realizable_share: Fraction of volume left for organic results
        position: Current or target ranking position
        rtv: Realizable traffic value

    Returns:
        Recommendation text
    """
    level = get_opportunity_level(realizable_share)

    # Heavy loss
    if level in (RtvOpportunityLevel.LOW, RtvOpportunityLevel.VERY_LOW):
        if features.has_ai_answer:
            return (
                "AI Overview dominates this SERP. Focus on getting cited in "
                "AI responses or target alternative keywords."
            )
        if features.has_local_pack:
            return (
                "The local map pack captures most clicks. Optimize the business "
                "profile to compete inside the pack."
            )
        return "Heavy SERP competition. Consider targeting less competitive variations of this keyword."

    if level == RtvOpportunityLevel.MODERATE:
        if features.has_featured_snippet:
            return "Win the featured snippet to capture significant traffic despite the SERP losses."
        if features.has_video_carousel:
            return "Create video content to appear in the video carousel and boost visibility."
        return "Moderate SERP competition. Focus on winning SERP features to maximize clicks."

    if level == RtvOpportunityLevel.GOOD:
        if position > 3:
            target_clicks = round_half_up(rtv * get_ctr_for_position(3))
            return (
                f"Good RTV potential. Improve from #{position} to top 3 to capture "
                f"{target_clicks:,}+ clicks."
            )
        return "Solid opportunity. Optimize content and build links to maintain or improve position."

    return "Excellent RTV. Clean SERP with high organic click potential. Prioritize this keyword."


def analyze_keyword_rtv(
    keyword: Any,
    position: Optional[int] = None
) -> RtvAnalysis:
    """
    Calculate RTV plus click estimates for one keyword.

    Args:
        keyword: Raw keyword record (mapping) or KeywordMetrics
        position: Ranking position override; falls back to the record's
            position, then Settings.DEFAULT_POSITION

    Returns:
        RtvAnalysis
    """
    metrics = keyword if isinstance(keyword, KeywordMetrics) else extract_keyword_metrics(keyword)

    pos = position or metrics.position or get_settings().DEFAULT_POSITION
    features = metrics.resolve_features()
    result = apply_loss_rules(metrics.volume, metrics.cpc, features)

    organic_ctr = round(get_ctr_for_position(pos) * (1 - result.loss_percentage), 4)
    estimated_clicks = round_half_up(metrics.volume * organic_ctr)

    return RtvAnalysis(
        keyword=metrics.keyword,
        volume=metrics.volume,
        cpc=metrics.cpc,
        position=pos,
        features=features,
        result=result,
        organic_ctr=organic_ctr,
        estimated_clicks=estimated_clicks,
        traffic_value=estimate_traffic_value(estimated_clicks, metrics.cpc),
        opportunity_level=get_opportunity_level(result.realizable_share),
        recommendation=generate_recommendation(
            features, result.realizable_share, pos, result.rtv
        ),
    )


# ============================================================================
# BATCH HELPERS
# ============================================================================

def calculate_batch_rtv(
    keywords: Iterable[Any],
    position: Optional[int] = None
) -> List[RtvAnalysis]:
    """
    Calculate RTV analysis for a batch of keyword records.

    Rows that are neither mappings nor KeywordMetrics are skipped.

    Args:
        keywords: Keyword records
        position: Optional position override for every keyword

    Returns:
        List of RtvAnalysis results, input order preserved
    """
    results = []

    for index, keyword in enumerate(keywords or []):
        if not isinstance(keyword, (Mapping, KeywordMetrics)):
            logger.warning(f"Skipping keyword row {index}: unsupported type {type(keyword).__name__}")
            continue
        results.append(analyze_keyword_rtv(keyword, position))

    logger.debug("Calculated RTV for %d keywords", len(results))
    return results


def get_rtv_summary(analyses: List[RtvAnalysis]) -> Dict[str, Any]:
    """
    Generate summary statistics from batch RTV analysis.

    Args:
        analyses: List of RtvAnalysis results

    Returns:
        Summary dict with totals, averages and distributions
    """
    if not analyses:
        return {
            "total_keywords": 0,
            "total_volume": 0,
            "total_rtv": 0,
            "total_lost_volume": 0,
            "total_estimated_clicks": 0,
            "avg_realizable_share": 0,
            "opportunity_distribution": {},
            "loss_contributors": {},
            "top_loss_contributor": None,
        }

    level_counts = {
        level.value: sum(1 for a in analyses if a.opportunity_level == level)
        for level in RtvOpportunityLevel
    }

    contributors: Counter = Counter()
    for analysis in analyses:
        for item in analysis.result.breakdown:
            contributors[item.label] += 1

    shares = [a.realizable_share for a in analyses]

    return {
        "total_keywords": len(analyses),
        "total_volume": round_half_up(sum(a.volume for a in analyses)),
        "total_rtv": sum(a.rtv for a in analyses),
        "total_lost_volume": sum(a.lost_volume for a in analyses),
        "total_estimated_clicks": sum(a.estimated_clicks for a in analyses),
        "avg_realizable_share": round(sum(shares) / len(shares), 3),
        "opportunity_distribution": level_counts,
        "loss_contributors": dict(contributors),
        "top_loss_contributor": contributors.most_common(1)[0][0] if contributors else None,
    }


def compare_rtv(
    first: RtvAnalysis,
    second: RtvAnalysis,
    tie_threshold: Optional[int] = None
) -> Dict[str, Any]:
    """
    Compare realizable traffic between two keywords.

    Args:
        first: First keyword analysis
        second: Second keyword analysis
        tie_threshold: RTV difference at or below which the result is a tie
            (default: Settings.COMPARE_TIE_THRESHOLD)

    Returns:
        Dict with winner ("first" | "second" | "tie"), rtv_diff,
        clicks_diff and recommendation
    """
    if tie_threshold is None:
        tie_threshold = get_settings().COMPARE_TIE_THRESHOLD

    rtv_diff = first.rtv - second.rtv
    clicks_diff = first.estimated_clicks - second.estimated_clicks

    if rtv_diff > tie_threshold:
        winner = "first"
        recommendation = f"First keyword has {abs(rtv_diff):,} more realizable traffic."
    elif rtv_diff < -tie_threshold:
        winner = "second"
        recommendation = f"Second keyword has {abs(rtv_diff):,} more realizable traffic."
    else:
        winner = "tie"
        recommendation = "Both keywords have similar RTV. Consider difficulty and intent."

    return {
        "winner": winner,
        "rtv_diff": rtv_diff,
        "clicks_diff": clicks_diff,
        "recommendation": recommendation,
    }


def get_rtv_insights(analysis: RtvAnalysis) -> List[str]:
    """
    Produce short text insights for one keyword analysis.

    Args:
        analysis: RtvAnalysis result

    Returns:
        List of insight strings
    """
    insights = []

    lost_percent = analysis.result.loss_percent
    insights.append(
        f"{lost_percent}% of search volume ({analysis.lost_volume:,} searches) "
        f"is captured by SERP features."
    )

    if analysis.result.breakdown:
        biggest = max(analysis.result.breakdown, key=lambda item: item.value)
        insights.append(
            f"{biggest.label} is the biggest traffic stealer ({biggest.value}% of clicks)."
        )

    if analysis.position <= 3:
        insights.append(
            f"Position #{analysis.position} captures ~{round(analysis.organic_ctr * 100)}% "
            f"of searches as clicks."
        )
    else:
        potential_gain = round_half_up(
            analysis.volume
            * (get_ctr_for_position(1) - get_ctr_for_position(analysis.position))
            * analysis.realizable_share
        )
        insights.append(
            f"Moving to #1 could gain ~{potential_gain:,} additional clicks/month."
        )

    if analysis.opportunity_level == RtvOpportunityLevel.EXCELLENT:
        insights.append("Clean SERP with high organic click potential. High priority keyword.")
    elif analysis.opportunity_level in (RtvOpportunityLevel.LOW, RtvOpportunityLevel.VERY_LOW):
        insights.append("Consider targeting less competitive keyword variations.")

    return insights


def prioritize_by_rtv(
    analyses: List[RtvAnalysis],
    limit: Optional[int] = None
) -> List[RtvAnalysis]:
    """
    Sort keywords by realizable traffic, then by estimated clicks.

    Args:
        analyses: List of RtvAnalysis results
        limit: Optional maximum number of results

    Returns:
        Sorted list (highest RTV first)
    """
    ranked = sorted(
        analyses,
        key=lambda a: (a.rtv, a.estimated_clicks),
        reverse=True,
    )
    return ranked[:limit] if limit is not None else ranked

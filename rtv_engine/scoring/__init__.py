"""
Scoring Module for the RTV Engine

This module provides the Realizable Traffic Value calculations:

1. **SERP Feature Detection**
   Classifies SERP descriptions into five traffic-diverting features:
   AI answer, local pack, featured snippet, paid results, video carousel.
   Flexible keyword matching or structural matching on raw SERP items.

2. **RTV Calculator**
   RTV = Volume × (1 - Loss), with a fixed rule table, a snippet
   suppression rule, a CPC proxy for paid competition and an 85% cap.

3. **Keyword RTV Analysis**
   Position-aware click estimates, opportunity tiers, recommendations,
   batch summaries and comparisons.

Example Usage:
    from rtv_engine.scoring import calculate_rtv, analyze_keyword_rtv

    result = calculate_rtv(10000, 0.5, {"hasAIAnswer": True})
    print(f"RTV: {result.rtv}")                  # 5000
    print(f"Loss: {result.loss_percentage}")     # 0.5

    analysis = analyze_keyword_rtv({
        "keyword": "best crm software",
        "search_volume": 2400,
        "cpc": 12.5,
        "serp_items": [{"type": "ai_overview"}, {"type": "paid"}],
        "position": 4,
    })
    print(f"Estimated clicks: {analysis.estimated_clicks}")
"""

# Helper utilities and constants
from .helpers import (
    to_finite_number,
    round_half_up,
    distribute_points,

    # CTR
    CTR_CURVE,
    get_ctr_for_position,

    # Opportunity tiers
    RtvOpportunityLevel,
    RTV_THRESHOLDS,
    get_opportunity_level,

    # Value and formatting
    estimate_traffic_value,
    format_volume,
)

# SERP feature detection
from .serp_features import (
    SearchResultFeatureSet,
    FEATURE_KEYWORDS,
    ITEM_TYPES,
    has_serp_feature,
    detect_serp_features,
    detect_traffic_stealers,
    resolve_serp_features,
)

# RTV calculator
from .rtv import (
    LossRule,
    LossContribution,
    RtvResult,
    LOSS_RULES,
    MAX_LOSS_POINTS,
    PAID_CPC_THRESHOLD,
    apply_loss_rules,
    calculate_rtv,
    calculate_rtv_from_items,
)

# Keyword analysis
from .analysis import (
    KeywordMetrics,
    RtvAnalysis,
    extract_keyword_metrics,
    generate_recommendation,
    analyze_keyword_rtv,
    calculate_batch_rtv,
    get_rtv_summary,
    compare_rtv,
    get_rtv_insights,
    prioritize_by_rtv,
)

__all__ = [
    # Helpers
    "to_finite_number",
    "round_half_up",
    "distribute_points",
    "CTR_CURVE",
    "get_ctr_for_position",
    "RtvOpportunityLevel",
    "RTV_THRESHOLDS",
    "get_opportunity_level",
    "estimate_traffic_value",
    "format_volume",

    # SERP features
    "SearchResultFeatureSet",
    "FEATURE_KEYWORDS",
    "ITEM_TYPES",
    "has_serp_feature",
    "detect_serp_features",
    "detect_traffic_stealers",
    "resolve_serp_features",

    # RTV
    "LossRule",
    "LossContribution",
    "RtvResult",
    "LOSS_RULES",
    "MAX_LOSS_POINTS",
    "PAID_CPC_THRESHOLD",
    "apply_loss_rules",
    "calculate_rtv",
    "calculate_rtv_from_items",

    # Analysis
    "KeywordMetrics",
    "RtvAnalysis",
    "extract_keyword_metrics",
    "generate_recommendation",
    "analyze_keyword_rtv",
    "calculate_batch_rtv",
    "get_rtv_summary",
    "compare_rtv",
    "get_rtv_insights",
    "prioritize_by_rtv",
]

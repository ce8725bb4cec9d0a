"""
SERP Feature Detection

Classifies a description of a search results page into the fixed set of
traffic-diverting features the RTV calculator understands.

Two detection paths:

1. **Flexible** (``detect_serp_features``)
   Case-insensitive keyword matching over loosely-typed input: a free-text
   string, a list of feature names, or a mapping of feature-like keys.
   Used for legacy or partially-typed data.

2. **Structural** (``detect_traffic_stealers``)
   Matches the ``type`` discriminant of raw SERP item records against
   known item types. Preferred when the caller has structured SERP data.

Neither path raises: unrecognised input yields an all-false feature set.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


# Canonical feature keys, in loss-rule order
AI_ANSWER = "ai_overview"
LOCAL_PACK = "local_pack"
FEATURED_SNIPPET = "featured_snippet"
PAID_RESULTS = "paid_ads"
VIDEO_CAROUSEL = "video"


@dataclass(frozen=True)
class SearchResultFeatureSet:
    """Which traffic-diverting elements appear on one results page."""
    has_ai_answer: bool = False
    has_local_pack: bool = False
    has_featured_snippet: bool = False
    has_paid_results: bool = False
    has_video_carousel: bool = False

    @property
    def any_present(self) -> bool:
        return any((
            self.has_ai_answer,
            self.has_local_pack,
            self.has_featured_snippet,
            self.has_paid_results,
            self.has_video_carousel,
        ))

    def present(self) -> Tuple[str, ...]:
        """Canonical keys of the features that are present, in rule order."""
        flags = (
            (AI_ANSWER, self.has_ai_answer),
            (LOCAL_PACK, self.has_local_pack),
            (FEATURED_SNIPPET, self.has_featured_snippet),
            (PAID_RESULTS, self.has_paid_results),
            (VIDEO_CAROUSEL, self.has_video_carousel),
        )
        return tuple(key for key, on in flags if on)

    def with_flags(self, **flags: bool) -> "SearchResultFeatureSet":
        return replace(self, **flags)

    def union(self, other: "SearchResultFeatureSet") -> "SearchResultFeatureSet":
        """Flag-wise OR of two feature sets."""
        return SearchResultFeatureSet(
            has_ai_answer=self.has_ai_answer or other.has_ai_answer,
            has_local_pack=self.has_local_pack or other.has_local_pack,
            has_featured_snippet=self.has_featured_snippet or other.has_featured_snippet,
            has_paid_results=self.has_paid_results or other.has_paid_results,
            has_video_carousel=self.has_video_carousel or other.has_video_carousel,
        )

    def to_dict(self) -> Dict[str, bool]:
        return {
            "hasAIAnswer": self.has_ai_answer,
            "hasLocalPack": self.has_local_pack,
            "hasFeaturedSnippet": self.has_featured_snippet,
            "hasPaidResults": self.has_paid_results,
            "hasVideoCarousel": self.has_video_carousel,
        }

    @classmethod
    def from_flags(cls, flags: Mapping) -> "SearchResultFeatureSet":
        """
        Build a feature set from a mapping of flag names.

        Recognises the camelCase names (``hasAIAnswer``), their snake_case
        forms (``has_ai_answer``) and the short structural names
        (``hasAIO``, ``hasLocal``, ``hasSnippet``, ``hasAds``, ``hasVideo``,
        ``hasShopping``). Unknown keys are ignored; values are read by
        truthiness.
        """
        values: Dict[str, bool] = {}
        for key, value in flags.items():
            field_name = FLAG_ALIASES.get(_flag_key(key))
            if field_name is None:
                continue
            # Several aliases can feed one flag (hasAds + hasShopping)
            values[field_name] = values.get(field_name, False) or bool(value)
        return cls(**values)


def _flag_key(key: Any) -> str:
    return str(key).lower().replace("_", "")


FLAG_ALIASES: Dict[str, str] = {
    "hasaianswer": "has_ai_answer",
    "hasaio": "has_ai_answer",
    "hasaioverview": "has_ai_answer",
    "haslocalpack": "has_local_pack",
    "haslocal": "has_local_pack",
    "hasfeaturedsnippet": "has_featured_snippet",
    "hassnippet": "has_featured_snippet",
    "haspaidresults": "has_paid_results",
    "hasads": "has_paid_results",
    "hasshopping": "has_paid_results",
    "hasvideocarousel": "has_video_carousel",
    "hasvideo": "has_video_carousel",
}

EMPTY_FEATURES = SearchResultFeatureSet()


# ============================================================================
# FLEXIBLE (KEYWORD) DETECTION
# ============================================================================

FEATURE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "has_ai_answer": ("ai_overview", "ai overview", "aio"),
    "has_local_pack": ("local_pack", "local pack", "local_map", "maps"),
    "has_featured_snippet": ("featured_snippet", "featured snippet"),
    "has_paid_results": ("paid", "shopping", "shopping_ads", "top_ads"),
    "has_video_carousel": ("video_carousel", "video"),
}


def _normalize_input(value: Any):
    """Reduce flexible input to a str, a list of str, a mapping, or None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v) for v in value]
    return None


def has_serp_feature(features: Any, keyword: str) -> bool:
    """
    Check whether a flexible feature description mentions a keyword.

    Args:
        features: Normalized input (str, list of str or mapping)
        keyword: Keyword to look for (case-insensitive)

    Returns:
        True if the keyword is present
    """
    k = keyword.lower()
    if not features:
        return False

    if isinstance(features, str):
        return k in features.lower()

    if isinstance(features, list):
        return any(k in s.lower() for s in features)

    if isinstance(features, Mapping):
        if k in features:
            return bool(features[k])
        for name, value in features.items():
            if k in str(name).lower():
                if value:
                    return True
                continue
            if isinstance(value, str) and k in value.lower():
                return True
        return False

    return False


def detect_serp_features(value: Any) -> SearchResultFeatureSet:
    """
    Detect SERP features from loosely-typed input via keyword matching.

    Args:
        value: Free text, a list of feature names, a mapping of
            feature-like keys to flags/descriptions, or None

    Returns:
        SearchResultFeatureSet (all-false for unrecognised input)
    """
    features = _normalize_input(value)
    if not features:
        return EMPTY_FEATURES

    detected = {
        field_name: any(has_serp_feature(features, kw) for kw in keywords)
        for field_name, keywords in FEATURE_KEYWORDS.items()
    }
    result = SearchResultFeatureSet(**detected)
    logger.debug("Flexible SERP detection: %s", result.present())
    return result


# ============================================================================
# STRUCTURAL DETECTION
# ============================================================================

ITEM_TYPES: Dict[str, FrozenSet[str]] = {
    "has_ai_answer": frozenset({"ai_overview", "ai_answer", "ai_mode"}),
    "has_local_pack": frozenset({
        "local_pack", "local_map", "map", "maps", "local_services",
    }),
    "has_featured_snippet": frozenset({"featured_snippet"}),
    "has_paid_results": frozenset({
        "paid", "top_ads", "bottom_ads", "shopping", "shopping_ads",
        "popular_products", "commercial_units",
    }),
    "has_video_carousel": frozenset({
        "video", "videos", "video_carousel", "short_videos",
    }),
}


def _item_type(item: Any) -> Optional[str]:
    """Read and normalize the ``type`` discriminant of a SERP item."""
    if isinstance(item, Mapping):
        raw = item.get("type")
    else:
        raw = getattr(item, "type", None)
    if not isinstance(raw, str):
        return None
    return raw.strip().lower().replace(" ", "_").replace("-", "_")


def detect_traffic_stealers(items: Any) -> SearchResultFeatureSet:
    """
    Detect traffic-stealing SERP features from raw SERP item records.

    Each item is matched on its ``type`` field. Items that are not records,
    or carry no string type, are skipped.

    Args:
        items: Raw SERP items (e.g. the ``items`` array of a live SERP task)

    Returns:
        SearchResultFeatureSet with the detected flags
    """
    if items is None or isinstance(items, (str, bytes, Mapping)):
        return EMPTY_FEATURES
    if not isinstance(items, Iterable):
        return EMPTY_FEATURES

    found = {field_name: False for field_name in ITEM_TYPES}

    for item in items:
        item_type = _item_type(item)
        if not item_type:
            continue

        for field_name, types in ITEM_TYPES.items():
            if not found[field_name] and item_type in types:
                found[field_name] = True

        # Early exit if all detected
        if all(found.values()):
            break

    result = SearchResultFeatureSet(**found)
    logger.debug("Structural SERP detection: %s", result.present())
    return result


# ============================================================================
# DISPATCH
# ============================================================================

def _is_item_list(value: Any) -> bool:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (list, tuple)):
        return False
    return any(_item_type(item) is not None for item in value)


def _has_flag_keys(value: Mapping) -> bool:
    return any(_flag_key(key) in FLAG_ALIASES for key in value)


def _resolve_mixed_mapping(value: Mapping) -> SearchResultFeatureSet:
    """Flag names via ``from_flags``, every other key via keyword matching."""
    rest = {key: flag for key, flag in value.items() if _flag_key(key) not in FLAG_ALIASES}
    return SearchResultFeatureSet.from_flags(value).union(detect_serp_features(rest))


def _resolve_mixed_list(value: Iterable) -> SearchResultFeatureSet:
    """Typed records via structural detection, bare names via keyword matching."""
    records = []
    names = []
    for item in value:
        if _item_type(item) is not None:
            records.append(item)
        elif not isinstance(item, Mapping):
            names.append(item)
    return detect_traffic_stealers(records).union(detect_serp_features(names))


def resolve_serp_features(value: Any) -> SearchResultFeatureSet:
    """
    Resolve any accepted SERP description into a feature set.

    - an existing SearchResultFeatureSet is returned unchanged
    - a mapping with recognised flag names is read flag by flag; its other
      keys still go through keyword matching
    - a list holding SERP item records goes through structural detection;
      bare names in the same list go through keyword matching
    - anything else goes through flexible keyword detection

    Mixed inputs are combined with a flag-wise OR, so adding an entry never
    removes a feature.
    """
    if isinstance(value, SearchResultFeatureSet):
        return value
    if isinstance(value, Mapping) and _has_flag_keys(value):
        return _resolve_mixed_mapping(value)
    if _is_item_list(value):
        return _resolve_mixed_list(value)
    return detect_serp_features(value)

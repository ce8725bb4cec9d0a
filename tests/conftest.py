"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import logging

import pytest
from typing import Any, Dict, List

from rtv_engine.utils.config import get_settings


# ============================================================================
# Settings / Logging Isolation
# ============================================================================

@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """Fresh settings per test, unaffected by the developer's environment."""
    for name in ("ENVIRONMENT", "LOG_LEVEL", "DEFAULT_POSITION", "COMPARE_TIE_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def restore_root_logger():
    """Restore root logger level and handlers after a logging test."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield root
    root.handlers = handlers
    root.setLevel(level)


# ============================================================================
# Mock Data Fixtures
# ============================================================================

@pytest.fixture
def crowded_serp_items() -> List[Dict[str, Any]]:
    """Raw SERP items with every traffic-diverting feature present."""
    return [
        {"type": "ai_overview", "rank_group": 1, "rank_absolute": 1},
        {"type": "local_pack", "rank_group": 1, "rank_absolute": 2},
        {"type": "featured_snippet", "rank_group": 1, "rank_absolute": 3},
        {"type": "paid", "rank_group": 1, "rank_absolute": 4},
        {"type": "video", "rank_group": 1, "rank_absolute": 5},
        {"type": "organic", "rank_group": 1, "rank_absolute": 6},
    ]


@pytest.fixture
def organic_only_items() -> List[Dict[str, Any]]:
    """Raw SERP items with no traffic-diverting features."""
    return [
        {"type": "organic", "rank_group": 1, "rank_absolute": 1},
        {"type": "organic", "rank_group": 2, "rank_absolute": 2},
        {"type": "people_also_ask", "rank_group": 1, "rank_absolute": 3},
        {"type": "related_searches", "rank_group": 1, "rank_absolute": 4},
    ]


@pytest.fixture
def keyword_records() -> List[Dict[str, Any]]:
    """Keyword records in the shapes upstream sources deliver."""
    return [
        {
            "keyword": "crm software",
            "search_volume": 10000,
            "cpc": 0.5,
            "serp_features": {"hasAIAnswer": True},
            "position": 1,
        },
        {
            "keyword": "plumber near me",
            "volume": 10000,
            "cpc": 0.5,
            "serp_features": ["local_pack", "video_carousel"],
        },
        {
            "keyword": "how to bake bread",
            "keyword_info": {"search_volume": 5000, "cpc": 0.2},
            "items": [{"type": "organic"}, {"type": "organic"}],
        },
        {
            "keyword_data": {
                "keyword": "buy running shoes",
                "keyword_info": {"search_volume": 8000, "cpc": 2.4},
            },
            "serp_items": [{"type": "shopping"}, {"type": "ai_overview"}],
        },
    ]

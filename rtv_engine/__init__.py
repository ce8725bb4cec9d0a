"""
BlogSpy RTV Engine

Estimates how much of a keyword's search volume organic results can
actually capture:
1. Detects traffic-diverting SERP features (AI answers, local packs,
   featured snippets, ads, video carousels)
2. Applies a fixed loss-rule table with an 85% cap
3. Adds position-aware click estimates and keyword-level insights
"""

__version__ = "0.1.0"

"""
Insight layer for KPI Lab.

Builds the per-KPI payload and hands it to a text-generation backend.
"""

from insights.payload import (
    build_insight_payload,
    trend_summary,
    top_drivers,
    segment_highlights,
)
from insights.generators import (
    BaseInsightGenerator,
    TemplateInsightGenerator,
    HttpInsightGenerator,
    get_generator,
    list_generators,
    register_generator,
)

__all__ = [
    "build_insight_payload",
    "trend_summary",
    "top_drivers",
    "segment_highlights",
    "BaseInsightGenerator",
    "TemplateInsightGenerator",
    "HttpInsightGenerator",
    "get_generator",
    "list_generators",
    "register_generator",
]

"""
Analytics layer for KPI Lab.

Correlation, delta/anomaly and heuristic causality engines.  Each
engine is a pure function of its inputs.
"""

from analytics.common import (
    anomaly_threshold,
    aggregate_kpi_series,
    pearson_correlation,
    series_length,
)
from analytics.correlation import (
    calculate_correlations,
    build_driver_series,
)
from analytics.deltas import calculate_deltas
from analytics.causality import (
    calculate_causality_scores,
    driver_magnitude_weight,
    driver_relevance,
)

__all__ = [
    # Shared
    "anomaly_threshold",
    "aggregate_kpi_series",
    "pearson_correlation",
    "series_length",
    # Correlation
    "calculate_correlations",
    "build_driver_series",
    # Deltas
    "calculate_deltas",
    # Causality
    "calculate_causality_scores",
    "driver_magnitude_weight",
    "driver_relevance",
]

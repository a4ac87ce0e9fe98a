"""
Generation layer for KPI Lab.

Synthesises segmented KPI time series under a scenario.
"""

from generation.dataset import (
    generate_dataset,
    build_date_range,
    driver_effect,
    trend_factor,
    seasonality_factor,
)

__all__ = [
    "generate_dataset",
    "build_date_range",
    "driver_effect",
    "trend_factor",
    "seasonality_factor",
]

"""
Pipeline layer for KPI Lab.

Runs generate -> correlate -> deltas -> causality in one pass and keeps
session state for interactive consumers.
"""

from pipeline.runner import (
    AnalyticsBundle,
    run_analysis,
    dataset_to_frame,
    correlations_to_frame,
    deltas_to_frame,
    causality_to_frame,
)
from pipeline.session import AnalyticsSession

__all__ = [
    "AnalyticsBundle",
    "run_analysis",
    "dataset_to_frame",
    "correlations_to_frame",
    "deltas_to_frame",
    "causality_to_frame",
    "AnalyticsSession",
]

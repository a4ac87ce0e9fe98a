"""
Core module for KPI Lab.

Provides the canonical data contracts, the immutable KPI / segment /
driver registries, and the exception types shared by the generator,
the analytics engines and the insight layer.
"""

from core.contracts import (
    Kpi,
    Driver,
    Platform,
    UserType,
    KpiFormat,
    KpiDefinition,
    Segment,
    PlatformDistribution,
    ScenarioInputs,
    DEFAULT_SCENARIO,
    GenerateOptions,
    TimeSeriesPoint,
    SegmentedKpiSeries,
    GeneratedDataset,
    CorrelationResult,
    DeltaWindow,
    DeltaResult,
    CausalityResult,
    InsightPayload,
    InsightResult,
)
from core.registry import (
    KPI_DEFINITIONS,
    KPI_KEYS,
    RATE_KPIS,
    SEGMENTS,
    ALL_DRIVERS,
    driver_value,
    normalized_driver_value,
    format_kpi_value,
)
from core.exceptions import (
    KpiLabError,
    SeriesAlignmentError,
    AnalyticsNotReadyError,
    InsightGenerationError,
    InsightBackendError,
)

__version__ = "0.1.0"

__all__ = [
    "Kpi",
    "Driver",
    "Platform",
    "UserType",
    "KpiFormat",
    "KpiDefinition",
    "Segment",
    "PlatformDistribution",
    "ScenarioInputs",
    "DEFAULT_SCENARIO",
    "GenerateOptions",
    "TimeSeriesPoint",
    "SegmentedKpiSeries",
    "GeneratedDataset",
    "CorrelationResult",
    "DeltaWindow",
    "DeltaResult",
    "CausalityResult",
    "InsightPayload",
    "InsightResult",
    "KPI_DEFINITIONS",
    "KPI_KEYS",
    "RATE_KPIS",
    "SEGMENTS",
    "ALL_DRIVERS",
    "driver_value",
    "normalized_driver_value",
    "format_kpi_value",
    "KpiLabError",
    "SeriesAlignmentError",
    "AnalyticsNotReadyError",
    "InsightGenerationError",
    "InsightBackendError",
]

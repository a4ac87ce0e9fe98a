"""
Canonical data contracts for KPI Lab.

These Pydantic models define the single source of truth for every data
boundary in the analytics pipeline: the scenario a caller feeds in, the
synthetic dataset produced by the generator, and the correlation, delta
and causality collections produced by the engines.

Design principles:
  - Dates are ISO-8601 calendar date strings (``YYYY-MM-DD``).
  - KPI values are already post-processed (rates in [0, 1], counts rounded).
  - Scores and contributions are plain floats; ranking is left to consumers.
  - ``ScenarioInputs`` is frozen; edits go through ``model_copy(update=...)``.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Kpi(str, Enum):
    CONVERSION_RATE = "conversion_rate"
    REVENUE = "revenue"
    CHURN_RATE = "churn_rate"
    DAU = "DAU"


class Driver(str, Enum):
    LATENCY_CHANGE = "latency_change"
    CRASH_RATE_CHANGE = "crash_rate_change"
    TRAFFIC_CHANGE = "traffic_change"
    PRICE_CHANGE = "price_change"
    CAMPAIGN_INTENSITY = "campaign_intensity"
    FEATURE_TOGGLE = "feature_toggle"


class Platform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


class UserType(str, Enum):
    NEW = "new"
    RETURNING = "returning"


class KpiFormat(str, Enum):
    PERCENT = "percent"
    CURRENCY = "currency"
    INTEGER = "integer"


# ---------------------------------------------------------------------------
# Registry entries
# ---------------------------------------------------------------------------

class KpiDefinition(BaseModel):
    """Display metadata for one KPI."""

    model_config = ConfigDict(frozen=True)

    key: Kpi
    label: str
    format: KpiFormat


class Segment(BaseModel):
    """A platform x user-type partition of the user base."""

    model_config = ConfigDict(frozen=True)

    id: str
    platform: Platform
    user_type: UserType


# ---------------------------------------------------------------------------
# Input contracts
# ---------------------------------------------------------------------------

class PlatformDistribution(BaseModel):
    """Traffic share per platform, in percent. Carried but not used by the math."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    ios: float = Field(default=40, ge=0)
    android: float = Field(default=40, ge=0)
    web: float = Field(default=20, ge=0)


class ScenarioInputs(BaseModel):
    """Exogenous driver settings for one generation cycle."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latency_change: float = Field(default=0, description="Latency change in percent")
    crash_rate_change: float = Field(default=0, description="Crash rate change in percent")
    traffic_change: float = Field(default=0, description="Traffic change in percent")
    price_change: float = Field(default=0, description="Price change in percent")
    campaign_intensity: float = Field(default=50, ge=0, le=100, description="Campaign intensity, 50 is neutral")
    platform_distribution: PlatformDistribution = Field(default_factory=PlatformDistribution)
    feature_toggle: bool = Field(default=False)


DEFAULT_SCENARIO = ScenarioInputs()


class GenerateOptions(BaseModel):
    """Options for the dataset generator."""

    days: int = Field(default=60, ge=0)
    start_date: date | None = Field(default=None, description="First date; defaults to today - (days - 1)")
    seed: int | None = Field(default=None, description="Seed for the random generator")


# ---------------------------------------------------------------------------
# Dataset contracts
# ---------------------------------------------------------------------------

class TimeSeriesPoint(BaseModel):
    date: str
    value: float


class SegmentedKpiSeries(BaseModel):
    """One KPI series for one segment; all series of a dataset share dates."""

    kpi: Kpi
    segment_id: str
    points: list[TimeSeriesPoint] = Field(default_factory=list)

    def values(self) -> list[float]:
        return [p.value for p in self.points]

    def dates(self) -> list[str]:
        return [p.date for p in self.points]


class GeneratedDataset(BaseModel):
    """Full synthetic dataset: every KPI for every segment."""

    kpis: list[Kpi]
    segments: list[Segment]
    series: list[SegmentedKpiSeries] = Field(default_factory=list)

    def series_for(self, kpi: Kpi) -> list[SegmentedKpiSeries]:
        return [s for s in self.series if s.kpi == kpi]

    def get_series(self, kpi: Kpi, segment_id: str) -> SegmentedKpiSeries | None:
        for s in self.series:
            if s.kpi == kpi and s.segment_id == segment_id:
                return s
        return None


# ---------------------------------------------------------------------------
# Analytics output contracts
# ---------------------------------------------------------------------------

class CorrelationResult(BaseModel):
    kpi: Kpi
    driver: Driver
    correlation: float = Field(ge=-1, le=1)
    segment_id: str | None = None
    p_value: float | None = None


class DeltaWindow(BaseModel):
    start_date: str
    end_date: str
    avg_value: float


class DeltaResult(BaseModel):
    """Last-7 vs previous-7 day shift for one KPI."""

    kpi: Kpi
    last_window: DeltaWindow
    prev_window: DeltaWindow
    delta: float = Field(description="Relative change (last - prev) / prev")
    is_anomaly: bool
    segment_id: str | None = None


class CausalityResult(BaseModel):
    kpi: Kpi
    driver: Driver
    causality_score: float = Field(ge=0, le=1)
    contribution_estimate: float = Field(ge=0, le=1)
    segment_id: str | None = None


# ---------------------------------------------------------------------------
# Insight contracts
# ---------------------------------------------------------------------------

class InsightPayload(BaseModel):
    """Structured request sent to an insight generator."""

    kpi: Kpi
    kpi_trend_summary: str
    top_drivers: list[CausalityResult] = Field(default_factory=list)
    anomalies: list[DeltaResult] = Field(default_factory=list)
    segment_highlights: list[str] = Field(default_factory=list)


class InsightResult(BaseModel):
    kpi: Kpi
    text: str
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
    )

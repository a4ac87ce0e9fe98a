"""
Immutable registries for KPIs, segments and drivers.

Defined once at import time.  Everything downstream iterates these
tuples in order, so the order here is also the generator's draw order.
"""

from __future__ import annotations

from core.contracts import (
    Driver,
    Kpi,
    KpiDefinition,
    KpiFormat,
    Platform,
    ScenarioInputs,
    Segment,
    UserType,
)


KPI_DEFINITIONS: tuple[KpiDefinition, ...] = (
    KpiDefinition(key=Kpi.CONVERSION_RATE, label="Conversion Rate", format=KpiFormat.PERCENT),
    KpiDefinition(key=Kpi.REVENUE, label="Revenue", format=KpiFormat.CURRENCY),
    KpiDefinition(key=Kpi.CHURN_RATE, label="Churn Rate", format=KpiFormat.PERCENT),
    KpiDefinition(key=Kpi.DAU, label="Daily Active Users", format=KpiFormat.INTEGER),
)

KPI_KEYS: tuple[Kpi, ...] = tuple(d.key for d in KPI_DEFINITIONS)

RATE_KPIS: frozenset[Kpi] = frozenset({Kpi.CONVERSION_RATE, Kpi.CHURN_RATE})

SEGMENTS: tuple[Segment, ...] = tuple(
    Segment(id=f"{platform.value}_{user_type.value}", platform=platform, user_type=user_type)
    for platform in (Platform.IOS, Platform.ANDROID, Platform.WEB)
    for user_type in (UserType.NEW, UserType.RETURNING)
)

ALL_DRIVERS: tuple[Driver, ...] = (
    Driver.LATENCY_CHANGE,
    Driver.CRASH_RATE_CHANGE,
    Driver.TRAFFIC_CHANGE,
    Driver.PRICE_CHANGE,
    Driver.CAMPAIGN_INTENSITY,
    Driver.FEATURE_TOGGLE,
)


def get_kpi_definition(kpi: Kpi | str) -> KpiDefinition:
    key = Kpi(kpi)
    for definition in KPI_DEFINITIONS:
        if definition.key == key:
            return definition
    raise KeyError(f"Unknown KPI: {kpi}")


def get_segment(segment_id: str) -> Segment:
    for segment in SEGMENTS:
        if segment.id == segment_id:
            return segment
    raise KeyError(f"Unknown segment: {segment_id}")


def driver_value(scenario: ScenarioInputs, driver: Driver) -> float:
    """
    Raw scenario value for *driver*.

    Each driver reads its own field; the boolean flag maps to 0.0 / 1.0.
    """
    if driver is Driver.LATENCY_CHANGE:
        return float(scenario.latency_change)
    if driver is Driver.CRASH_RATE_CHANGE:
        return float(scenario.crash_rate_change)
    if driver is Driver.TRAFFIC_CHANGE:
        return float(scenario.traffic_change)
    if driver is Driver.PRICE_CHANGE:
        return float(scenario.price_change)
    if driver is Driver.CAMPAIGN_INTENSITY:
        return float(scenario.campaign_intensity)
    if driver is Driver.FEATURE_TOGGLE:
        return 1.0 if scenario.feature_toggle else 0.0
    raise ValueError(f"Unknown driver: {driver!r}")


def normalized_driver_value(scenario: ScenarioInputs, driver: Driver) -> float:
    """
    Signed driver magnitude on a roughly [-1, 1] scale.

    Percentage drivers are divided by 100, campaign intensity is centred
    on its neutral value 50, and the feature flag is 0 or 1.
    """
    raw = driver_value(scenario, driver)
    if driver is Driver.CAMPAIGN_INTENSITY:
        return (raw - 50.0) / 50.0
    if driver is Driver.FEATURE_TOGGLE:
        return raw
    return raw / 100.0


def format_kpi_value(kpi: Kpi | str, value: float) -> str:
    """Render *value* using the KPI's display format."""
    fmt = get_kpi_definition(kpi).format
    if fmt is KpiFormat.PERCENT:
        return f"{value * 100:.2f}%"
    if fmt is KpiFormat.CURRENCY:
        return f"${value:,.0f}"
    return f"{value:,.0f}"

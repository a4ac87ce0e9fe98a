"""
Causality scoring engine.

A heuristic ranking of driver importance per KPI, not a causal
inference procedure.  For each correlation:

    raw = |corr| * (0.5 + 0.5 * delta_score) * relevance * magnitude * boost

where ``delta_score = min(1, |delta| / threshold)`` and ``boost`` is 1.2
for anomalous KPIs.  Within each KPI, scores are divided by the group
maximum and contributions are the normalised scores over their sum.
"""

from __future__ import annotations

from collections import defaultdict

from loguru import logger

from analytics.common import anomaly_threshold
from core.contracts import (
    CausalityResult,
    CorrelationResult,
    DeltaResult,
    Driver,
    GeneratedDataset,
    Kpi,
    ScenarioInputs,
)
from core.registry import driver_value


ANOMALY_BOOST = 1.2
MAGNITUDE_DIVISOR = 50.0

DRIVER_RELEVANCE: dict[Driver, float] = {
    Driver.LATENCY_CHANGE: 1.0,
    Driver.CRASH_RATE_CHANGE: 1.0,
    Driver.TRAFFIC_CHANGE: 1.0,
    Driver.PRICE_CHANGE: 0.9,
    Driver.CAMPAIGN_INTENSITY: 0.8,
    Driver.FEATURE_TOGGLE: 0.6,
}


def driver_relevance(driver: Driver) -> float:
    return DRIVER_RELEVANCE[driver]


def driver_magnitude_weight(driver: Driver, scenario: ScenarioInputs) -> float:
    """How far the scenario pushes *driver*, in [0, 1]."""
    raw = driver_value(scenario, driver)
    if driver is Driver.FEATURE_TOGGLE:
        return raw
    if driver is Driver.CAMPAIGN_INTENSITY:
        raw = raw - 50.0
    return min(1.0, abs(raw) / MAGNITUDE_DIVISOR)


def raw_score(
    correlation: CorrelationResult,
    delta: DeltaResult | None,
    scenario: ScenarioInputs,
) -> float:
    threshold = anomaly_threshold(correlation.kpi)
    rel_delta = delta.delta if delta is not None else 0.0
    delta_score = 0.0 if threshold == 0 else min(1.0, abs(rel_delta) / threshold)
    boost = ANOMALY_BOOST if delta is not None and delta.is_anomaly else 1.0

    return (
        abs(correlation.correlation)
        * (0.5 + 0.5 * delta_score)
        * driver_relevance(correlation.driver)
        * driver_magnitude_weight(correlation.driver, scenario)
        * boost
    )


def calculate_causality_scores(
    dataset: GeneratedDataset,
    scenario: ScenarioInputs,
    correlations: list[CorrelationResult],
    deltas: list[DeltaResult],
) -> list[CausalityResult]:
    """
    One ``CausalityResult`` per correlation, normalised within each KPI.

    ``dataset`` is accepted for interface symmetry with the other stages;
    the score depends only on the scenario, correlations and deltas.
    """
    delta_by_kpi: dict[Kpi, DeltaResult] = {d.kpi: d for d in deltas}

    grouped: dict[Kpi, list[tuple[Driver, float]]] = defaultdict(list)
    for corr in correlations:
        score = raw_score(corr, delta_by_kpi.get(corr.kpi), scenario)
        grouped[corr.kpi].append((corr.driver, score))

    results: list[CausalityResult] = []

    for kpi, scored in grouped.items():
        max_score = max(score for _, score in scored)

        if max_score <= 0:
            results.extend(
                CausalityResult(kpi=kpi, driver=driver, causality_score=0.0, contribution_estimate=0.0)
                for driver, _ in scored
            )
            continue

        normalised = [(driver, score / max_score) for driver, score in scored]
        total = sum(score for _, score in normalised)

        results.extend(
            CausalityResult(
                kpi=kpi,
                driver=driver,
                causality_score=score,
                contribution_estimate=score / total if total > 0 else 0.0,
            )
            for driver, score in normalised
        )

    logger.debug(f"Scored {len(results)} driver/KPI pairs across {len(grouped)} KPIs")
    return results

"""
Correlation engine.

For every KPI and driver, correlates a synthetic driver-exposure series
with the cross-segment KPI average.  The exposure shapes are a separate
signal model from the generator's driver effects; the coefficients are a
heuristic proxy, not a recovery of the generator's ground truth.

Shapes over normalised progress p = i / (n - 1):

    latency_change      base * p                 (ramps up)
    crash_rate_change   base * (1 - p)           (ramps down)
    traffic_change      base * |p - 0.5|         (V around the midpoint)
    price_change        base * (1 - |p - 0.5|)   (inverted V)
    campaign_intensity  base * exp(-3p)          (exponential decay)
    feature_toggle      base for i > n / 2       (step, second half only)
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
from loguru import logger

from analytics.common import aggregate_kpi_series, pearson_correlation
from core.contracts import CorrelationResult, Driver, GeneratedDataset, ScenarioInputs
from core.registry import ALL_DRIVERS, normalized_driver_value


CAMPAIGN_EXPOSURE_DECAY = 3.0


def exposure_shape(driver: Driver, length: int) -> np.ndarray:
    """Unit temporal shape of *driver* over *length* points."""
    if length <= 0:
        return np.array([], dtype=float)

    i = np.arange(length, dtype=float)
    p = i / (length - 1) if length > 1 else np.zeros(length)

    if driver is Driver.LATENCY_CHANGE:
        return p
    if driver is Driver.CRASH_RATE_CHANGE:
        return 1.0 - p
    if driver is Driver.TRAFFIC_CHANGE:
        return np.abs(p - 0.5)
    if driver is Driver.PRICE_CHANGE:
        return 1.0 - np.abs(p - 0.5)
    if driver is Driver.CAMPAIGN_INTENSITY:
        return np.exp(-CAMPAIGN_EXPOSURE_DECAY * p)
    if driver is Driver.FEATURE_TOGGLE:
        return (i > length / 2).astype(float)
    raise ValueError(f"Unknown driver: {driver!r}")


def build_driver_series(driver: Driver, scenario: ScenarioInputs, length: int) -> np.ndarray:
    """Exposure series for *driver*, scaled by its scenario magnitude."""
    return normalized_driver_value(scenario, driver) * exposure_shape(driver, length)


def calculate_correlations(
    dataset: GeneratedDataset,
    scenario: ScenarioInputs,
    drivers: Iterable[Driver] | None = None,
) -> list[CorrelationResult]:
    """
    One ``CorrelationResult`` per (KPI, driver).

    KPIs whose aggregated series has fewer than two points are skipped.
    No ordering is implied.

    Args:
        dataset:  Generated dataset.
        scenario: Scenario the dataset was generated from.
        drivers:  Drivers to correlate (default: all six).
    """
    drivers = list(drivers) if drivers is not None else list(ALL_DRIVERS)
    results: list[CorrelationResult] = []

    for kpi in dataset.kpis:
        kpi_series = aggregate_kpi_series(dataset, kpi)
        if kpi_series.size < 2:
            logger.debug(f"Skipping correlations for {kpi.value}: {kpi_series.size} points")
            continue

        for driver in drivers:
            driver_series = build_driver_series(driver, scenario, kpi_series.size)
            results.append(CorrelationResult(
                kpi=kpi,
                driver=driver,
                correlation=pearson_correlation(driver_series, kpi_series),
            ))

    logger.debug(f"Computed {len(results)} correlations")
    return results

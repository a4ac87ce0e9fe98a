"""
Synthetic KPI dataset generator.

Builds one daily series per (KPI, segment) pair from a scenario:

    value[t] = baseline * segment_modifier
               * clip(1 + trend[t] + seasonality[t] + driver[t])
               * (1 + noise[t])

followed by KPI-specific post-processing (rates clamped to [0, 1] and
rounded to 4 decimals; counts and currency rounded and floored at 0).

The random source is a ``numpy.random.Generator`` owned by the caller.
Draws happen in a fixed order that does not depend on the scenario:
for each KPI, one baseline, then one noise vector per segment.  Two
calls with the same seed therefore differ only through the scenario.
"""

from __future__ import annotations

from datetime import date, timedelta

import numpy as np
import pandas as pd
from loguru import logger

from core.contracts import (
    Driver,
    GeneratedDataset,
    GenerateOptions,
    Kpi,
    ScenarioInputs,
    Segment,
    SegmentedKpiSeries,
    TimeSeriesPoint,
)
from core.registry import KPI_KEYS, RATE_KPIS, SEGMENTS, normalized_driver_value
from generation.tables import (
    CAMPAIGN_DECAY,
    DRIVER_EFFECT_BOUNDS,
    DRIVER_SEGMENT_MULTIPLIER,
    FEATURE_TOGGLE_OFFSETS,
    KPI_BASELINE_RANGE,
    MULTIPLIER_BOUNDS,
    NOISE_LEVEL,
    RATE_DECIMALS,
    SEASONALITY_AMPLITUDE,
    SEASONALITY_PERIOD_DAYS,
    SEGMENT_MODIFIERS,
    SENSITIVITY,
    TREND_SLOPE,
)


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

def build_date_range(days: int, start_date: date | None = None) -> list[str]:
    """
    Consecutive ISO dates.  Without a start date the range ends today.
    """
    if start_date is None:
        start_date = date.today() - timedelta(days=max(days - 1, 0))
    return pd.date_range(start=start_date, periods=days, freq="D").strftime("%Y-%m-%d").tolist()


def _progress(days: int) -> np.ndarray:
    """Normalised position t / (days - 1) in [0, 1]."""
    return np.arange(days, dtype=float) / max(days - 1, 1)


# ---------------------------------------------------------------------------
# Signal components
# ---------------------------------------------------------------------------

def trend_factor(kpi: Kpi, progress: np.ndarray) -> np.ndarray:
    return TREND_SLOPE[kpi] * progress


def seasonality_factor(days: int) -> np.ndarray:
    t = np.arange(days, dtype=float)
    return SEASONALITY_AMPLITUDE * np.sin(2 * np.pi * t / SEASONALITY_PERIOD_DAYS)


def temporal_factor(driver: Driver, progress: np.ndarray) -> np.ndarray:
    # Only the campaign is front-loaded; other drivers act evenly.
    if driver is Driver.CAMPAIGN_INTENSITY:
        return 1.0 - CAMPAIGN_DECAY * progress
    return np.ones_like(progress)


def driver_effect(
    kpi: Kpi,
    segment: Segment,
    scenario: ScenarioInputs,
    progress: np.ndarray,
) -> np.ndarray:
    """
    Combined scenario effect on one (KPI, segment) series, per day.

    Sums sensitivity * normalised driver value * segment multiplier *
    temporal factor over every driver the KPI is sensitive to, adds the
    feature-flag platform offsets, and clamps to ``DRIVER_EFFECT_BOUNDS``.
    """
    total = np.zeros_like(progress)

    for driver, sensitivity in SENSITIVITY.get(kpi, {}).items():
        magnitude = normalized_driver_value(scenario, driver)
        segment_mult = DRIVER_SEGMENT_MULTIPLIER.get(driver, {}).get(segment.id, 1.0)
        total = total + sensitivity * magnitude * segment_mult * temporal_factor(driver, progress)

    if scenario.feature_toggle:
        total = total + FEATURE_TOGGLE_OFFSETS.get((kpi, segment.platform), 0.0)

    return np.clip(total, *DRIVER_EFFECT_BOUNDS)


def post_process(kpi: Kpi, values: np.ndarray) -> np.ndarray:
    if kpi in RATE_KPIS:
        return np.round(np.clip(values, 0.0, 1.0), RATE_DECIMALS)
    return np.maximum(np.round(values), 0.0)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_dataset(
    scenario: ScenarioInputs,
    options: GenerateOptions | None = None,
    rng: np.random.Generator | None = None,
) -> GeneratedDataset:
    """
    Generate a fresh multi-KPI, multi-segment dataset for *scenario*.

    Args:
        scenario: Driver settings.  Not modified.
        options:  Horizon, start date and seed.  Defaults to 60 days
                  ending today with an unseeded generator.
        rng:      Random generator to draw from.  Takes precedence over
                  ``options.seed``.

    Returns:
        A ``GeneratedDataset`` with ``len(KPI_KEYS) * len(SEGMENTS)``
        series, all sharing the same dates.
    """
    options = options or GenerateOptions()
    if rng is None:
        rng = np.random.default_rng(options.seed)

    days = options.days
    dates = build_date_range(days, options.start_date)
    progress = _progress(days)
    seasonality = seasonality_factor(days)

    series: list[SegmentedKpiSeries] = []

    for kpi in KPI_KEYS:
        low, high = KPI_BASELINE_RANGE[kpi]
        baseline = rng.uniform(low, high)
        trend = trend_factor(kpi, progress)

        for segment in SEGMENTS:
            segment_baseline = baseline * SEGMENT_MODIFIERS.get(segment.id, 1.0)
            effect = driver_effect(kpi, segment, scenario, progress)
            multiplier = np.clip(1.0 + trend + seasonality + effect, *MULTIPLIER_BOUNDS)

            noise = NOISE_LEVEL[kpi] * rng.uniform(-1.0, 1.0, size=days)
            values = post_process(kpi, segment_baseline * multiplier * (1.0 + noise))

            series.append(SegmentedKpiSeries(
                kpi=kpi,
                segment_id=segment.id,
                points=[
                    TimeSeriesPoint(date=d, value=float(v))
                    for d, v in zip(dates, values)
                ],
            ))

        logger.debug(f"Generated {kpi.value}: baseline={baseline:.4f}, segments={len(SEGMENTS)}")

    logger.info(
        f"Generated dataset: {len(KPI_KEYS)} KPIs x {len(SEGMENTS)} segments, "
        f"{days} days ({dates[0] if dates else '-'} .. {dates[-1] if dates else '-'})"
    )

    return GeneratedDataset(
        kpis=list(KPI_KEYS),
        segments=list(SEGMENTS),
        series=series,
    )

"""
Delta / anomaly engine.

Compares the mean of the last 7 days with the mean of the 7 days
immediately before it, per KPI, on the cross-segment average.
"""

from __future__ import annotations

from loguru import logger

from analytics.common import (
    WINDOW_SIZE,
    aggregate_kpi_series,
    anomaly_threshold,
    relative_delta,
    series_length,
    window_mean,
)
from core.contracts import DeltaResult, DeltaWindow, GeneratedDataset


def calculate_deltas(dataset: GeneratedDataset) -> list[DeltaResult]:
    """
    At most one ``DeltaResult`` per KPI.

    Returns an empty list when the dataset is empty or has fewer than
    two full windows of history.  Window dates are read from the
    dataset's own series, not recomputed.

    Raises:
        SeriesAlignmentError: If the series do not share one length.
    """
    total = series_length(dataset)
    if total < WINDOW_SIZE * 2:
        logger.warning(
            f"Insufficient history for deltas: {total} points, need {WINDOW_SIZE * 2}"
        )
        return []

    reference = dataset.series[0].points
    last_start = total - WINDOW_SIZE
    prev_start = total - WINDOW_SIZE * 2

    results: list[DeltaResult] = []

    for kpi in dataset.kpis:
        values = aggregate_kpi_series(dataset, kpi)
        if values.size < total:
            continue

        prev_avg = window_mean(values, prev_start)
        last_avg = window_mean(values, last_start)
        delta = relative_delta(last_avg, prev_avg)

        results.append(DeltaResult(
            kpi=kpi,
            last_window=DeltaWindow(
                start_date=reference[last_start].date,
                end_date=reference[total - 1].date,
                avg_value=last_avg,
            ),
            prev_window=DeltaWindow(
                start_date=reference[prev_start].date,
                end_date=reference[last_start - 1].date,
                avg_value=prev_avg,
            ),
            delta=delta,
            is_anomaly=abs(delta) >= anomaly_threshold(kpi),
        ))

    n_anomalies = sum(1 for r in results if r.is_anomaly)
    logger.debug(f"Computed {len(results)} deltas ({n_anomalies} anomalies)")
    return results

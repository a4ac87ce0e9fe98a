"""
Shared helpers for the analytics engines.

The delta and causality engines must agree on anomaly thresholds and
every engine must aggregate segments the same way, so both live here.
"""

from __future__ import annotations

import numpy as np

from core.contracts import GeneratedDataset, Kpi
from core.exceptions import SeriesAlignmentError
from core.registry import RATE_KPIS


RATE_ANOMALY_THRESHOLD = 0.05
MAGNITUDE_ANOMALY_THRESHOLD = 0.10

WINDOW_SIZE = 7


def anomaly_threshold(kpi: Kpi) -> float:
    """Minimum absolute relative delta that counts as an anomaly."""
    if kpi in RATE_KPIS:
        return RATE_ANOMALY_THRESHOLD
    return MAGNITUDE_ANOMALY_THRESHOLD


def series_length(dataset: GeneratedDataset) -> int:
    """
    Common length of every series in *dataset* (0 when empty).

    Raises:
        SeriesAlignmentError: If any two series differ in length.
    """
    lengths = {len(s.points) for s in dataset.series}
    if not lengths:
        return 0
    if len(lengths) > 1:
        raise SeriesAlignmentError(
            f"Series lengths differ: {sorted(lengths)}"
        )
    return lengths.pop()


def aggregate_kpi_series(dataset: GeneratedDataset, kpi: Kpi) -> np.ndarray:
    """
    Cross-segment mean of *kpi* at each date index.

    Returns an empty array when the dataset has no series for *kpi*.

    Raises:
        SeriesAlignmentError: If the KPI's segment series differ in length.
    """
    series = dataset.series_for(kpi)
    if not series:
        return np.array([], dtype=float)

    lengths = {len(s.points) for s in series}
    if len(lengths) > 1:
        raise SeriesAlignmentError(
            f"Segment series for {Kpi(kpi).value} differ in length: {sorted(lengths)}",
            kpi=Kpi(kpi).value,
        )

    matrix = np.array([s.values() for s in series], dtype=float)
    return matrix.mean(axis=0)


def pearson_correlation(xs: np.ndarray | list[float], ys: np.ndarray | list[float]) -> float:
    """
    Pearson correlation using population moments.

    Returns 0.0 for fewer than two points or when either input is
    constant.  The result is clipped to [-1, 1].

    Raises:
        ValueError: If the inputs differ in length.
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)

    if x.shape != y.shape:
        raise ValueError(f"Length mismatch: {x.shape[0]} vs {y.shape[0]}")
    if x.size < 2:
        return 0.0
    # Constant input has zero variance; decide before floating-point noise can.
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return 0.0

    # Scale into [-1, 1] first so the moments cannot overflow.
    x = x / np.abs(x).max()
    y = y / np.abs(y).max()
    dx = x - x.mean()
    dy = y - y.mean()
    var_x = np.mean(dx * dx)
    var_y = np.mean(dy * dy)
    if var_x <= 0 or var_y <= 0:
        return 0.0

    corr = np.mean(dx * dy) / np.sqrt(var_x * var_y)
    return float(np.clip(corr, -1.0, 1.0))


def window_mean(values: np.ndarray, start: int, size: int = WINDOW_SIZE) -> float:
    return float(np.mean(values[start:start + size]))


def relative_delta(last_avg: float, prev_avg: float) -> float:
    """(last - prev) / prev, or 0.0 when prev is exactly zero."""
    if prev_avg == 0:
        return 0.0
    return (last_avg - prev_avg) / prev_avg

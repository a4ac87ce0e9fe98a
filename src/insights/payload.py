"""
Build the structured payload an insight generator explains.

Ranking happens here, not in the engines: top drivers are the KPI's
causality results sorted by score, and segment highlights are the
segments whose last-7 vs previous-7 change is largest in magnitude.
"""

from __future__ import annotations

import numpy as np

from analytics.common import WINDOW_SIZE, relative_delta, series_length, window_mean
from core.contracts import (
    CausalityResult,
    DeltaResult,
    GeneratedDataset,
    InsightPayload,
    Kpi,
)
from core.registry import get_segment


NO_MOVEMENT_SUMMARY = "No recent movement detected."
INSUFFICIENT_SEGMENT_HISTORY = (
    "Not enough history to compare segments over the last two weeks."
)


def trend_summary(delta: DeltaResult | None) -> str:
    """One sentence describing the last-7 vs previous-7 movement."""
    if delta is None:
        return NO_MOVEMENT_SUMMARY

    if delta.delta > 0:
        direction = "increased"
    elif delta.delta < 0:
        direction = "decreased"
    else:
        direction = "stayed roughly flat"

    return (
        "Over the last 7 days versus the previous 7 days, the KPI has "
        f"{direction} by approximately {delta.delta * 100:.1f}%."
    )


def top_drivers(
    causality: list[CausalityResult],
    kpi: Kpi,
    limit: int = 5,
) -> list[CausalityResult]:
    ranked = sorted(
        (c for c in causality if c.kpi == kpi),
        key=lambda c: c.causality_score,
        reverse=True,
    )
    return ranked[:limit]


def segment_changes(dataset: GeneratedDataset, kpi: Kpi) -> dict[str, float]:
    """Relative last-7 vs previous-7 change per segment for *kpi*."""
    total = series_length(dataset)
    if total < WINDOW_SIZE * 2:
        return {}

    changes: dict[str, float] = {}
    for series in dataset.series_for(kpi):
        values = np.asarray(series.values(), dtype=float)
        prev_avg = window_mean(values, total - WINDOW_SIZE * 2)
        last_avg = window_mean(values, total - WINDOW_SIZE)
        changes[series.segment_id] = relative_delta(last_avg, prev_avg)
    return changes


def segment_highlights(
    dataset: GeneratedDataset,
    kpi: Kpi,
    limit: int = 3,
) -> list[str]:
    changes = segment_changes(dataset, kpi)
    if not changes:
        return [INSUFFICIENT_SEGMENT_HISTORY]

    ranked = sorted(changes.items(), key=lambda item: abs(item[1]), reverse=True)
    highlights = []
    for segment_id, change in ranked[:limit]:
        segment = get_segment(segment_id)
        direction = "up" if change >= 0 else "down"
        highlights.append(
            f"{segment.platform.value} / {segment.user_type.value} users: "
            f"{direction} {abs(change) * 100:.1f}% week over week."
        )
    return highlights


def build_insight_payload(
    kpi: Kpi,
    dataset: GeneratedDataset,
    deltas: list[DeltaResult],
    causality: list[CausalityResult],
    top_n_drivers: int = 5,
    top_n_segments: int = 3,
) -> InsightPayload:
    """Assemble the ``InsightPayload`` for one KPI."""
    kpi = Kpi(kpi)
    delta = next((d for d in deltas if d.kpi == kpi), None)

    return InsightPayload(
        kpi=kpi,
        kpi_trend_summary=trend_summary(delta),
        top_drivers=top_drivers(causality, kpi, limit=top_n_drivers),
        anomalies=[delta] if delta is not None and delta.is_anomaly else [],
        segment_highlights=segment_highlights(dataset, kpi, limit=top_n_segments),
    )

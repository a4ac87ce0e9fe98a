"""
Pipeline runner -- one generation cycle, end to end.

Orchestrates:
  1. Generate    -- synthesise the segmented KPI dataset
  2. Correlate   -- driver exposure vs aggregated KPI
  3. Deltas      -- last-7 vs previous-7 shift and anomaly flag
  4. Causality   -- heuristic per-KPI driver ranking

Correlations and deltas depend only on the dataset and scenario;
causality consumes all three.  The four outputs are returned together
in one ``AnalyticsBundle`` so consumers replace them atomically.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Iterable

import numpy as np
import pandas as pd
from loguru import logger

from analytics.causality import calculate_causality_scores
from analytics.correlation import calculate_correlations
from analytics.deltas import calculate_deltas
from core.contracts import (
    CausalityResult,
    CorrelationResult,
    DeltaResult,
    Driver,
    GeneratedDataset,
    GenerateOptions,
    Kpi,
    ScenarioInputs,
)
from core.registry import get_segment
from generation.dataset import generate_dataset


@dataclass(frozen=True)
class AnalyticsBundle:
    """Outputs of one generation cycle."""

    scenario: ScenarioInputs
    dataset: GeneratedDataset
    correlations: list[CorrelationResult]
    deltas: list[DeltaResult]
    causality: list[CausalityResult]

    def delta_for(self, kpi: Kpi) -> DeltaResult | None:
        return next((d for d in self.deltas if d.kpi == kpi), None)

    def to_dict(self) -> dict:
        return {
            "scenario": self.scenario.model_dump(mode="json"),
            "dataset": self.dataset.model_dump(mode="json"),
            "correlations": [c.model_dump(mode="json") for c in self.correlations],
            "deltas": [d.model_dump(mode="json") for d in self.deltas],
            "causality": [c.model_dump(mode="json") for c in self.causality],
        }


def run_analysis(
    scenario: ScenarioInputs,
    options: GenerateOptions | None = None,
    rng: np.random.Generator | None = None,
    drivers: Iterable[Driver] | None = None,
) -> AnalyticsBundle:
    """
    Run the full pipeline for *scenario* and return every output.

    Example::

        bundle = run_analysis(ScenarioInputs(latency_change=20), GenerateOptions(seed=7))
        ranked = sorted(bundle.causality, key=lambda c: c.causality_score, reverse=True)
    """
    t0 = time.time()

    logger.info("Pipeline step: generate")
    dataset = generate_dataset(scenario, options=options, rng=rng)

    logger.info("Pipeline step: correlate")
    correlations = calculate_correlations(dataset, scenario, drivers=drivers)

    logger.info("Pipeline step: deltas")
    deltas = calculate_deltas(dataset)

    logger.info("Pipeline step: causality")
    causality = calculate_causality_scores(
        dataset=dataset,
        scenario=scenario,
        correlations=correlations,
        deltas=deltas,
    )

    logger.info(
        f"Pipeline complete in {time.time() - t0:.3f}s: "
        f"{len(dataset.series)} series, {len(correlations)} correlations, "
        f"{len(deltas)} deltas ({sum(d.is_anomaly for d in deltas)} anomalies)"
    )

    return AnalyticsBundle(
        scenario=scenario,
        dataset=dataset,
        correlations=correlations,
        deltas=deltas,
        causality=causality,
    )


# ---------------------------------------------------------------------------
# Tabular views
# ---------------------------------------------------------------------------

def dataset_to_frame(dataset: GeneratedDataset) -> pd.DataFrame:
    """
    Long-format view of the dataset.

    Columns: date | kpi | segment_id | platform | user_type | value
    """
    records = []
    for series in dataset.series:
        segment = get_segment(series.segment_id)
        for point in series.points:
            records.append({
                "date": point.date,
                "kpi": series.kpi.value,
                "segment_id": series.segment_id,
                "platform": segment.platform.value,
                "user_type": segment.user_type.value,
                "value": point.value,
            })
    return pd.DataFrame(
        records,
        columns=["date", "kpi", "segment_id", "platform", "user_type", "value"],
    )


def correlations_to_frame(correlations: list[CorrelationResult]) -> pd.DataFrame:
    df = pd.DataFrame(
        [c.model_dump(mode="json") for c in correlations],
        columns=["kpi", "driver", "correlation", "segment_id", "p_value"],
    )
    return df


def deltas_to_frame(deltas: list[DeltaResult]) -> pd.DataFrame:
    records = [
        {
            "kpi": d.kpi.value,
            "prev_start": d.prev_window.start_date,
            "prev_end": d.prev_window.end_date,
            "prev_avg": d.prev_window.avg_value,
            "last_start": d.last_window.start_date,
            "last_end": d.last_window.end_date,
            "last_avg": d.last_window.avg_value,
            "delta": d.delta,
            "is_anomaly": d.is_anomaly,
        }
        for d in deltas
    ]
    return pd.DataFrame(
        records,
        columns=[
            "kpi", "prev_start", "prev_end", "prev_avg",
            "last_start", "last_end", "last_avg", "delta", "is_anomaly",
        ],
    )


def causality_to_frame(causality: list[CausalityResult]) -> pd.DataFrame:
    """Causality results ranked by score within each KPI."""
    df = pd.DataFrame(
        [c.model_dump(mode="json") for c in causality],
        columns=["kpi", "driver", "causality_score", "contribution_estimate", "segment_id"],
    )
    if df.empty:
        return df
    return df.sort_values(
        ["kpi", "causality_score"], ascending=[True, False],
    ).reset_index(drop=True)

"""Shared fixtures for KPI Lab tests."""

from datetime import date

import pytest

from core.contracts import (
    GeneratedDataset,
    GenerateOptions,
    Kpi,
    ScenarioInputs,
    SegmentedKpiSeries,
    TimeSeriesPoint,
)
from generation.dataset import build_date_range


@pytest.fixture
def neutral_scenario():
    return ScenarioInputs()


@pytest.fixture
def fixed_options():
    return GenerateOptions(days=60, start_date=date(2024, 1, 1), seed=42)


@pytest.fixture
def make_dataset():
    """Build a small hand-written dataset: {kpi: [[segment values], ...]}."""

    def _make(values_by_kpi, start=date(2024, 3, 1)):
        series = []
        for kpi, segments in values_by_kpi.items():
            for i, values in enumerate(segments):
                dates = build_date_range(len(values), start)
                series.append(SegmentedKpiSeries(
                    kpi=kpi,
                    segment_id=f"seg_{i}",
                    points=[TimeSeriesPoint(date=d, value=v) for d, v in zip(dates, values)],
                ))
        return GeneratedDataset(kpis=list(values_by_kpi), segments=[], series=series)

    return _make


@pytest.fixture
def step_dataset(make_dataset):
    """21 days of revenue: flat at 100, last 7 days at 120."""
    values = [100.0] * 14 + [120.0] * 7
    return make_dataset({Kpi.REVENUE: [values, values]})

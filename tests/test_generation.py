"""Tests for the synthetic dataset generator."""

from datetime import date, timedelta

import numpy as np
import pytest

from core.contracts import GenerateOptions, Kpi, ScenarioInputs
from core.registry import KPI_KEYS, SEGMENTS, get_segment
from generation.dataset import (
    build_date_range,
    driver_effect,
    generate_dataset,
    seasonality_factor,
    trend_factor,
)


class TestDatasetShape:
    """Test dataset structure and alignment."""

    def test_series_count(self, neutral_scenario, fixed_options):
        """One series per (KPI, segment)."""
        ds = generate_dataset(neutral_scenario, fixed_options)

        assert ds.kpis == list(KPI_KEYS)
        assert len(ds.segments) == 6
        assert len(ds.series) == len(KPI_KEYS) * len(SEGMENTS)

    def test_series_aligned(self, neutral_scenario, fixed_options):
        """Every series for a KPI shares length and dates."""
        ds = generate_dataset(neutral_scenario, fixed_options)

        for kpi in ds.kpis:
            series = ds.series_for(kpi)
            reference = series[0].dates()
            assert len(reference) == 60
            for s in series:
                assert s.dates() == reference

    def test_dates_consecutive(self, neutral_scenario, fixed_options):
        """Dates start at start_date and advance one day at a time."""
        ds = generate_dataset(neutral_scenario, fixed_options)
        dates = ds.series[0].dates()

        assert dates[0] == "2024-01-01"
        assert dates[-1] == "2024-02-29"
        assert len(set(dates)) == len(dates)

    def test_default_range_ends_today(self):
        """Without a start date the horizon ends today."""
        dates = build_date_range(10)

        assert len(dates) == 10
        assert dates[-1] == date.today().isoformat()
        assert dates[0] == (date.today() - timedelta(days=9)).isoformat()

    def test_scenario_not_mutated(self, fixed_options):
        """The generator leaves the scenario untouched."""
        scenario = ScenarioInputs(latency_change=30, feature_toggle=True)
        before = scenario.model_dump()

        generate_dataset(scenario, fixed_options)

        assert scenario.model_dump() == before


class TestScenarioContract:
    """Test scenario validation."""

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValueError):
            ScenarioInputs(latency_change=value)
        with pytest.raises(ValueError):
            ScenarioInputs(price_change=value)

    def test_non_finite_distribution_rejected(self):
        with pytest.raises(ValueError):
            ScenarioInputs.model_validate({"platform_distribution": {"ios": float("inf")}})

    def test_large_finite_accepted(self, fixed_options):
        scenario = ScenarioInputs(traffic_change=1e300)

        ds = generate_dataset(scenario, fixed_options)

        assert all(np.isfinite(s.values()).all() for s in ds.series)


class TestDeterminism:
    """Test seeded reproducibility."""

    def test_same_seed_same_output(self, neutral_scenario, fixed_options):
        a = generate_dataset(neutral_scenario, fixed_options)
        b = generate_dataset(neutral_scenario, fixed_options)

        assert a.model_dump() == b.model_dump()

    def test_explicit_rng(self, neutral_scenario, fixed_options):
        """A caller-owned generator gives the same result as the seed."""
        a = generate_dataset(neutral_scenario, fixed_options)
        b = generate_dataset(
            neutral_scenario,
            fixed_options.model_copy(update={"seed": None}),
            rng=np.random.default_rng(42),
        )

        assert a.model_dump() == b.model_dump()

    def test_different_seed_differs(self, neutral_scenario, fixed_options):
        a = generate_dataset(neutral_scenario, fixed_options)
        b = generate_dataset(neutral_scenario, fixed_options.model_copy(update={"seed": 43}))

        assert a.model_dump() != b.model_dump()


class TestValues:
    """Test value ranges and post-processing."""

    def test_neutral_conversion_rate_bounds(self, neutral_scenario):
        """Neutral scenario tracks baseline x trend x seasonality x noise only."""
        for seed in range(5):
            ds = generate_dataset(neutral_scenario, GenerateOptions(days=60, seed=seed))
            for s in ds.series_for(Kpi.CONVERSION_RATE):
                values = np.array(s.values())
                # 0.015 * 0.9 * 0.97 * 0.98 .. 0.045 * 1.15 * 1.06 * 1.02
                assert values.min() >= 0.0127
                assert values.max() <= 0.0561

    def test_rate_kpis_rounded(self, neutral_scenario, fixed_options):
        ds = generate_dataset(neutral_scenario, fixed_options)

        for kpi in (Kpi.CONVERSION_RATE, Kpi.CHURN_RATE):
            for s in ds.series_for(kpi):
                for v in s.values():
                    assert 0 <= v <= 1
                    assert round(v, 4) == v

    def test_count_kpis_integral(self, neutral_scenario, fixed_options):
        ds = generate_dataset(neutral_scenario, fixed_options)

        for kpi in (Kpi.REVENUE, Kpi.DAU):
            for s in ds.series_for(kpi):
                for v in s.values():
                    assert v >= 0
                    assert v == int(v)

    def test_extreme_scenario_stays_bounded(self, fixed_options):
        """Driver effects are clamped, so extreme inputs stay finite and sane."""
        scenario = ScenarioInputs(
            latency_change=10_000, crash_rate_change=-10_000,
            traffic_change=10_000, price_change=10_000, campaign_intensity=100,
        )
        ds = generate_dataset(scenario, fixed_options)

        for s in ds.series_for(Kpi.REVENUE):
            # baseline max 80000 * 1.15 * (1 + 0.08 + 0.03 + 0.5) * 1.05
            assert max(s.values()) <= 80_000 * 1.15 * 1.61 * 1.05 + 1

    def test_zero_days(self, neutral_scenario):
        ds = generate_dataset(neutral_scenario, GenerateOptions(days=0, seed=1))

        assert all(len(s.points) == 0 for s in ds.series)


class TestFeatureToggle:
    """Test the feature flag's android offsets."""

    def test_android_conversion_drops(self, fixed_options):
        off = generate_dataset(ScenarioInputs(feature_toggle=False), fixed_options)
        on = generate_dataset(ScenarioInputs(feature_toggle=True), fixed_options)

        for segment in SEGMENTS:
            v_off = np.array(off.get_series(Kpi.CONVERSION_RATE, segment.id).values())
            v_on = np.array(on.get_series(Kpi.CONVERSION_RATE, segment.id).values())

            if segment.platform.value == "android":
                assert np.all(v_on <= v_off)
                assert v_on.mean() < v_off.mean()
            else:
                np.testing.assert_array_equal(v_on, v_off)

    def test_android_dau_rises(self, fixed_options):
        off = generate_dataset(ScenarioInputs(feature_toggle=False), fixed_options)
        on = generate_dataset(ScenarioInputs(feature_toggle=True), fixed_options)

        v_off = np.array(off.get_series(Kpi.DAU, "android_new").values())
        v_on = np.array(on.get_series(Kpi.DAU, "android_new").values())

        assert v_on.mean() > v_off.mean()


class TestSignalComponents:
    """Test the individual factors."""

    def test_trend_direction(self):
        progress = np.linspace(0, 1, 10)

        assert trend_factor(Kpi.REVENUE, progress)[-1] == pytest.approx(0.08)
        assert trend_factor(Kpi.CHURN_RATE, progress)[-1] == pytest.approx(-0.02)
        assert trend_factor(Kpi.DAU, progress)[0] == 0

    def test_seasonality_weekly(self):
        s = seasonality_factor(14)

        assert np.max(np.abs(s)) <= 0.03
        np.testing.assert_allclose(s[:7], s[7:], atol=1e-12)

    def test_neutral_driver_effect_zero(self, neutral_scenario):
        progress = np.linspace(0, 1, 30)
        for kpi in KPI_KEYS:
            for segment in SEGMENTS:
                effect = driver_effect(kpi, segment, neutral_scenario, progress)
                np.testing.assert_allclose(effect, 0.0, atol=1e-12)

    def test_driver_effect_clamped(self):
        scenario = ScenarioInputs(traffic_change=1000)
        effect = driver_effect(Kpi.DAU, get_segment("web_new"), scenario, np.linspace(0, 1, 5))

        np.testing.assert_allclose(effect, 0.5)

    def test_latency_segment_multiplier(self):
        """Android feels latency more than web."""
        scenario = ScenarioInputs(latency_change=10)
        progress = np.zeros(1)

        android = driver_effect(Kpi.CONVERSION_RATE, get_segment("android_new"), scenario, progress)
        web = driver_effect(Kpi.CONVERSION_RATE, get_segment("web_new"), scenario, progress)

        assert android[0] == pytest.approx(-0.3 * 0.1 * 1.3)
        assert web[0] == pytest.approx(-0.3 * 0.1)

    def test_campaign_decays(self):
        scenario = ScenarioInputs(campaign_intensity=100)
        effect = driver_effect(Kpi.DAU, get_segment("web_returning"), scenario, np.linspace(0, 1, 11))

        assert effect[0] == pytest.approx(0.5)
        assert effect[-1] == pytest.approx(0.5 * 0.3)
        assert np.all(np.diff(effect) < 0)

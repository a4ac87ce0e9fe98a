"""Tests for the correlation engine."""

import numpy as np
import pytest

from analytics.common import aggregate_kpi_series, pearson_correlation
from analytics.correlation import build_driver_series, calculate_correlations, exposure_shape
from core.contracts import Driver, Kpi, ScenarioInputs
from core.exceptions import SeriesAlignmentError
from core.registry import ALL_DRIVERS
from generation.dataset import generate_dataset


class TestPearson:
    """Test the Pearson helper."""

    def test_identical_series(self):
        x = np.random.default_rng(0).random(50)

        assert pearson_correlation(x, x) == pytest.approx(1.0)

    def test_negated_series(self):
        x = np.random.default_rng(1).random(50)

        assert pearson_correlation(x, -x) == pytest.approx(-1.0)

    def test_constant_series_is_zero(self):
        x = np.linspace(0, 1, 20)

        assert pearson_correlation(x, np.full(20, 0.1)) == 0.0
        assert pearson_correlation(np.full(20, 3.3), x) == 0.0

    def test_too_few_points(self):
        assert pearson_correlation([1.0], [2.0]) == 0.0
        assert pearson_correlation([], []) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            pearson_correlation([1, 2, 3], [1, 2])

    def test_bounded(self):
        rng = np.random.default_rng(3)
        for _ in range(20):
            x, y = rng.random(30), rng.random(30)
            assert -1.0 <= pearson_correlation(x, y) <= 1.0

    def test_scale_invariant(self):
        rng = np.random.default_rng(4)
        x, y = rng.random(40), rng.random(40)

        expected = pearson_correlation(x, y)

        assert pearson_correlation(x * 1e200, y) == pytest.approx(expected)
        assert pearson_correlation(x * 1e300, y * 1e-300) == pytest.approx(expected)


class TestDriverShapes:
    """Test driver exposure shapes."""

    def test_latency_ramps_up(self):
        s = exposure_shape(Driver.LATENCY_CHANGE, 11)

        assert s[0] == 0 and s[-1] == 1
        assert np.all(np.diff(s) > 0)

    def test_crash_ramps_down(self):
        s = exposure_shape(Driver.CRASH_RATE_CHANGE, 11)

        assert s[0] == 1 and s[-1] == 0

    def test_traffic_v_shape(self):
        s = exposure_shape(Driver.TRAFFIC_CHANGE, 11)

        assert np.argmin(s) == 5
        assert s[0] == pytest.approx(0.5)

    def test_price_inverted_v(self):
        s = exposure_shape(Driver.PRICE_CHANGE, 11)

        assert np.argmax(s) == 5
        assert s[5] == pytest.approx(1.0)

    def test_campaign_decays(self):
        s = exposure_shape(Driver.CAMPAIGN_INTENSITY, 11)

        assert s[0] == 1
        assert s[-1] == pytest.approx(np.exp(-3))

    def test_feature_toggle_step(self):
        s = exposure_shape(Driver.FEATURE_TOGGLE, 10)

        np.testing.assert_array_equal(s, [0, 0, 0, 0, 0, 0, 1, 1, 1, 1])

    def test_scaled_by_scenario(self):
        scenario = ScenarioInputs(price_change=-20, campaign_intensity=25, feature_toggle=True)

        assert build_driver_series(Driver.PRICE_CHANGE, scenario, 3)[1] == pytest.approx(-0.2)
        assert build_driver_series(Driver.CAMPAIGN_INTENSITY, scenario, 3)[0] == pytest.approx(-0.5)
        assert build_driver_series(Driver.FEATURE_TOGGLE, scenario, 4)[-1] == 1.0


class TestAggregation:
    """Test cross-segment aggregation."""

    def test_mean_across_segments(self, make_dataset):
        ds = make_dataset({Kpi.DAU: [[1.0, 2.0, 3.0], [3.0, 4.0, 5.0]]})

        np.testing.assert_allclose(aggregate_kpi_series(ds, Kpi.DAU), [2.0, 3.0, 4.0])

    def test_missing_kpi_empty(self, make_dataset):
        ds = make_dataset({Kpi.DAU: [[1.0, 2.0]]})

        assert aggregate_kpi_series(ds, Kpi.REVENUE).size == 0

    def test_misaligned_fails_fast(self, make_dataset):
        ds = make_dataset({Kpi.DAU: [[1.0, 2.0, 3.0], [1.0, 2.0]]})

        with pytest.raises(SeriesAlignmentError):
            aggregate_kpi_series(ds, Kpi.DAU)


class TestCalculateCorrelations:
    """Test the engine end to end."""

    def test_one_result_per_pair(self, fixed_options):
        scenario = ScenarioInputs(latency_change=20)
        ds = generate_dataset(scenario, fixed_options)

        results = calculate_correlations(ds, scenario)

        assert len(results) == len(ds.kpis) * len(ALL_DRIVERS)
        pairs = {(r.kpi, r.driver) for r in results}
        assert len(pairs) == len(results)
        assert all(r.segment_id is None and r.p_value is None for r in results)

    def test_driver_subset(self, fixed_options, neutral_scenario):
        ds = generate_dataset(neutral_scenario, fixed_options)

        results = calculate_correlations(ds, neutral_scenario, drivers=[Driver.LATENCY_CHANGE])

        assert {r.driver for r in results} == {Driver.LATENCY_CHANGE}
        assert len(results) == len(ds.kpis)

    def test_zero_magnitude_driver_is_zero(self, fixed_options, neutral_scenario):
        """A driver at its neutral value has a constant (zero) exposure."""
        ds = generate_dataset(neutral_scenario, fixed_options)

        results = calculate_correlations(ds, neutral_scenario)

        assert all(r.correlation == 0.0 for r in results)

    def test_known_correlation(self, make_dataset):
        """A KPI that rises linearly correlates perfectly with latency's ramp."""
        ds = make_dataset({Kpi.REVENUE: [[10.0, 20.0, 30.0, 40.0]]})
        scenario = ScenarioInputs(latency_change=10, crash_rate_change=10)

        results = {r.driver: r.correlation for r in calculate_correlations(ds, scenario)}

        assert results[Driver.LATENCY_CHANGE] == pytest.approx(1.0)
        assert results[Driver.CRASH_RATE_CHANGE] == pytest.approx(-1.0)

    def test_short_series_skipped(self, make_dataset):
        ds = make_dataset({Kpi.REVENUE: [[10.0]]})

        assert calculate_correlations(ds, ScenarioInputs(latency_change=5)) == []

    def test_extreme_driver_matches_saturated(self, fixed_options):
        """Once the driver effect saturates, a huge value correlates like a moderate one."""
        moderate = ScenarioInputs(latency_change=1000)
        extreme = ScenarioInputs(latency_change=1e300)

        expected = calculate_correlations(generate_dataset(moderate, fixed_options), moderate)
        results = calculate_correlations(generate_dataset(extreme, fixed_options), extreme)

        assert [r.correlation for r in results] == pytest.approx([r.correlation for r in expected])
        assert any(r.correlation != 0.0 for r in results)

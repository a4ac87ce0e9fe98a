"""
Fixed parameter tables for the synthetic dataset generator.

Absolute magnitudes here drive the statistical output of every
downstream engine; change them only together with the tests.
"""

from __future__ import annotations

from core.contracts import Driver, Kpi, Platform


# Uniform range the per-KPI baseline is drawn from (shared by all segments).
KPI_BASELINE_RANGE: dict[Kpi, tuple[float, float]] = {
    Kpi.CONVERSION_RATE: (0.015, 0.045),
    Kpi.REVENUE: (20_000.0, 80_000.0),
    Kpi.CHURN_RATE: (0.03, 0.12),
    Kpi.DAU: (5_000.0, 50_000.0),
}

SEGMENT_MODIFIERS: dict[str, float] = {
    "ios_new": 1.0,
    "ios_returning": 1.05,
    "android_new": 1.1,
    "android_returning": 1.15,
    "web_new": 0.9,
    "web_returning": 0.95,
}

# Total drift over the horizon, applied linearly in progress t / (days - 1).
TREND_SLOPE: dict[Kpi, float] = {
    Kpi.CONVERSION_RATE: 0.03,
    Kpi.REVENUE: 0.08,
    Kpi.CHURN_RATE: -0.02,
    Kpi.DAU: 0.10,
}

SEASONALITY_AMPLITUDE = 0.03
SEASONALITY_PERIOD_DAYS = 7

# KPI x driver sensitivity. Missing entries mean no effect.
SENSITIVITY: dict[Kpi, dict[Driver, float]] = {
    Kpi.CONVERSION_RATE: {
        Driver.LATENCY_CHANGE: -0.3,
        Driver.CRASH_RATE_CHANGE: -0.1,
        Driver.TRAFFIC_CHANGE: 0.05,
        Driver.PRICE_CHANGE: -0.15,
        Driver.CAMPAIGN_INTENSITY: 0.08,
    },
    Kpi.REVENUE: {
        Driver.LATENCY_CHANGE: -0.15,
        Driver.TRAFFIC_CHANGE: 0.5,
        Driver.PRICE_CHANGE: 0.4,
        Driver.CAMPAIGN_INTENSITY: 0.12,
    },
    Kpi.CHURN_RATE: {
        Driver.LATENCY_CHANGE: 0.2,
        Driver.CRASH_RATE_CHANGE: 0.18,
        Driver.PRICE_CHANGE: 0.1,
    },
    Kpi.DAU: {
        Driver.TRAFFIC_CHANGE: 0.8,
        Driver.CAMPAIGN_INTENSITY: 0.5,
        Driver.CRASH_RATE_CHANGE: -0.25,
    },
}

# Driver x segment override; default 1.0.
DRIVER_SEGMENT_MULTIPLIER: dict[Driver, dict[str, float]] = {
    Driver.LATENCY_CHANGE: {
        "android_new": 1.3,
        "android_returning": 1.3,
        "ios_new": 1.1,
        "ios_returning": 1.1,
    },
    Driver.CAMPAIGN_INTENSITY: {
        "ios_new": 1.2,
        "android_new": 1.2,
        "web_new": 1.1,
    },
    Driver.PRICE_CHANGE: {
        "ios_returning": 1.2,
        "android_returning": 1.2,
        "web_returning": 1.2,
    },
}

# Campaign effect fades to 30% of its initial strength by the last day.
CAMPAIGN_DECAY = 0.7

# Fixed nudges applied when the feature flag is on, per (KPI, platform).
FEATURE_TOGGLE_OFFSETS: dict[tuple[Kpi, Platform], float] = {
    (Kpi.CONVERSION_RATE, Platform.ANDROID): -0.05,
    (Kpi.DAU, Platform.ANDROID): 0.03,
}

DRIVER_EFFECT_BOUNDS = (-0.5, 0.5)
MULTIPLIER_BOUNDS = (0.1, 2.0)

NOISE_LEVEL: dict[Kpi, float] = {
    Kpi.CONVERSION_RATE: 0.02,
    Kpi.REVENUE: 0.05,
    Kpi.CHURN_RATE: 0.02,
    Kpi.DAU: 0.05,
}

RATE_DECIMALS = 4

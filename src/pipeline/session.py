"""
In-memory analysis session.

Holds what a front end needs between interactions: the scenario being
edited, the selected KPI, the latest ``AnalyticsBundle`` and the last
generated insight.  ``generate()`` builds a complete new bundle before
swapping it in, so a failed cycle leaves the previous results intact.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from loguru import logger

from config import KpiLabConfig, get_config
from core.contracts import (
    DEFAULT_SCENARIO,
    GenerateOptions,
    InsightPayload,
    InsightResult,
    Kpi,
    ScenarioInputs,
)
from core.exceptions import AnalyticsNotReadyError
from insights.generators import BaseInsightGenerator, get_generator
from insights.payload import build_insight_payload
from pipeline.runner import AnalyticsBundle, run_analysis


class AnalyticsSession:
    """
    Usage::

        session = AnalyticsSession()
        session.set_input("latency_change", 25)
        session.generate(GenerateOptions(seed=1))
        session.select_kpi(Kpi.CHURN_RATE)
        insight = session.explain()
    """

    def __init__(
        self,
        config: KpiLabConfig | None = None,
        scenario: ScenarioInputs | None = None,
        selected_kpi: Kpi = Kpi.CONVERSION_RATE,
    ):
        self._config = config or get_config()
        self._scenario = scenario or DEFAULT_SCENARIO
        self._selected_kpi = Kpi(selected_kpi)
        self._bundle: AnalyticsBundle | None = None
        self._insight: InsightResult | None = None

    # ------------------------------------------------------------------
    # Scenario editing
    # ------------------------------------------------------------------

    @property
    def scenario(self) -> ScenarioInputs:
        return self._scenario

    def set_input(self, field: str, value: Any) -> ScenarioInputs:
        """Replace one scenario field, validating the result."""
        if field not in ScenarioInputs.model_fields:
            raise KeyError(f"Unknown scenario field: {field}")
        data = self._scenario.model_dump()
        data[field] = value
        self._scenario = ScenarioInputs.model_validate(data)
        return self._scenario

    def reset(self) -> ScenarioInputs:
        self._scenario = DEFAULT_SCENARIO
        return self._scenario

    # ------------------------------------------------------------------
    # KPI selection
    # ------------------------------------------------------------------

    @property
    def selected_kpi(self) -> Kpi:
        return self._selected_kpi

    def select_kpi(self, kpi: Kpi | str) -> None:
        self._selected_kpi = Kpi(kpi)

    # ------------------------------------------------------------------
    # Generation cycle
    # ------------------------------------------------------------------

    @property
    def bundle(self) -> AnalyticsBundle | None:
        return self._bundle

    @property
    def insight(self) -> InsightResult | None:
        return self._insight

    def generate(
        self,
        options: GenerateOptions | None = None,
        rng: np.random.Generator | None = None,
    ) -> AnalyticsBundle:
        """Run one full cycle and replace every output at once."""
        options = options or self._config.generator.to_options()
        bundle = run_analysis(self._scenario, options=options, rng=rng)
        self._bundle = bundle
        self._insight = None
        return bundle

    def _require_bundle(self) -> AnalyticsBundle:
        if self._bundle is None:
            raise AnalyticsNotReadyError(
                "No dataset found. Generate data before requesting insights."
            )
        b = self._bundle
        if not b.correlations or not b.deltas or not b.causality:
            raise AnalyticsNotReadyError(
                "Analytics results are missing. The dataset may be too short "
                "for correlations, deltas or causality scores."
            )
        return b

    def build_payload(self, kpi: Kpi | str | None = None) -> InsightPayload:
        bundle = self._require_bundle()
        analytics = self._config.analytics
        return build_insight_payload(
            Kpi(kpi) if kpi is not None else self._selected_kpi,
            dataset=bundle.dataset,
            deltas=bundle.deltas,
            causality=bundle.causality,
            top_n_drivers=analytics.top_n_drivers,
            top_n_segments=analytics.top_n_segments,
        )

    def explain(
        self,
        generator: BaseInsightGenerator | None = None,
        kpi: Kpi | str | None = None,
    ) -> InsightResult:
        """
        Generate an insight for the selected (or given) KPI.

        Raises:
            AnalyticsNotReadyError: If no complete analysis exists.
            InsightGenerationError: If the backend fails.
        """
        payload = self.build_payload(kpi)
        if generator is None:
            cfg = self._config.insights
            generator = get_generator(cfg.backend, **cfg.backend_kwargs())

        logger.info(f"Generating insight for {payload.kpi.value} with backend '{generator.name}'")
        self._insight = generator.generate(payload)
        return self._insight

"""
Insight generators -- turn an ``InsightPayload`` into prose.

Backends register themselves by name.  Callers ask for a backend by
string (``"template"`` or ``"http"``) and get a ready-to-use
``BaseInsightGenerator``.  Failures are raised as
``InsightGenerationError``; no backend silently returns a default text.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any

import requests
from loguru import logger

from core.contracts import InsightPayload, InsightResult
from core.exceptions import InsightBackendError, InsightGenerationError
from core.registry import format_kpi_value, get_kpi_definition


class BaseInsightGenerator(ABC):
    """Interface every insight backend implements."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def generate(self, payload: InsightPayload) -> InsightResult:
        """
        Produce an insight for *payload*.

        Raises:
            InsightGenerationError: If no text could be produced.
        """


# ---------------------------------------------------------------------------
# Template (offline)
# ---------------------------------------------------------------------------

class TemplateInsightGenerator(BaseInsightGenerator):
    """Deterministic, sectioned summary rendered from the payload alone."""

    @property
    def name(self) -> str:
        return "template"

    def generate(self, payload: InsightPayload) -> InsightResult:
        return InsightResult(kpi=payload.kpi, text=self.render(payload))

    def render(self, payload: InsightPayload) -> str:
        label = get_kpi_definition(payload.kpi).label
        sections = []

        sections.append(f"## {label}")
        sections.append(payload.kpi_trend_summary)
        sections.append("")

        sections.append("## Top Drivers")
        drivers = [d for d in payload.top_drivers if d.causality_score > 0]
        if drivers:
            for i, d in enumerate(drivers, start=1):
                sections.append(
                    f"{i}. {d.driver.value}: score {d.causality_score:.2f}, "
                    f"~{d.contribution_estimate * 100:.1f}% of the explained movement"
                )
        else:
            sections.append("No scenario driver stands out for this KPI.")
        sections.append("")

        sections.append("## Anomalies")
        if payload.anomalies:
            for a in payload.anomalies:
                sections.append(
                    f"- {a.prev_window.start_date}..{a.prev_window.end_date} averaged "
                    f"{format_kpi_value(a.kpi, a.prev_window.avg_value)}; "
                    f"{a.last_window.start_date}..{a.last_window.end_date} averaged "
                    f"{format_kpi_value(a.kpi, a.last_window.avg_value)} ({a.delta * 100:+.1f}%)."
                )
        else:
            sections.append("No anomalies in the last 7 days.")
        sections.append("")

        sections.append("## Segments")
        if payload.segment_highlights:
            sections.extend(f"- {h}" for h in payload.segment_highlights)
        else:
            sections.append("No segment highlights available.")

        return "\n".join(sections)


# ---------------------------------------------------------------------------
# HTTP (external text-generation service)
# ---------------------------------------------------------------------------

class HttpInsightGenerator(BaseInsightGenerator):
    """
    POST the payload as JSON to an external service.

    The service must answer with a JSON object carrying a ``text`` field.
    The API key, when set, is read from the environment variable named
    by ``api_key_env`` and sent as a bearer token.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        api_key_env: str = "KPI_LAB_INSIGHT_API_KEY",
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ):
        if not endpoint:
            raise InsightBackendError("HTTP insight backend needs an endpoint", backend="http")
        self.endpoint = endpoint
        self.api_key = os.getenv(api_key_env, "")
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    @property
    def name(self) -> str:
        return "http"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def generate(self, payload: InsightPayload) -> InsightResult:
        logger.info(f"Requesting insight for {payload.kpi.value} from {self.endpoint}")
        try:
            resp = self._session.post(
                self.endpoint,
                json=payload.model_dump(mode="json"),
                headers=self._headers(),
                timeout=self.timeout_seconds,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise InsightGenerationError(f"Insight request failed: {exc}", backend=self.name) from exc
        except ValueError as exc:
            raise InsightGenerationError("Insight service returned invalid JSON", backend=self.name) from exc

        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise InsightGenerationError("Insight service returned no text", backend=self.name)

        return InsightResult(kpi=payload.kpi, text=text.strip())


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_REGISTRY: dict[str, type[BaseInsightGenerator]] = {
    "template": TemplateInsightGenerator,
    "http": HttpInsightGenerator,
}


def register_generator(name: str, cls: type[BaseInsightGenerator]) -> None:
    _REGISTRY[name.lower()] = cls
    logger.debug(f"Registered insight backend: {name}")


def list_generators() -> list[str]:
    return sorted(_REGISTRY.keys())


def get_generator(name: str = "template", **kwargs: Any) -> BaseInsightGenerator:
    """
    Instantiate an insight backend by name.

    Raises:
        InsightBackendError: If the backend is unknown.
    """
    key = name.lower()
    if key not in _REGISTRY:
        available = ", ".join(list_generators())
        raise InsightBackendError(
            f"Unknown insight backend '{name}'. Available: {available}",
            backend=name,
        )
    return _REGISTRY[key](**kwargs)

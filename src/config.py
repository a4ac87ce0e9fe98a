"""
Configuration management for KPI Lab.

Centralised configuration with YAML loading and sensible defaults.
The config drives the generator horizon and seed, how many drivers and
segments an insight payload carries, and which insight backend to use.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from core.contracts import GenerateOptions


# ---------------------------------------------------------------------------
# Section configs
# ---------------------------------------------------------------------------

class GeneratorConfig(BaseModel):
    """Defaults for the synthetic dataset generator."""

    days: int = Field(default=60, ge=0, description="Horizon in days")
    seed: int | None = Field(default=None, description="Seed; None draws fresh entropy")
    start_date: date | None = Field(default=None, description="First date; None ends the horizon today")

    def to_options(self) -> GenerateOptions:
        return GenerateOptions(days=self.days, seed=self.seed, start_date=self.start_date)


class AnalyticsConfig(BaseModel):
    """Presentation settings for ranked analytics output."""

    top_n_drivers: int = Field(default=5, ge=1)
    top_n_segments: int = Field(default=3, ge=1)


class InsightConfig(BaseModel):
    """Insight generator settings."""

    backend: str = Field(default="template", description="Insight backend: template, http")
    endpoint: str | None = Field(default=None, description="URL for the http backend")
    api_key_env: str = Field(default="KPI_LAB_INSIGHT_API_KEY")
    timeout_seconds: float = Field(default=30.0, gt=0)

    def backend_kwargs(self) -> dict[str, Any]:
        if self.backend.lower() == "http":
            return {
                "endpoint": self.endpoint,
                "api_key_env": self.api_key_env,
                "timeout_seconds": self.timeout_seconds,
            }
        return {}


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

class KpiLabConfig(BaseModel):
    """Root configuration for KPI Lab."""

    project_name: str = Field(default="KPI Lab")
    environment: str = Field(default="development")

    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    insights: InsightConfig = Field(default_factory=InsightConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "KpiLabConfig":
        """Load config from a YAML file."""
        with open(Path(path)) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Write config to a YAML file."""
        with open(Path(path), "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)

    def to_flat_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Global singleton
# ---------------------------------------------------------------------------

_config: KpiLabConfig | None = None


def get_config() -> KpiLabConfig:
    """Return the global config instance (creates default if needed)."""
    global _config
    if _config is None:
        _config = KpiLabConfig()
    return _config


def set_config(config: KpiLabConfig) -> None:
    """Override the global config instance."""
    global _config
    _config = config


def load_config(path: Path | str | None = None) -> KpiLabConfig:
    """
    Load config from file, falling back to standard locations, then defaults.
    """
    global _config

    if path is not None:
        _config = KpiLabConfig.from_yaml(path)
    else:
        for candidate in [Path("config.yaml"), Path("config/config.yaml")]:
            if candidate.exists():
                _config = KpiLabConfig.from_yaml(candidate)
                break
        else:
            _config = KpiLabConfig()

    return _config

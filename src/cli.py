"""
Command-line interface for KPI Lab.

Provides commands for:
  - Generating a synthetic dataset for a scenario
  - Running the full analytics pipeline and printing ranked results
  - Producing a natural-language insight for one KPI
  - Showing the effective configuration
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Optional

import typer
import yaml
from loguru import logger

app = typer.Typer(
    name="kpi-lab",
    help="KPI Lab -- scenario-driven synthetic KPI analytics",
    add_completion=False,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _build_scenario(
    scenario_file: Optional[Path],
    latency: Optional[float],
    crash_rate: Optional[float],
    traffic: Optional[float],
    price: Optional[float],
    campaign: Optional[float],
    feature_toggle: Optional[bool],
):
    """Scenario from an optional YAML/JSON file, then explicit overrides."""
    from core.contracts import ScenarioInputs

    data: dict = {}
    if scenario_file is not None:
        with open(scenario_file) as f:
            data = yaml.safe_load(f) or {}

    overrides = {
        "latency_change": latency,
        "crash_rate_change": crash_rate,
        "traffic_change": traffic,
        "price_change": price,
        "campaign_intensity": campaign,
        "feature_toggle": feature_toggle,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    return ScenarioInputs.model_validate(data)


def _build_options(cfg, days: Optional[int], seed: Optional[int], start_date: Optional[str]):
    options = cfg.generator.to_options()
    update = {}
    if days is not None:
        update["days"] = days
    if seed is not None:
        update["seed"] = seed
    if start_date is not None:
        update["start_date"] = _parse_date(start_date)
    return options.model_copy(update=update)


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got '{value}'")


# Option declarations are repeated per command, as typer requires.
_SCENARIO_FILE = typer.Option(None, "--scenario", "-s", help="YAML/JSON scenario file")
_LATENCY = typer.Option(None, "--latency", help="Latency change (%)")
_CRASH = typer.Option(None, "--crash-rate", help="Crash rate change (%)")
_TRAFFIC = typer.Option(None, "--traffic", help="Traffic change (%)")
_PRICE = typer.Option(None, "--price", help="Price change (%)")
_CAMPAIGN = typer.Option(None, "--campaign", help="Campaign intensity (0-100, 50 is neutral)")
_TOGGLE = typer.Option(None, "--feature-toggle/--no-feature-toggle", help="Feature flag state")
_DAYS = typer.Option(None, "--days", "-d", help="Horizon in days")
_SEED = typer.Option(None, "--seed", help="Random seed")
_START = typer.Option(None, "--start-date", help="First date (YYYY-MM-DD)")
_CONFIG = typer.Option(None, "--config", "-c", help="Path to config.yaml")


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------

@app.command()
def generate(
    output: Path = typer.Option(
        Path("kpi_dataset.csv"), "--output", "-o", help="CSV file for the long-format dataset",
    ),
    scenario_file: Optional[Path] = _SCENARIO_FILE,
    latency: Optional[float] = _LATENCY,
    crash_rate: Optional[float] = _CRASH,
    traffic: Optional[float] = _TRAFFIC,
    price: Optional[float] = _PRICE,
    campaign: Optional[float] = _CAMPAIGN,
    feature_toggle: Optional[bool] = _TOGGLE,
    days: Optional[int] = _DAYS,
    seed: Optional[int] = _SEED,
    start_date: Optional[str] = _START,
    config_path: Optional[Path] = _CONFIG,
):
    """Generate a synthetic dataset and write it as CSV."""
    from config import load_config
    from generation.dataset import generate_dataset
    from pipeline.runner import dataset_to_frame

    cfg = load_config(config_path)
    scenario = _build_scenario(scenario_file, latency, crash_rate, traffic, price, campaign, feature_toggle)
    options = _build_options(cfg, days, seed, start_date)

    dataset = generate_dataset(scenario, options=options)
    df = dataset_to_frame(dataset)

    output.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output, index=False)
    logger.info(f"Dataset written to {output}: {len(df)} rows")


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------

@app.command()
def analyze(
    kpi: Optional[str] = typer.Option(None, "--kpi", "-k", help="Restrict output to one KPI"),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Write dataset and results as CSV files here",
    ),
    scenario_file: Optional[Path] = _SCENARIO_FILE,
    latency: Optional[float] = _LATENCY,
    crash_rate: Optional[float] = _CRASH,
    traffic: Optional[float] = _TRAFFIC,
    price: Optional[float] = _PRICE,
    campaign: Optional[float] = _CAMPAIGN,
    feature_toggle: Optional[bool] = _TOGGLE,
    days: Optional[int] = _DAYS,
    seed: Optional[int] = _SEED,
    start_date: Optional[str] = _START,
    config_path: Optional[Path] = _CONFIG,
):
    """
    Run generate -> correlate -> deltas -> causality and print ranked results.
    """
    from config import load_config
    from core.contracts import Kpi
    from core.registry import format_kpi_value
    from pipeline.runner import (
        run_analysis,
        dataset_to_frame,
        correlations_to_frame,
        deltas_to_frame,
        causality_to_frame,
    )

    cfg = load_config(config_path)
    scenario = _build_scenario(scenario_file, latency, crash_rate, traffic, price, campaign, feature_toggle)
    options = _build_options(cfg, days, seed, start_date)

    try:
        selected = Kpi(kpi) if kpi else None
    except ValueError:
        logger.error(f"Unknown KPI '{kpi}'. Choose from: {', '.join(k.value for k in Kpi)}")
        raise typer.Exit(1)

    bundle = run_analysis(scenario, options=options)

    for k in bundle.dataset.kpis:
        if selected is not None and k != selected:
            continue
        typer.echo(f"\n== {k.value} ==")

        delta = bundle.delta_for(k)
        if delta is None:
            typer.echo("  delta: insufficient history")
        else:
            flag = "  ANOMALY" if delta.is_anomaly else ""
            typer.echo(
                f"  delta: {format_kpi_value(k, delta.prev_window.avg_value)} -> "
                f"{format_kpi_value(k, delta.last_window.avg_value)} ({delta.delta * 100:+.1f}%){flag}"
            )

        ranked = sorted(
            (c for c in bundle.causality if c.kpi == k),
            key=lambda c: c.causality_score,
            reverse=True,
        )
        corr_by_driver = {c.driver: c.correlation for c in bundle.correlations if c.kpi == k}
        for c in ranked:
            typer.echo(
                f"  {c.driver.value:<20} corr={corr_by_driver.get(c.driver, 0.0):+.3f}  "
                f"score={c.causality_score:.2f}  contribution={c.contribution_estimate * 100:.1f}%"
            )

    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        dataset_to_frame(bundle.dataset).to_csv(output_dir / "dataset.csv", index=False)
        correlations_to_frame(bundle.correlations).to_csv(output_dir / "correlations.csv", index=False)
        deltas_to_frame(bundle.deltas).to_csv(output_dir / "deltas.csv", index=False)
        causality_to_frame(bundle.causality).to_csv(output_dir / "causality.csv", index=False)
        logger.info(f"Results written to {output_dir}/")


# ---------------------------------------------------------------------------
# explain
# ---------------------------------------------------------------------------

@app.command()
def explain(
    kpi: str = typer.Option("conversion_rate", "--kpi", "-k", help="KPI to explain"),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help="Insight backend (template, http)"),
    scenario_file: Optional[Path] = _SCENARIO_FILE,
    latency: Optional[float] = _LATENCY,
    crash_rate: Optional[float] = _CRASH,
    traffic: Optional[float] = _TRAFFIC,
    price: Optional[float] = _PRICE,
    campaign: Optional[float] = _CAMPAIGN,
    feature_toggle: Optional[bool] = _TOGGLE,
    days: Optional[int] = _DAYS,
    seed: Optional[int] = _SEED,
    start_date: Optional[str] = _START,
    config_path: Optional[Path] = _CONFIG,
):
    """Run the pipeline and print a natural-language insight for one KPI."""
    from config import load_config
    from core.contracts import Kpi
    from core.exceptions import KpiLabError
    from insights.generators import get_generator
    from pipeline.session import AnalyticsSession

    cfg = load_config(config_path)
    scenario = _build_scenario(scenario_file, latency, crash_rate, traffic, price, campaign, feature_toggle)
    options = _build_options(cfg, days, seed, start_date)

    try:
        selected = Kpi(kpi)
    except ValueError:
        logger.error(f"Unknown KPI '{kpi}'. Choose from: {', '.join(k.value for k in Kpi)}")
        raise typer.Exit(1)

    session = AnalyticsSession(config=cfg, scenario=scenario, selected_kpi=selected)
    session.generate(options)

    insight_cfg = cfg.insights
    if backend is not None:
        insight_cfg = insight_cfg.model_copy(update={"backend": backend})

    try:
        generator = get_generator(insight_cfg.backend, **insight_cfg.backend_kwargs())
        insight = session.explain(generator=generator)
    except KpiLabError as exc:
        logger.error(f"[{exc.code}] {exc}")
        raise typer.Exit(1)

    typer.echo(insight.text)


# ---------------------------------------------------------------------------
# show-config
# ---------------------------------------------------------------------------

@app.command("show-config")
def show_config(
    config_path: Optional[Path] = _CONFIG,
):
    """Print the effective configuration as YAML."""
    from config import load_config

    cfg = load_config(config_path)
    typer.echo(yaml.dump(cfg.to_flat_dict(), default_flow_style=False, sort_keys=False))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()

"""
CitySpark analytics core: CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load the analytics context (districts + migration series).
  4. Run the engine query; engine errors print ``[ERROR] ...`` and exit 1.
  5. Report result to stdout (optionally export with ``--output``).

Install and run::

    pip install -e .
    cityspark --help
    cityspark validate-config
    cityspark rank-districts --top-n 5
    cityspark analyze-district b
    cityspark forecast --series national --horizon 6
    cityspark simulate --jobs 40 --healthcare 25 --education 20 --infrastructure 15 \\
        --budget 50000000
    cityspark dashboard
    cityspark budget-brief b --jobs 40 --healthcare 25 --education 20 \\
        --infrastructure 15 --budget 50000000
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="cityspark",
    help="CitySpark: regional imbalance scoring, migration forecasting, and policy simulation.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from cityspark.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from cityspark.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_service_or_exit(config):
    """Build the AnalyticsService from configured data files."""
    from cityspark.errors import AnalyticsError
    from cityspark.service import AnalyticsService

    try:
        return AnalyticsService.from_config(config)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except AnalyticsError as exc:
        typer.echo(f"[ERROR] Data load failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _exit_on_engine_error(exc) -> None:
    """Print a structured engine error and exit 1."""
    typer.echo(f"[ERROR] {exc.kind}: {exc}", err=True)
    raise typer.Exit(code=1)


def _allocation_or_exit(jobs: float, healthcare: float, education: float, infrastructure: float):
    from pydantic import ValidationError

    from cityspark.models.simulation import LeverAllocation

    try:
        return LeverAllocation(
            jobs=jobs, healthcare=healthcare, education=education, infrastructure=infrastructure,
        )
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid allocation: {exc}", err=True)
        raise typer.Exit(code=1)


def _write_output(records: list[dict] | dict, output: str) -> None:
    from cityspark.reporting.export import export_records, export_to_json

    path = Path(output)
    if isinstance(records, dict):
        written = export_to_json(records, path)
    else:
        written = export_records(records, path)
    typer.echo(f"\n  Exported: {written}")


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation or the scoring weights
    do not sum to 1.0.
    """
    from cityspark.errors import ConfigurationError
    from cityspark.scoring.scorer import validate_weights

    config = _load_config_or_exit(config_path)

    try:
        validate_weights(config.scoring.weights, config.scoring.weight_tolerance)
    except ConfigurationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    weights = ", ".join(f"{k}={v:.2f}" for k, v in config.scoring.weights.items())
    levers = ", ".join(f"{k}={v:.2f}" for k, v in config.simulation.max_impact.items())

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Districts file:    {config.data.districts_file}")
    typer.echo(f"  Migration file:    {config.data.migration_file}")
    typer.echo(f"  Score weights:     {weights}")
    typer.echo(
        f"  Risk thresholds:   high>={config.scoring.high_threshold:.2f}, "
        f"medium>={config.scoring.medium_threshold:.2f}"
    )
    typer.echo(f"  Forecast conf.:    {config.forecast.confidence_pct:.0%}")
    typer.echo(f"  Lever impacts:     {levers}")
    typer.echo(
        f"  Reduction env.:    [{config.simulation.envelope_min}, "
        f"{config.simulation.envelope_max}]%"
    )
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("rank-districts")
def rank_districts(
    top_n: Optional[int] = typer.Option(
        None,
        "--top-n",
        help="Show only the N most imbalanced districts.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Export the full ranking (.csv, .json, or .parquet).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Score every district and print them in imbalance order."""
    from cityspark.errors import AnalyticsError
    from cityspark.reporting.export import flatten_ranking_for_export
    from cityspark.reporting.formatters import format_ranking_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    service = _load_service_or_exit(config)

    try:
        ranked = service.rank_districts()
    except AnalyticsError as exc:
        _exit_on_engine_error(exc)

    typer.echo(format_ranking_table(ranked, top_n=top_n))
    if output:
        _write_output(flatten_ranking_for_export(ranked), output)


@app.command("analyze-district")
def analyze_district(
    district_id: str = typer.Argument(..., help="District id to analyse."),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Export the analysis as JSON.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Show one district's score, rank, breakdown, and migration correlation."""
    from cityspark.errors import AnalyticsError
    from cityspark.reporting.formatters import format_district_analysis

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    service = _load_service_or_exit(config)

    try:
        analysis = service.district_analysis(district_id)
    except AnalyticsError as exc:
        _exit_on_engine_error(exc)

    typer.echo(format_district_analysis(analysis))
    if output:
        _write_output(analysis.model_dump(mode="json"), output)


@app.command("forecast")
def forecast(
    series_id: Optional[str] = typer.Option(
        None,
        "--series",
        help="Series id (district id or the national id). Default: national.",
    ),
    horizon: Optional[int] = typer.Option(
        None,
        "--horizon",
        help="Years to forecast. Default: forecast.default_horizon.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Export the forecast rows (.csv, .json, or .parquet).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Fit the baseline ARIMA model and print point forecasts with bands."""
    from cityspark.errors import AnalyticsError
    from cityspark.reporting.export import flatten_forecast_for_export
    from cityspark.reporting.formatters import format_forecast_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    service = _load_service_or_exit(config)
    sid = series_id or config.data.national_series_id

    try:
        result = service.forecast_district(sid, horizon)
    except AnalyticsError as exc:
        _exit_on_engine_error(exc)

    typer.echo(format_forecast_table(result, series_id=sid))
    if output:
        _write_output(flatten_forecast_for_export(result, series_id=sid), output)


@app.command("simulate")
def simulate(
    jobs: float = typer.Option(0.0, "--jobs", help="Percent of budget to job creation."),
    healthcare: float = typer.Option(0.0, "--healthcare", help="Percent to healthcare."),
    education: float = typer.Option(0.0, "--education", help="Percent to education."),
    infrastructure: float = typer.Option(
        0.0, "--infrastructure", help="Percent to physical infrastructure."
    ),
    budget: float = typer.Option(..., "--budget", help="Total budget (currency units)."),
    series_id: Optional[str] = typer.Option(
        None,
        "--series",
        help="Baseline series id. Default: national.",
    ),
    horizon: Optional[int] = typer.Option(
        None,
        "--horizon",
        help="Baseline years. Default: forecast.default_horizon.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Export the trajectory rows (.csv, .json, or .parquet).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Simulate a lever allocation against the forecast baseline.

    Allocations are percentages and must sum to 100.
    """
    from cityspark.errors import AnalyticsError
    from cityspark.reporting.export import flatten_simulation_for_export
    from cityspark.reporting.formatters import format_simulation_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    allocation = _allocation_or_exit(jobs, healthcare, education, infrastructure)
    service = _load_service_or_exit(config)

    try:
        result = service.simulate(allocation, budget, series_id=series_id, horizon=horizon)
    except AnalyticsError as exc:
        _exit_on_engine_error(exc)

    typer.echo(format_simulation_summary(result))
    if output:
        _write_output(flatten_simulation_for_export(result), output)


@app.command("dashboard")
def dashboard(
    top_n: int = typer.Option(5, "--top-n", help="Number of top districts to list."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print national KPIs and the most imbalanced districts."""
    from cityspark.errors import AnalyticsError
    from cityspark.reporting.formatters import format_dashboard

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    service = _load_service_or_exit(config)

    try:
        summary = service.dashboard_summary(n=top_n)
    except AnalyticsError as exc:
        _exit_on_engine_error(exc)

    typer.echo(format_dashboard(summary))


@app.command("budget-brief")
def budget_brief(
    district_id: str = typer.Argument(..., help="District the brief targets."),
    jobs: float = typer.Option(0.0, "--jobs", help="Percent of budget to job creation."),
    healthcare: float = typer.Option(0.0, "--healthcare", help="Percent to healthcare."),
    education: float = typer.Option(0.0, "--education", help="Percent to education."),
    infrastructure: float = typer.Option(
        0.0, "--infrastructure", help="Percent to physical infrastructure."
    ),
    budget: float = typer.Option(..., "--budget", help="Total budget (currency units)."),
    horizon: int = typer.Option(5, "--horizon", help="Intervention period in years."),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Export the brief as JSON.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Assemble a policy brief: score, baseline, intervention, and outcome.

    The district's own migration series is the baseline when loaded;
    otherwise the national series is used.
    """
    from cityspark.errors import AnalyticsError
    from cityspark.forecast.engine import baseline_trajectory
    from cityspark.reporting.brief import build_brief, format_brief

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    allocation = _allocation_or_exit(jobs, healthcare, education, infrastructure)
    service = _load_service_or_exit(config)

    sid = district_id if district_id in service.context.series else config.data.national_series_id

    try:
        analysis = service.district_analysis(district_id)
        history = service.context.series_for(sid)
        forecast_result = service.forecast(history, horizon)
        simulation = service.simulate(
            allocation, budget, baseline=baseline_trajectory(forecast_result.points)
        )
    except AnalyticsError as exc:
        _exit_on_engine_error(exc)

    brief = build_brief(
        district=analysis.result,
        forecast=forecast_result,
        simulation=simulation,
        total_budget=budget,
        current_migration=history[-1].value,
        correlation=analysis.correlation,
        config=config.simulation,
    )
    typer.echo(format_brief(brief))
    if output:
        _write_output(brief.to_dict(), output)


if __name__ == "__main__":
    app()

"""
ASCII terminal formatters for CLI commands.

All formatters accept engine / service result models and return plain
multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Band width
----------
``format_forecast_table()`` shows ``upper - lower`` next to each point so
readers see the uncertainty grow with the horizon without doing the
arithmetic themselves.
"""

from __future__ import annotations

from typing import Optional

from cityspark.models.analysis import DashboardSummary, DistrictAnalysis
from cityspark.models.forecast import ForecastResult
from cityspark.models.scoring import CompositeScoreResult
from cityspark.models.simulation import SimulationResult
from cityspark.taxonomy.indicator_taxonomy import INDICATOR_DISPLAY_NAMES


# ── Value helpers ─────────────────────────────────────────────────────────────


def format_count(value: Optional[float]) -> str:
    """Whole-number count with thousands separators (``"72,400"``)."""
    return "N/A" if value is None else f"{value:,.0f}"


def format_money(value: float) -> str:
    """Currency amount in millions when large (``"$12.5M"``)."""
    if abs(value) >= 1_000_000:
        return f"${value / 1_000_000:,.1f}M"
    return f"${value:,.0f}"


def format_pct(value: Optional[float], signed: bool = False) -> str:
    """Percentage already expressed in percent units (``12.3`` → ``"12.3%"``)."""
    if value is None:
        return "N/A"
    return f"{value:+.1f}%" if signed else f"{value:.1f}%"


# ── Ranking ───────────────────────────────────────────────────────────────────


def format_ranking_table(
    ranked: list[CompositeScoreResult],
    top_n: Optional[int] = None,
) -> str:
    """Format ranked districts as an ASCII table.

    Columns: rank, district, score, risk, then one column per indicator
    category with its normalised value::

        Rank  District              Score  Risk     economic  infrastructure  social
        ---------------------------------------------------------------------------
           1  District A            1.000  High        1.000           1.000   1.000

    Args:
        ranked: Output of ``score_population`` / ``rank_districts``.
        top_n:  How many rows to show (all when None).

    Returns:
        Multi-line string.
    """
    lines: list[str] = []
    lines.append("")
    lines.append("=== District Imbalance Ranking ===")

    if not ranked:
        lines.append("")
        lines.append("  (no districts loaded)")
        return "\n".join(lines)

    shown = ranked if top_n is None else ranked[:top_n]
    categories = [iv.name for iv in ranked[0].indicator_breakdown]

    lines.append("")
    header = (
        f"  {'Rank':>4}  {'District':<24}  {'Score':>6}  {'Risk':<6}"
        + "".join(f"  {c[:14]:>14}" for c in categories)
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    for r in shown:
        values = {iv.name: iv.normalized_value for iv in r.indicator_breakdown}
        lines.append(
            f"  {r.rank if r.rank is not None else '':>4}  {r.district_name[:24]:<24}  "
            f"{r.score:>6.3f}  {r.risk_category.value:<6}"
            + "".join(f"  {values.get(c, 0.0):>14.3f}" for c in categories)
        )

    if len(shown) < len(ranked):
        lines.append(
            f"  ... showing {len(shown)} of {len(ranked)} districts"
            " (use --top-n N to show more, or --output to export the full set)"
        )

    return "\n".join(lines)


# ── District drill-down ───────────────────────────────────────────────────────


def format_district_analysis(analysis: DistrictAnalysis) -> str:
    """Format one district's score, rank, breakdown, and correlation context."""
    r = analysis.result
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== District Analysis: {r.district_name} ({r.district_id}) ===")
    lines.append(f"  Composite score:  {r.score:.4f}")
    lines.append(f"  Risk category:    {r.risk_category.value}")
    lines.append(f"  Rank:             {r.rank} of {analysis.total_districts}")
    lines.append(f"  National average: {analysis.national_average:.4f}")

    lines.append("")
    lines.append(f"  {'Indicator':<28}  {'Normalised':>10}  {'Weight':>6}  {'Contrib':>7}")
    lines.append("  " + "-" * 57)
    for iv in r.indicator_breakdown:
        label = INDICATOR_DISPLAY_NAMES.get(iv.name, iv.name)
        lines.append(
            f"  {label[:28]:<28}  {iv.normalized_value:>10.3f}  "
            f"{iv.weight:>6.2f}  {iv.contribution:>7.3f}"
        )

    lines.append("")
    if analysis.correlation is None:
        lines.append("  Score vs. migration correlation: N/A (insufficient data)")
    else:
        lines.append(
            f"  Score vs. migration correlation: r = {analysis.correlation:.3f} "
            f"over {len(analysis.scatter)} districts"
        )
    return "\n".join(lines)


# ── Forecast ──────────────────────────────────────────────────────────────────


def format_forecast_table(result: ForecastResult, series_id: str = "") -> str:
    """Format a forecast with bands, growth, and fit diagnostics."""
    p, d, q = result.order
    diag = result.diagnostics
    lines: list[str] = []
    lines.append("")
    lines.append("=== Migration Forecast ===")
    if series_id:
        lines.append(f"  Series:     {series_id}")
    lines.append(f"  Model:      ARIMA({p},{d},{q})")
    lines.append(f"  Confidence: {result.confidence_pct:.0%}")

    lines.append("")
    header = (
        f"  {'Year':>4}  {'Forecast':>10}  {'Lower':>10}  {'Upper':>10}  "
        f"{'Band':>9}  {'Growth':>7}"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for y in result.yearly_breakdown:
        lines.append(
            f"  {y.year:>4}  {format_count(y.forecast):>10}  {format_count(y.lower_bound):>10}  "
            f"{format_count(y.upper_bound):>10}  {format_count(y.upper_bound - y.lower_bound):>9}  "
            f"{format_pct(y.growth_pct, signed=True):>7}"
        )

    lines.append("")
    lines.append(f"  Total projection:  {format_count(result.total_projection)}")
    lines.append(f"  Avg annual growth: {format_pct(result.annual_growth_pct, signed=True)}")
    lines.append("")
    lines.append(f"  ---- Fit diagnostics ({diag.validation}, {diag.n_folds} folds) ----")
    lines.append(f"  RMSE: {diag.rmse:,.2f}")
    lines.append(f"  MAE:  {diag.mae:,.2f}")
    lines.append(f"  MAPE: {format_pct(None if diag.mape is None else diag.mape * 100)}")
    lines.append(f"  AIC:  {diag.aic:,.2f}")
    return "\n".join(lines)


# ── Simulation ────────────────────────────────────────────────────────────────


def format_simulation_summary(result: SimulationResult) -> str:
    """Format a policy simulation: totals, envelope, trajectory, budget split."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Policy Simulation ===")
    lines.append(f"  Baseline migration:  {format_count(result.baseline)}")
    lines.append(f"  Projected migration: {format_count(result.projected)}")
    lines.append(f"  People retained:     {format_count(result.people_retained)}")
    lines.append(
        f"  Reduction:           {format_pct(result.reduction_pct)} "
        f"(best {format_pct(result.best_case)}, worst {format_pct(result.worst_case)})"
    )
    lines.append(f"  Model confidence:    {format_pct(result.confidence)}")

    lines.append("")
    lines.append(f"  {'Year':>4}  {'Baseline':>10}  {'Projected':>10}")
    lines.append("  " + "-" * 28)
    for c in result.trajectory_comparison:
        lines.append(
            f"  {c.year:>4}  {format_count(c.baseline):>10}  {format_count(c.projected):>10}"
        )

    lines.append("")
    lines.append(f"  {'Lever':<28}  {'Share':>6}  {'Amount':>10}")
    lines.append("  " + "-" * 48)
    for b in result.budget_breakdown:
        lines.append(
            f"  {b.label[:28]:<28}  {format_pct(b.share_pct):>6}  {format_money(b.amount):>10}"
        )
    return "\n".join(lines)


# ── Dashboard ─────────────────────────────────────────────────────────────────


def format_dashboard(summary: DashboardSummary) -> str:
    """Format the national overview KPIs and top districts."""
    top = summary.highest_risk
    lines: list[str] = []
    lines.append("")
    lines.append("=== National Dashboard ===")
    lines.append(f"  National avg score: {summary.national_average:.3f}")
    lines.append(
        f"  Highest risk:       {top.district_name} ({top.score:.3f}, {top.risk_category.value})"
    )
    counts = ", ".join(f"{k}={v}" for k, v in summary.risk_counts.items())
    lines.append(f"  Risk distribution:  {counts}")
    if summary.projection_year is not None:
        lines.append(
            f"  Projected migration {summary.projection_year}: "
            f"{format_count(summary.projected_migration)}"
        )
        lines.append(f"  Forecast accuracy:  {format_pct(summary.forecast_accuracy_pct)}")
    else:
        lines.append("  Projected migration: N/A (no national series loaded)")

    lines.append(format_ranking_table(list(summary.top_districts)))
    return "\n".join(lines)

"""
Budget brief: a rule-based policy memo assembled from engine outputs.

Sections
--------
1. Executive summary       one paragraph naming district, reduction, horizon
2. Baseline assessment     current migration, imbalance score, projection
3. Proposed intervention   budget split with per-lever modelled impact
4. Projected outcome       reduction, people retained, confidence
5. Statistical validation  forecast order and error, score ↔ migration r
6. Recommendations         ordered action list (see ``build_recommendations``)

Per-lever impact
----------------
Each lever's contribution to the (unclamped) reduction is
``share / 100 * max_impact * 100`` percentage points, shown with the
±``sensitivity_delta`` spread scaled by that lever's share of the total.

The brief never computes anything an engine does not already return; it
only arranges and words those results.  Rendering is plain text; PDF output
belongs to the presentation layer.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from cityspark.config import SimulationConfig
from cityspark.models.forecast import ForecastResult
from cityspark.models.scoring import CompositeScoreResult
from cityspark.models.simulation import SimulationResult
from cityspark.reporting.formatters import format_count, format_money, format_pct
from cityspark.taxonomy.indicator_taxonomy import RiskCategory
from cityspark.taxonomy.lever_taxonomy import Lever

# Share (percent) above which a lever is called out as the budget priority.
_PRIORITY_SHARE_PCT = 30.0

_LEVER_ACTIONS: dict[Lever, str] = {
    Lever.JOBS:           "Prioritise job creation programs with proven placement outcomes",
    Lever.HEALTHCARE:     "Focus healthcare investment on primary care facilities and mobile clinics",
    Lever.EDUCATION:      "Align skill development programs with local industry needs",
    Lever.INFRASTRUCTURE: "Target road, utility, and market-access gaps that raise the cost of staying",
}


@dataclass(frozen=True)
class LeverImpact:
    """One row of the proposed intervention table."""

    label: str
    share_pct: float
    amount: float
    impact_pp: float
    impact_low_pp: float
    impact_high_pp: float


@dataclass(frozen=True)
class BudgetBrief:
    """Structured brief content; ``format_brief`` renders it as text.

    Attributes:
        title:                 "Policy Intervention Brief: <district>".
        district_id:           District the brief targets.
        executive_summary:     One-paragraph summary.
        baseline_assessment:   (label, value) pairs.
        total_budget:          Total budget in currency units.
        levers:                Per-lever allocation and modelled impact.
        projected_outcome:     (label, value) pairs.
        statistical_validation: (label, value) pairs.
        recommendations:       Ordered action list.
    """

    title: str
    district_id: str
    executive_summary: str
    baseline_assessment: list[tuple[str, str]]
    total_budget: float
    levers: list[LeverImpact]
    projected_outcome: list[tuple[str, str]]
    statistical_validation: list[tuple[str, str]]
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def lever_impacts(
    simulation: SimulationResult,
    config: Optional[SimulationConfig] = None,
) -> list[LeverImpact]:
    """Modelled reduction per lever (percentage points), in budget order."""
    cfg = config or SimulationConfig()
    impacts: list[LeverImpact] = []
    for line in simulation.budget_breakdown:
        pp = line.share_pct / 100.0 * cfg.max_impact[line.lever.value] * 100.0
        spread = cfg.sensitivity_delta * line.share_pct / 100.0
        impacts.append(LeverImpact(
            label=line.label,
            share_pct=line.share_pct,
            amount=line.amount,
            impact_pp=pp,
            impact_low_pp=max(0.0, pp - spread),
            impact_high_pp=pp + spread,
        ))
    return impacts


def build_recommendations(
    district: CompositeScoreResult,
    forecast: ForecastResult,
    simulation: SimulationResult,
    config: Optional[SimulationConfig] = None,
) -> list[str]:
    """Assemble the ordered recommendation list from engine outputs.

    Rules (in output order):
      1. Levers with a share >= 30% are named as priorities, largest first.
      2. Every other funded lever gets its standard action line.
      3. High-risk districts get a fast-track line.
      4. A reduction at the envelope ceiling gets a diminishing-returns note.
      5. An in-sample-only forecast gets a data-collection caveat.
      6. Monitoring and mid-term evaluation lines are always appended.
    """
    cfg = config or SimulationConfig()
    recs: list[str] = []

    funded = sorted(
        (b for b in simulation.budget_breakdown if b.share_pct > 0),
        key=lambda b: -b.share_pct,
    )
    for b in funded:
        action = _LEVER_ACTIONS[b.lever]
        if b.share_pct >= _PRIORITY_SHARE_PCT:
            recs.append(f"{action} ({b.share_pct:.0f}% budget allocation)")
        else:
            recs.append(action)

    if district.risk_category == RiskCategory.HIGH:
        recs.append(
            f"Fast-track implementation: {district.district_name} is in the High risk band"
        )
    if simulation.reduction_pct >= cfg.envelope_max:
        recs.append(
            f"Projected reduction is capped at the {cfg.envelope_max:.1f}% envelope; "
            "shift surplus budget to neighbouring high-risk districts"
        )
    if forecast.diagnostics.validation == "in_sample":
        recs.append(
            "Forecast is validated in-sample only; collect additional years of "
            "history before committing multi-year funding"
        )

    recs.append("Establish a quarterly monitoring framework to track outcomes")
    recs.append("Conduct a mid-term evaluation halfway through the horizon to adjust strategy")
    return recs


def build_brief(
    district: CompositeScoreResult,
    forecast: ForecastResult,
    simulation: SimulationResult,
    total_budget: float,
    current_migration: Optional[float] = None,
    correlation: Optional[float] = None,
    config: Optional[SimulationConfig] = None,
) -> BudgetBrief:
    """Assemble a ``BudgetBrief`` from one district's engine outputs.

    Args:
        district:          Ranked score for the target district.
        forecast:          Baseline forecast used for the simulation.
        simulation:        Simulation over that baseline.
        total_budget:      Budget the simulation was run with.
        current_migration: Last observed annual migration, if known.
        correlation:       Score ↔ migration r across districts, if known.
        config:            Simulation constants (for per-lever impacts).
    """
    years = len(simulation.trajectory_comparison)
    first_year = simulation.trajectory_comparison[0].year
    last_year = simulation.trajectory_comparison[-1].year
    p, d, q = forecast.order
    diag = forecast.diagnostics

    summary = (
        f"This brief presents a multi-lever intervention for {district.district_name} "
        f"projected to reduce out-migration by {format_pct(simulation.reduction_pct)} "
        f"over {years} years ({first_year}-{last_year}), retaining an estimated "
        f"{format_count(simulation.people_retained)} people for a budget of "
        f"{format_money(total_budget)}."
    )

    baseline = [
        ("Current migration", f"{format_count(current_migration)} people/year"),
        (
            "Imbalance score",
            f"{district.score:.3f} ({district.risk_category.value} Risk, rank {district.rank})",
        ),
        (f"{years}-year projection (baseline)", f"{format_count(simulation.baseline)} migrants"),
    ]
    outcome = [
        (
            "Migration reduction",
            f"{format_pct(simulation.reduction_pct)} "
            f"(range {format_pct(simulation.worst_case)} to {format_pct(simulation.best_case)})",
        ),
        ("People retained", f"{format_count(simulation.people_retained)} over {years} years"),
        ("Confidence level", format_pct(simulation.confidence)),
    ]
    mape = "N/A" if diag.mape is None else format_pct(diag.mape * 100)
    validation = [
        (
            "ARIMA forecast quality",
            f"ARIMA({p},{d},{q}) | MAPE: {mape}, RMSE: {diag.rmse:,.1f}, AIC: {diag.aic:.1f}",
        ),
        ("Validation", f"{diag.validation} ({diag.n_folds} folds)"),
        (
            "Correlation strength",
            "N/A" if correlation is None else f"r = {correlation:.2f}",
        ),
    ]

    return BudgetBrief(
        title=f"Policy Intervention Brief: {district.district_name}",
        district_id=district.district_id,
        executive_summary=summary,
        baseline_assessment=baseline,
        total_budget=total_budget,
        levers=lever_impacts(simulation, config),
        projected_outcome=outcome,
        statistical_validation=validation,
        recommendations=build_recommendations(district, forecast, simulation, config),
    )


def format_brief(brief: BudgetBrief) -> str:
    """Render a brief as plain text for ``typer.echo()``."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {brief.title} ===")
    lines.append("")
    lines.append("  ---- Executive Summary ----")
    lines.append(f"  {brief.executive_summary}")

    lines.append("")
    lines.append("  ---- Current Baseline Assessment ----")
    for label, value in brief.baseline_assessment:
        lines.append(f"  {label + ':':<34} {value}")

    lines.append("")
    lines.append("  ---- Proposed Multi-Lever Intervention ----")
    lines.append(f"  Total budget: {format_money(brief.total_budget)}")
    lines.append(f"  {'Lever':<28}  {'Amount':>10}  {'Share':>6}  {'Expected impact':>17}")
    lines.append("  " + "-" * 67)
    for lv in brief.levers:
        impact = f"{lv.impact_low_pp:.1f}-{lv.impact_high_pp:.1f} pp"
        lines.append(
            f"  {lv.label[:28]:<28}  {format_money(lv.amount):>10}  "
            f"{format_pct(lv.share_pct):>6}  {impact:>17}"
        )

    for heading, pairs in (
        ("Projected Outcome", brief.projected_outcome),
        ("Statistical Validation", brief.statistical_validation),
    ):
        lines.append("")
        lines.append(f"  ---- {heading} ----")
        for label, value in pairs:
            lines.append(f"  {label + ':':<34} {value}")

    lines.append("")
    lines.append("  ---- Policy Recommendations ----")
    for i, rec in enumerate(brief.recommendations, start=1):
        lines.append(f"  {i}. {rec}")
    return "\n".join(lines)

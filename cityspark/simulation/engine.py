"""
Policy simulation: applies a budget split across the four levers to a
baseline migration trajectory.

Impact model (weighted sum, clamped to the validated envelope)
--------------------------------------------------------------
    reduction_pct = clamp( Σ  alloc_l / 100 * max_impact_l * 100,
                           l
                           envelope_min, envelope_max )

with the default coefficients

    jobs            0.25
    healthcare      0.15
    education       0.12
    infrastructure  0.10

and envelope [1.5, 22.0] percent.  All constants come from
``SimulationConfig`` so the model stays auditable.

Derived outputs
---------------
projected_i  = baseline_i * (1 - reduction_pct / 100)
best_case    = min(envelope_max, reduction_pct + sensitivity_delta)
worst_case   = max(envelope_min, reduction_pct - sensitivity_delta)
amount_l     = total_budget * alloc_l / Σ alloc    (in LEVER_ORDER)

``confidence`` is a configured constant, not estimated from data.

Preconditions (checked before anything is computed)
---------------------------------------------------
1. Every lever in [0, 100] and the total 100 ± tolerance   else AllocationError
2. total_budget > 0 and finite                             else InvalidBudgetError
3. Non-empty baseline with non-negative values             else ValidationError
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Optional

from cityspark.config import SimulationConfig
from cityspark.errors import AllocationError, InvalidBudgetError, ValidationError
from cityspark.models.simulation import (
    BudgetLine,
    LeverAllocation,
    SimulationResult,
    TrajectoryComparison,
    TrajectoryPoint,
)
from cityspark.taxonomy.lever_taxonomy import LEVER_DISPLAY_NAMES, LEVER_ORDER

log = logging.getLogger(__name__)


def validate_allocation(allocation: LeverAllocation, tolerance: float = 0.1) -> None:
    """Raise ``AllocationError`` unless each lever is in [0, 100] and they sum to 100."""
    for lever, pct in allocation.as_dict().items():
        if not 0.0 <= pct <= 100.0:
            raise AllocationError(
                f"Allocation for '{lever.value}' must be in [0, 100], got {pct}.",
                field=lever.value,
            )
    total = allocation.total
    if abs(total - 100.0) > tolerance:
        raise AllocationError(
            f"Lever allocations must sum to 100 (±{tolerance}), got {total:g}.",
            field="allocation",
        )


def total_reduction(
    allocation: LeverAllocation,
    config: Optional[SimulationConfig] = None,
) -> float:
    """Envelope-clamped reduction percentage for an allocation."""
    cfg = config or SimulationConfig()
    raw = sum(
        pct / 100.0 * cfg.max_impact[lever.value]
        for lever, pct in allocation.as_dict().items()
    ) * 100.0
    return _clamp(raw, cfg.envelope_min, cfg.envelope_max)


def budget_breakdown(allocation: LeverAllocation, total_budget: float) -> list[BudgetLine]:
    """Budget amount per lever, in ``LEVER_ORDER``.

    Shares are taken of the allocation total rather than a literal 100 so
    the amounts sum to ``total_budget`` anywhere inside the tolerance band.
    """
    total = allocation.total
    return [
        BudgetLine(
            lever=lever,
            label=LEVER_DISPLAY_NAMES[lever],
            share_pct=pct,
            amount=total_budget * pct / total,
        )
        for lever, pct in allocation.as_dict().items()
    ]


def simulate(
    baseline_trajectory: Sequence[TrajectoryPoint],
    allocation: LeverAllocation,
    total_budget: float,
    config: Optional[SimulationConfig] = None,
) -> SimulationResult:
    """Project the baseline under the given lever allocation.

    Args:
        baseline_trajectory: No-intervention yearly values (normally the
                             forecast engine's point forecasts).
        allocation:          Budget share per lever, in percent.
        total_budget:        Total budget in currency units (> 0).
        config:              Impact coefficients and envelope.
                             Defaults to ``SimulationConfig()``.

    Returns:
        ``SimulationResult`` with totals, envelope bounds, per-year
        comparison, and the budget breakdown.

    Raises:
        AllocationError:    Allocation out of range or not summing to 100.
        InvalidBudgetError: ``total_budget`` is not a positive number.
        ValidationError:    Empty baseline or negative baseline values.
    """
    cfg = config or SimulationConfig()
    validate_allocation(allocation, cfg.allocation_tolerance)

    if not math.isfinite(total_budget) or total_budget <= 0:
        raise InvalidBudgetError(
            f"total_budget must be a positive number, got {total_budget}.",
            field="total_budget",
        )
    if not baseline_trajectory:
        raise ValidationError(
            "Baseline trajectory must contain at least one year.",
            field="baseline_trajectory",
        )
    negative = [p.year for p in baseline_trajectory if p.value < 0]
    if negative:
        raise ValidationError(
            f"Baseline values must be non-negative; negative in years {negative}.",
            field="baseline_trajectory",
        )

    reduction = total_reduction(allocation, cfg)
    factor = 1.0 - reduction / 100.0

    comparison = [
        TrajectoryComparison(year=p.year, baseline=p.value, projected=p.value * factor)
        for p in baseline_trajectory
    ]
    baseline_total = sum(c.baseline for c in comparison)
    projected_total = sum(c.projected for c in comparison)

    log.info(
        "Simulation | budget=%.0f | baseline=%.0f | projected=%.0f",
        total_budget, baseline_total, projected_total,
        extra={"reduction_pct": reduction},
    )
    return SimulationResult(
        baseline=baseline_total,
        projected=projected_total,
        people_retained=baseline_total - projected_total,
        reduction_pct=reduction,
        best_case=min(cfg.envelope_max, reduction + cfg.sensitivity_delta),
        worst_case=max(cfg.envelope_min, reduction - cfg.sensitivity_delta),
        confidence=cfg.confidence,
        trajectory_comparison=tuple(comparison),
        budget_breakdown=tuple(budget_breakdown(allocation, total_budget)),
    )


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))

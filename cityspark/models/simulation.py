"""
Policy simulation models.

``LeverAllocation`` holds the percentage of the budget assigned to each of
the four fixed levers.  Its sum/range invariants are checked by the
simulation engine (``AllocationError``) rather than by pydantic, so callers
get the structured engine error rather than a generic validation failure.

``SimulationResult`` is the engine's output: totals, the reduction envelope,
the year-by-year trajectory comparison, and the budget breakdown.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, field_validator

from cityspark.taxonomy.lever_taxonomy import LEVER_ORDER, Lever


class LeverAllocation(BaseModel):
    """Percentage of the total budget assigned to each lever."""

    model_config = ConfigDict(frozen=True)

    jobs: float = 0.0
    healthcare: float = 0.0
    education: float = 0.0
    infrastructure: float = 0.0

    @field_validator("jobs", "healthcare", "education", "infrastructure")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Allocation percentages must be finite numbers.")
        return v

    def as_dict(self) -> dict[Lever, float]:
        """Lever → percentage, in ``LEVER_ORDER``."""
        return {lever: getattr(self, lever.value) for lever in LEVER_ORDER}

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())


class TrajectoryPoint(BaseModel):
    """One year of a baseline migration trajectory."""

    model_config = ConfigDict(frozen=True)

    year: int
    value: float


class TrajectoryComparison(BaseModel):
    """Baseline vs. projected value for one year."""

    model_config = ConfigDict(frozen=True)

    year: int
    baseline: float
    projected: float


class BudgetLine(BaseModel):
    """Budget amount assigned to one lever."""

    model_config = ConfigDict(frozen=True)

    lever: Lever
    label: str
    share_pct: float
    amount: float


class SimulationResult(BaseModel):
    """Outcome of a multi-lever policy simulation.

    Attributes:
        baseline: Sum of the baseline trajectory (no intervention).
        projected: Sum of the projected trajectory (with intervention).
        people_retained: ``baseline - projected``.
        reduction_pct: Total reduction in percent, inside the envelope.
        best_case: Optimistic reduction bound in percent.
        worst_case: Pessimistic reduction bound in percent.
        confidence: Fixed model-trust score in percent.
        trajectory_comparison: Year-by-year baseline vs. projected.
        budget_breakdown: Amount per lever in ``LEVER_ORDER``.
    """

    model_config = ConfigDict(frozen=True)

    baseline: float
    projected: float
    people_retained: float
    reduction_pct: float
    best_case: float
    worst_case: float
    confidence: float
    trajectory_comparison: tuple[TrajectoryComparison, ...]
    budget_breakdown: tuple[BudgetLine, ...]

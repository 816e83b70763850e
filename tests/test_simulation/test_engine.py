"""
Tests for the policy simulation engine.

What we test
------------
1. 40/25/20/15 of 50M → 20M / 12.5M / 10M / 7.5M in lever order.
2. Allocation summing to 95 → AllocationError (no partial result).
3. Reduction model: weighted sum, clamped to [1.5, 22].
4. Best/worst case inside the envelope; fixed confidence.
5. Budget and baseline validation, in precondition order.
6. projected = baseline * (1 - r/100); people_retained = baseline - projected.
"""

from __future__ import annotations

import pytest

from cityspark.config import SimulationConfig
from cityspark.errors import (
    AllocationError,
    InvalidBudgetError,
    ValidationError,
)
from cityspark.models.simulation import LeverAllocation, TrajectoryPoint
from cityspark.simulation.engine import (
    budget_breakdown,
    simulate,
    total_reduction,
    validate_allocation,
)
from cityspark.taxonomy.lever_taxonomy import LEVER_DISPLAY_NAMES, LEVER_ORDER, Lever


def _trajectory(values: list[float], start: int = 2026) -> list[TrajectoryPoint]:
    return [TrajectoryPoint(year=start + i, value=v) for i, v in enumerate(values)]


BASELINE = _trajectory([70000.0, 72000.0, 74000.0, 76000.0, 78000.0])


# ── Budget breakdown ──────────────────────────────────────────────────────────

def test_canonical_budget_breakdown(balanced_allocation) -> None:
    result = simulate(BASELINE, balanced_allocation, 50_000_000)
    amounts = [line.amount for line in result.budget_breakdown]
    assert amounts == pytest.approx([20_000_000, 12_500_000, 10_000_000, 7_500_000])
    assert [line.lever for line in result.budget_breakdown] == list(LEVER_ORDER)
    assert [line.label for line in result.budget_breakdown] == [
        LEVER_DISPLAY_NAMES[lever] for lever in LEVER_ORDER
    ]


def test_budget_breakdown_sums_to_total(balanced_allocation) -> None:
    lines = budget_breakdown(balanced_allocation, 1_234_567.0)
    assert sum(line.amount for line in lines) == pytest.approx(1_234_567.0)


def test_breakdown_inside_tolerance_band_still_sums_to_total() -> None:
    allocation = LeverAllocation(jobs=40.05, healthcare=25, education=20, infrastructure=15)
    result = simulate(_trajectory([1000.0]), allocation, 50_000_000)
    total = sum(line.amount for line in result.budget_breakdown)
    assert total == pytest.approx(50_000_000, abs=1e-6)
    assert result.budget_breakdown[0].share_pct == 40.05


# ── Allocation validation ─────────────────────────────────────────────────────

def test_allocation_summing_to_95_raises() -> None:
    allocation = LeverAllocation(jobs=40, healthcare=25, education=15, infrastructure=15)
    with pytest.raises(AllocationError) as exc_info:
        simulate(BASELINE, allocation, 50_000_000)
    assert exc_info.value.field == "allocation"
    assert exc_info.value.kind == "allocation_error"


def test_allocation_within_tolerance_accepted() -> None:
    validate_allocation(LeverAllocation(jobs=40.05, healthcare=25, education=20, infrastructure=15))


def test_negative_lever_raises() -> None:
    allocation = LeverAllocation(jobs=110, healthcare=-10)
    with pytest.raises(AllocationError) as exc_info:
        validate_allocation(allocation)
    assert exc_info.value.field == "jobs"


def test_allocation_checked_before_budget() -> None:
    allocation = LeverAllocation(jobs=50)
    with pytest.raises(AllocationError):
        simulate(BASELINE, allocation, -1.0)


# ── Reduction model ───────────────────────────────────────────────────────────

def test_balanced_reduction(balanced_allocation) -> None:
    # 0.40*25 + 0.25*15 + 0.20*12 + 0.15*10
    assert total_reduction(balanced_allocation) == pytest.approx(17.65)


def test_all_jobs_clamped_to_envelope_max() -> None:
    assert total_reduction(LeverAllocation(jobs=100)) == pytest.approx(22.0)


def test_envelope_min_applies() -> None:
    cfg = SimulationConfig(max_impact={
        "jobs": 0.0, "healthcare": 0.0, "education": 0.0, "infrastructure": 0.01,
    })
    assert total_reduction(LeverAllocation(infrastructure=100), cfg) == pytest.approx(1.5)


@pytest.mark.parametrize(
    "allocation",
    [
        LeverAllocation(jobs=100),
        LeverAllocation(infrastructure=100),
        LeverAllocation(jobs=25, healthcare=25, education=25, infrastructure=25),
    ],
)
def test_bounds_inside_envelope(allocation: LeverAllocation) -> None:
    result = simulate(BASELINE, allocation, 10_000_000)
    assert 1.5 <= result.worst_case <= result.reduction_pct <= result.best_case <= 22.0
    assert result.confidence == 86.0


def test_best_and_worst_case(balanced_allocation) -> None:
    result = simulate(BASELINE, balanced_allocation, 50_000_000)
    assert result.best_case == pytest.approx(22.0)
    assert result.worst_case == pytest.approx(17.65 - 4.5)


# ── Trajectory ────────────────────────────────────────────────────────────────

def test_projected_trajectory(balanced_allocation) -> None:
    result = simulate(BASELINE, balanced_allocation, 50_000_000)
    factor = 1 - 17.65 / 100
    for cmp, point in zip(result.trajectory_comparison, BASELINE):
        assert cmp.year == point.year
        assert cmp.baseline == point.value
        assert cmp.projected == pytest.approx(point.value * factor)
    assert result.baseline == pytest.approx(370000.0)
    assert result.projected == pytest.approx(370000.0 * factor)
    assert result.people_retained == pytest.approx(result.baseline - result.projected)
    assert result.projected <= result.baseline


def test_zero_baseline_year_is_allowed(balanced_allocation) -> None:
    result = simulate(_trajectory([0.0, 100.0]), balanced_allocation, 1.0)
    assert result.trajectory_comparison[0].projected == 0.0


# ── Budget / baseline validation ──────────────────────────────────────────────

@pytest.mark.parametrize("budget", [0.0, -5.0, float("inf"), float("nan")])
def test_invalid_budget_raises(balanced_allocation, budget: float) -> None:
    with pytest.raises(InvalidBudgetError) as exc_info:
        simulate(BASELINE, balanced_allocation, budget)
    assert exc_info.value.field == "total_budget"


def test_empty_baseline_raises(balanced_allocation) -> None:
    with pytest.raises(ValidationError) as exc_info:
        simulate([], balanced_allocation, 1_000.0)
    assert exc_info.value.field == "baseline_trajectory"


def test_negative_baseline_raises(balanced_allocation) -> None:
    with pytest.raises(ValidationError):
        simulate(_trajectory([100.0, -1.0]), balanced_allocation, 1_000.0)


def test_allocation_as_dict_order() -> None:
    allocation = LeverAllocation(jobs=10, healthcare=20, education=30, infrastructure=40)
    assert list(allocation.as_dict()) == [
        Lever.JOBS, Lever.HEALTHCARE, Lever.EDUCATION, Lever.INFRASTRUCTURE,
    ]
    assert allocation.total == pytest.approx(100.0)

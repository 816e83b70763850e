"""
Composite outputs assembled by the service facade.

``DistrictAnalysis`` is the per-district drill-down (score, rank, population
context, score ↔ migration correlation).  ``DashboardSummary`` is the
national overview (average score, highest-risk district, top districts,
five-year projection).

Both are frozen value objects; they hold engine outputs, never inputs.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from cityspark.models.scoring import CompositeScoreResult, ScatterPoint


class DistrictAnalysis(BaseModel):
    """Drill-down for one district.

    Attributes:
        result: Ranked composite score for the district.
        total_districts: Size of the ranked population.
        national_average: Mean composite score across the population.
        correlation: Pearson r of scores vs. migration rates, or ``None``
            when it is undefined for the loaded data.
        scatter: Score / migration pairs behind ``correlation``.
    """

    model_config = ConfigDict(frozen=True)

    result: CompositeScoreResult
    total_districts: int
    national_average: float
    correlation: Optional[float] = None
    scatter: tuple[ScatterPoint, ...] = ()


class DashboardSummary(BaseModel):
    """National overview KPIs.

    Attributes:
        national_average: Mean composite score.
        highest_risk: Rank-1 district.
        top_districts: First ``n`` ranked districts.
        risk_counts: District count per risk category label.
        projection_year: Final year of the national projection, or ``None``
            when no national series is loaded.
        projected_migration: Point forecast for ``projection_year``.
        forecast_accuracy_pct: ``100 * (1 - MAPE)`` of the national
            forecast's walk-forward validation, or ``None``.
    """

    model_config = ConfigDict(frozen=True)

    national_average: float
    highest_risk: CompositeScoreResult
    top_districts: tuple[CompositeScoreResult, ...]
    risk_counts: dict[str, int]
    projection_year: Optional[int] = None
    projected_migration: Optional[float] = None
    forecast_accuracy_pct: Optional[float] = None

"""
Analytics service facade: the call-style API consumed by the presentation
layer (CLI, web API).

Every service follows the same contract:
  1. Receive an ``AnalyticsContext`` and ``AppConfig`` at construction.
  2. Each public method is a pure query: it reads the immutable context,
     calls one or more engines, and returns a frozen result model.
  3. Engine errors propagate unchanged (structured ``AnalyticsError``);
     translating them into user-facing messages is the caller's job.

Usage::

    service = AnalyticsService.from_config(load_config())
    result = service.score_district("b")
    outcome = service.simulate(LeverAllocation(jobs=40, healthcare=25,
                                               education=20, infrastructure=15),
                               total_budget=50_000_000)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from cityspark.config import AppConfig
from cityspark.context import AnalyticsContext
from cityspark.errors import InsufficientDataError
from cityspark.forecast import engine as forecast_engine
from cityspark.models.analysis import DashboardSummary, DistrictAnalysis
from cityspark.models.district import TimeSeriesPoint
from cityspark.models.forecast import ForecastResult
from cityspark.models.scoring import CompositeScoreResult
from cityspark.models.simulation import LeverAllocation, SimulationResult, TrajectoryPoint
from cityspark.scoring import correlation as correlation_mod
from cityspark.scoring.ranker import (
    national_average,
    risk_distribution,
    score_population,
    top_n,
)
from cityspark.simulation.engine import simulate as run_simulation, validate_allocation

logger = logging.getLogger(__name__)

DASHBOARD_PROJECTION_YEARS = 5


class AnalyticsService:
    """Scoring, forecast, and simulation queries over one analytics context.

    Attributes:
        context: Immutable districts, ranges, weights, and series.
        config:  Application configuration (engine settings).
    """

    def __init__(self, context: AnalyticsContext, config: Optional[AppConfig] = None) -> None:
        self.context = context
        self.config = config or AppConfig()

    @classmethod
    def from_config(cls, config: AppConfig) -> "AnalyticsService":
        """Load the configured datasets and build a service over them."""
        from cityspark.ingestion.loader import load_context

        return cls(load_context(config), config)

    # ── Scoring ──────────────────────────────────────────────────────────────

    def rank_districts(self) -> list[CompositeScoreResult]:
        """Score and rank the whole population (rank 1 = most imbalanced)."""
        return score_population(
            list(self.context.districts),
            self.context.weights,
            self.context.ranges,
            self.config.scoring,
        )

    def score_district(self, district_id: str) -> CompositeScoreResult:
        """Ranked composite score for one district.

        Raises:
            ValidationError: Unknown ``district_id``.
        """
        self.context.district(district_id)
        return next(r for r in self.rank_districts() if r.district_id == district_id)

    def district_analysis(self, district_id: str) -> DistrictAnalysis:
        """Score, rank, population average, and score ↔ migration correlation."""
        self.context.district(district_id)
        ranked = self.rank_districts()
        result = next(r for r in ranked if r.district_id == district_id)

        districts = list(self.context.districts)
        scatter = correlation_mod.scatter_points(ranked, districts)
        try:
            r = correlation_mod.correlation(
                [p.imbalance for p in scatter], [p.migration for p in scatter]
            )
        except InsufficientDataError as exc:
            logger.warning(
                "Correlation unavailable: %s", exc, extra={"district_id": district_id}
            )
            r = None

        return DistrictAnalysis(
            result=result,
            total_districts=len(ranked),
            national_average=national_average(ranked),
            correlation=r,
            scatter=tuple(scatter),
        )

    # ── Forecast ─────────────────────────────────────────────────────────────

    def forecast(
        self,
        series: Sequence[TimeSeriesPoint],
        horizon: Optional[int] = None,
    ) -> ForecastResult:
        """Forecast an explicit series (``horizon`` defaults to config)."""
        return forecast_engine.forecast(
            series,
            horizon if horizon is not None else self.config.forecast.default_horizon,
            self.config.forecast,
        )

    def forecast_district(
        self,
        series_id: Optional[str] = None,
        horizon: Optional[int] = None,
    ) -> ForecastResult:
        """Forecast a loaded series; ``None`` selects the national series."""
        sid = series_id or self.config.data.national_series_id
        series = self.context.series_for(sid)
        logger.info("Forecasting %d observations", len(series), extra={"series_id": sid})
        return self.forecast(series, horizon)

    # ── Simulation ───────────────────────────────────────────────────────────

    def simulate(
        self,
        allocation: LeverAllocation,
        total_budget: float,
        baseline: Optional[Sequence[TrajectoryPoint]] = None,
        series_id: Optional[str] = None,
        horizon: Optional[int] = None,
    ) -> SimulationResult:
        """Simulate an allocation against an explicit or forecast baseline.

        When ``baseline`` is omitted, the forecast of ``series_id`` (national
        by default) over ``horizon`` years is used.
        """
        validate_allocation(allocation, self.config.simulation.allocation_tolerance)
        if baseline is None:
            forecast = self.forecast_district(series_id, horizon)
            baseline = forecast_engine.baseline_trajectory(forecast.points)
        return run_simulation(baseline, allocation, total_budget, self.config.simulation)

    # ── Dashboard ────────────────────────────────────────────────────────────

    def dashboard_summary(self, n: int = 5) -> DashboardSummary:
        """National KPIs: average score, top districts, five-year projection."""
        ranked = self.rank_districts()
        counts = risk_distribution(ranked)

        projection_year: Optional[int] = None
        projected: Optional[float] = None
        accuracy: Optional[float] = None
        national_id = self.config.data.national_series_id
        if national_id in self.context.series:
            forecast = self.forecast_district(national_id, DASHBOARD_PROJECTION_YEARS)
            projection_year = forecast.points[-1].year
            projected = forecast.points[-1].point
            mape = forecast.diagnostics.mape
            if mape is not None:
                accuracy = max(0.0, 100.0 * (1.0 - mape))
        else:
            logger.warning("No '%s' series loaded; dashboard projection skipped.", national_id)

        return DashboardSummary(
            national_average=national_average(ranked),
            highest_risk=ranked[0],
            top_districts=tuple(top_n(ranked, n)),
            risk_counts={category.value: count for category, count in counts.items()},
            projection_year=projection_year,
            projected_migration=projected,
            forecast_accuracy_pct=accuracy,
        )

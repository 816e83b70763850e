"""
Forecast engine: validated ARIMA baseline forecasts of a migration series.

Usage flow
----------
1. fit(series, horizon, config)
   -> (list[ForecastPoint], FitDiagnostics)

2. forecast(series, horizon, config)
   -> ForecastResult  (points + diagnostics + order + yearly breakdown)

3. baseline_trajectory(points)
   -> list[TrajectoryPoint]  (input for the simulation engine)

Preconditions (checked before any fitting)
------------------------------------------
- horizon >= 1                                  else ValidationError
- at least ``min_history`` points (default 4)   else InsufficientHistoryError
- strictly increasing years, one uniform step   else DataOrderError

Bands
-----
lower/upper = point ∓ z * se_h, with z the standard-normal quantile for the
configured confidence.  Bands are not clamped at zero, so band width stays
non-decreasing with the horizon.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from scipy import stats

from cityspark.config import ForecastConfig
from cityspark.errors import DataOrderError, InsufficientHistoryError, ValidationError
from cityspark.forecast.evaluator import fit_diagnostics
from cityspark.forecast.models import ArimaBaseline
from cityspark.models.district import TimeSeriesPoint
from cityspark.models.forecast import (
    FitDiagnostics,
    ForecastPoint,
    ForecastResult,
    YearlyForecast,
)
from cityspark.models.simulation import TrajectoryPoint

log = logging.getLogger(__name__)


def validate_series(series: Sequence[TimeSeriesPoint], min_history: int = 4) -> int:
    """Check length and year ordering; return the (uniform) year step.

    Raises:
        InsufficientHistoryError: Fewer than ``min_history`` points.
        DataOrderError:           Years not strictly increasing, or gaps.
    """
    if len(series) < min_history:
        raise InsufficientHistoryError(
            f"Forecasting needs at least {min_history} points, got {len(series)}.",
            field="series",
        )

    years = [p.year for p in series]
    for prev, cur in zip(years, years[1:]):
        if cur <= prev:
            raise DataOrderError(
                f"Years must be strictly increasing; {cur} follows {prev}.",
                field="series.year",
            )

    step = years[1] - years[0]
    for prev, cur in zip(years, years[1:]):
        if cur - prev != step:
            raise DataOrderError(
                f"Years must be evenly spaced; gap {prev}->{cur} differs from step {step}.",
                field="series.year",
            )
    return step


def fit(
    series: Sequence[TimeSeriesPoint],
    horizon: int,
    config: Optional[ForecastConfig] = None,
) -> tuple[list[ForecastPoint], FitDiagnostics]:
    """Fit the baseline and produce ``horizon`` yearly forecasts.

    Args:
        series:  Observed points, oldest first.
        horizon: Number of future periods to forecast (>= 1).
        config:  Model grid, confidence, and minimum history.
                 Defaults to ``ForecastConfig()``.

    Returns:
        ``(points, diagnostics)``; points are in year order.
    """
    result = forecast(series, horizon, config)
    return list(result.points), result.diagnostics


def forecast(
    series: Sequence[TimeSeriesPoint],
    horizon: int,
    config: Optional[ForecastConfig] = None,
) -> ForecastResult:
    """Full forecast output: points, diagnostics, order, and yearly breakdown."""
    cfg = config or ForecastConfig()
    if horizon < 1:
        raise ValidationError(f"horizon must be >= 1, got {horizon}.", field="horizon")
    step = validate_series(series, cfg.min_history)

    values = [p.value for p in series]

    def new_model() -> ArimaBaseline:
        return ArimaBaseline(
            ar_orders=cfg.ar_orders,
            ma_orders=cfg.ma_orders,
            max_diff_order=cfg.max_diff_order,
            adf_alpha=cfg.adf_alpha,
        )

    model = new_model().fit(values)
    mean, standard_error = model.forecast(horizon)

    z = float(stats.norm.ppf(0.5 + cfg.confidence_pct / 2.0))
    last_year = series[-1].year
    points = []
    for h in range(horizon):
        point = float(mean[h])
        half_width = z * float(standard_error[h])
        points.append(ForecastPoint(
            year=last_year + step * (h + 1),
            point=point,
            lower_bound=point - half_width,
            upper_bound=point + half_width,
        ))

    diagnostics = fit_diagnostics(values, model, new_model, cfg.min_train_points)
    breakdown, total, growth = summarize_forecast(points, last_observed=values[-1])

    log.info(
        "Forecast | n=%d | horizon=%d | last=%s -> %.1f",
        len(values), horizon, points[-1].year, points[-1].point,
        extra={"order": model.order},
    )
    return ForecastResult(
        points=tuple(points),
        diagnostics=diagnostics,
        order=model.order,
        confidence_pct=cfg.confidence_pct,
        yearly_breakdown=tuple(breakdown),
        total_projection=total,
        annual_growth_pct=growth,
    )


def summarize_forecast(
    points: Sequence[ForecastPoint],
    last_observed: float,
) -> tuple[list[YearlyForecast], float, Optional[float]]:
    """Yearly breakdown with year-over-year growth, horizon total, and mean growth.

    The first forecast year is compared against ``last_observed``.  Growth
    against a zero previous value is undefined and reported as ``None``.
    """
    breakdown: list[YearlyForecast] = []
    previous = last_observed
    for p in points:
        growth = (p.point / previous - 1.0) * 100.0 if previous != 0 else None
        breakdown.append(YearlyForecast(
            year=p.year,
            forecast=p.point,
            lower_bound=p.lower_bound,
            upper_bound=p.upper_bound,
            growth_pct=growth,
        ))
        previous = p.point

    total = sum(p.point for p in points)
    growths = [b.growth_pct for b in breakdown if b.growth_pct is not None]
    annual = sum(growths) / len(growths) if growths else None
    return breakdown, total, annual


def baseline_trajectory(points: Sequence[ForecastPoint]) -> list[TrajectoryPoint]:
    """Forecast points as a simulation baseline.

    A negative point forecast (possible on a steeply falling series) is
    floored at 0: a migration count cannot be negative.
    """
    return [TrajectoryPoint(year=p.year, value=max(0.0, p.point)) for p in points]

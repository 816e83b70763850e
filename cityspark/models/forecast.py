"""
Forecast output models.

``ForecastPoint`` represents a single yearly point forecast with its
confidence band.  ``FitDiagnostics`` carries the walk-forward accuracy
metrics and the AIC of the final fit.  ``ForecastResult`` bundles both with
the selected model order and the yearly growth breakdown.

All models are frozen; a forecast is a value object produced per request.
"""

from __future__ import annotations

import math
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

ValidationMode = Literal["walk_forward", "in_sample"]


class ForecastPoint(BaseModel):
    """Point forecast with confidence interval for one future year.

    Attributes:
        year: Forecasted calendar year.
        point: Central estimate.
        lower_bound: Lower bound of the confidence band.
        upper_bound: Upper bound of the confidence band.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    point: float
    lower_bound: float
    upper_bound: float

    @model_validator(mode="after")
    def validate_band(self) -> "ForecastPoint":
        if not self.lower_bound <= self.point <= self.upper_bound:
            raise ValueError(
                f"Forecast band must satisfy lower_bound ({self.lower_bound}) <= "
                f"point ({self.point}) <= upper_bound ({self.upper_bound})."
            )
        return self

    @property
    def band_width(self) -> float:
        return self.upper_bound - self.lower_bound


class FitDiagnostics(BaseModel):
    """Goodness-of-fit metrics for a fitted baseline model.

    Attributes:
        rmse: Root mean squared one-step-ahead error.
        mae: Mean absolute one-step-ahead error.
        aic: Akaike Information Criterion of the final full-sample fit.
            Finite but unbounded below: a Gaussian fit with small residual
            variance has a positive log-likelihood, so AIC can be negative.
        mape: Mean absolute percentage error of the same residuals
            (0.03 = 3%), or None when undefined.
        n_folds: Number of walk-forward folds evaluated (0 when the series
            was too short to hold any point out).
        validation: ``"walk_forward"`` or ``"in_sample"`` (fallback).
    """

    model_config = ConfigDict(frozen=True)

    rmse: float
    mae: float
    aic: float
    mape: Optional[float] = None
    n_folds: int = 0
    validation: ValidationMode = "walk_forward"

    @field_validator("rmse", "mae")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Error metrics must be non-negative, got {v}.")
        return v

    @field_validator("aic")
    @classmethod
    def validate_finite_aic(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"AIC must be finite, got {v}.")
        return v


class YearlyForecast(BaseModel):
    """One row of the yearly forecast breakdown.

    ``growth_pct`` is the year-over-year change of the point forecast in
    percent; the first forecast year is compared against the last observed
    value.  ``None`` when the previous value is zero.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    forecast: float
    lower_bound: float
    upper_bound: float
    growth_pct: Optional[float] = None


class ForecastResult(BaseModel):
    """Complete forecast engine output.

    Attributes:
        points: Forecast points in year order.
        diagnostics: RMSE / MAE / AIC.
        order: Selected ``(p, d, q)``.
        confidence_pct: Confidence level of the bands, e.g. ``0.95``.
        yearly_breakdown: Points enriched with year-over-year growth.
        total_projection: Sum of the point forecasts over the horizon.
        annual_growth_pct: Mean of the yearly growth values, or ``None``.
    """

    model_config = ConfigDict(frozen=True)

    points: tuple[ForecastPoint, ...]
    diagnostics: FitDiagnostics
    order: tuple[int, int, int]
    confidence_pct: float
    yearly_breakdown: tuple[YearlyForecast, ...] = ()
    total_projection: float = 0.0
    annual_growth_pct: Optional[float] = None

    @field_validator("confidence_pct")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"confidence_pct must be in (0.0, 1.0), got {v}.")
        return v

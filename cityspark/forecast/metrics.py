"""
Forecast evaluation metrics.

Metric design rationale
-----------------------
MAE (Mean Absolute Error)
  "On average the one-year-ahead forecast is off by X people."  Equally
  weights all errors; the figure planners quote.

RMSE (Root Mean Squared Error)
  Squares errors before averaging, so a single badly missed year dominates.
  RMSE > MAE implies occasional large misses.

MAPE (Mean Absolute Percentage Error)
  Normalises the error by the actual count so districts of very different
  size can be compared ("off by 3%").  Actual values below MAPE_EPSILON are
  excluded to avoid division by zero.

All three are 0 for a perfect forecaster and never negative.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

MAPE_EPSILON = 1.0  # minimum actual count to include in MAPE


@dataclass(frozen=True)
class OneStepRecord:
    """One prediction-vs-actual comparison from a walk-forward fold.

    Attributes:
        fold_index: Which fold this came from.
        train_size: Number of observations the model was fit on.
        actual:     Observed value at the test index.
        predicted:  One-step-ahead point forecast.
    """

    fold_index: int
    train_size: int
    actual: float
    predicted: float

    @property
    def error(self) -> float:
        return self.actual - self.predicted


@dataclass(frozen=True)
class ErrorMetrics:
    """Aggregated error metrics over a set of residuals.

    Attributes:
        n_evaluated: Number of errors aggregated.
        mae:         Mean absolute error.
        rmse:        Root mean squared error.
        mape:        Mean absolute percentage error (0.03 = 3%), or None when
                     every actual is below MAPE_EPSILON or no actuals were given.
    """

    n_evaluated: int
    mae: float
    rmse: float
    mape: Optional[float] = None


def error_metrics(
    errors: list[float],
    actuals: Optional[list[float]] = None,
) -> ErrorMetrics:
    """Compute MAE, RMSE, and (when actuals are known) MAPE from raw errors.

    Raises:
        ValueError: If ``errors`` is empty, or ``actuals`` is given with a
            different length.
    """
    if not errors:
        raise ValueError("Cannot compute metrics from zero errors.")
    if actuals is not None and len(actuals) != len(errors):
        raise ValueError(
            f"actuals ({len(actuals)}) must pair with errors ({len(errors)})."
        )

    abs_errors = [abs(e) for e in errors]
    mae = math.fsum(abs_errors) / len(abs_errors)
    rmse = math.sqrt(math.fsum(e * e for e in errors) / len(errors))

    mape: Optional[float] = None
    if actuals is not None:
        terms = [
            err / abs(a)
            for err, a in zip(abs_errors, actuals)
            if abs(a) >= MAPE_EPSILON
        ]
        mape = (math.fsum(terms) / len(terms)) if terms else None

    return ErrorMetrics(n_evaluated=len(errors), mae=mae, rmse=rmse, mape=mape)


def compute_metrics(records: list[OneStepRecord]) -> ErrorMetrics:
    """Compute evaluation metrics over walk-forward one-step records."""
    return error_metrics(
        [r.error for r in records],
        [r.actual for r in records],
    )

"""
Walk-forward evaluator: refit the baseline on every expanding prefix and
score its one-step-ahead forecasts.

How it works
------------
1. generate_walk_forward_splits(n, min_train_points) gives the folds.
2. For each fold:
   a. Fit a fresh model on ``values[:fold.train_end]`` (full order
      selection is repeated, so each fold is an honest out-of-sample test).
   b. Forecast one step; compare with ``values[fold.test_index]``.
   c. Emit a OneStepRecord.
3. Aggregate the records into RMSE / MAE / MAPE.

When the series is exactly ``min_train_points`` long there is nothing to
hold out.  The diagnostics then fall back to the in-sample residuals of the
final fit and are labelled ``validation="in_sample"``.

Leakage proof
-------------
- Each model receives only ``values[:train_end]``.
- ``test_index == train_end`` (structural guarantee from split generation).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from cityspark.forecast.metrics import (
    OneStepRecord,
    compute_metrics,
    error_metrics,
)
from cityspark.forecast.models import ArimaBaseline
from cityspark.forecast.splits import generate_walk_forward_splits
from cityspark.models.forecast import FitDiagnostics

log = logging.getLogger(__name__)


def run_walk_forward(
    values: Sequence[float],
    model_factory: Callable[[], ArimaBaseline],
    min_train_points: int = 4,
) -> list[OneStepRecord]:
    """One-step-ahead predictions over all expanding-window folds.

    Args:
        values:           Observed series in time order.
        model_factory:    Returns a fresh, unfitted model.
        min_train_points: Smallest training prefix.

    Returns:
        One OneStepRecord per fold (empty if the series has no hold-out).
    """
    folds = generate_walk_forward_splits(len(values), min_train_points)
    records: list[OneStepRecord] = []

    for fold in folds:
        model = model_factory().fit(values[: fold.train_end])
        mean, _ = model.forecast(1)
        records.append(OneStepRecord(
            fold_index=fold.fold_index,
            train_size=fold.train_size,
            actual=float(values[fold.test_index]),
            predicted=float(mean[0]),
        ))
        log.debug(
            "Fold %d | train=%d | order=%s | actual=%.2f | predicted=%.2f",
            fold.fold_index, fold.train_size, model.order,
            records[-1].actual, records[-1].predicted,
        )

    return records


def fit_diagnostics(
    values: Sequence[float],
    final_model: ArimaBaseline,
    model_factory: Callable[[], ArimaBaseline],
    min_train_points: int = 4,
) -> FitDiagnostics:
    """RMSE / MAE / MAPE from walk-forward folds, AIC from the final fit."""
    records = run_walk_forward(values, model_factory, min_train_points)

    if records:
        metrics = compute_metrics(records)
        validation = "walk_forward"
    else:
        residuals = [float(e) for e in final_model.residuals]
        metrics = error_metrics(residuals)
        validation = "in_sample"

    log.info(
        "Forecast diagnostics | rmse=%.3f | mae=%.3f | aic=%.3f",
        metrics.rmse, metrics.mae, final_model.aic,
        extra={"validation": validation, "folds": len(records), "order": final_model.order},
    )
    return FitDiagnostics(
        rmse=metrics.rmse,
        mae=metrics.mae,
        aic=final_model.aic,
        mape=metrics.mape,
        n_folds=len(records),
        validation=validation,
    )

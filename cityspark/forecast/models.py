"""
Baseline ARIMA forecasting model.

Model selection
---------------
1. Differencing order ``d`` (0..max_diff_order) is chosen by repeated
   Augmented Dickey-Fuller tests: while the current series is not stationary
   at ``adf_alpha``, difference it once more.
     - A constant series is stationary; differencing stops.
     - A series whose first difference is constant (an exact linear trend)
       is differenced without testing.
     - A series too short for the ADF test keeps the current ``d``.
2. On the ``d``-times differenced series an ARMA(p, q) with constant is fit
   for every (p, q) in the configured grid, and the lowest AIC wins.  Ties
   go to the smaller model.  Candidates that need more parameters than the
   sample can support are skipped; ARMA(0, 0) is always tried.
3. A constant differenced series is handled exactly: the forecast repeats the
   constant step and the residual variance is zero.

Forecast
--------
The differenced-scale forecast is integrated back ``d`` times from the last
observed value of each differencing level.  The forecast standard error at
step h uses the psi weights of the *integrated* ARMA polynomial:

    se_h = sqrt(sigma2 * sum_{j<h} psi_j^2)

which is non-decreasing in h by construction.

Interface contract
------------------
  fit(values: Sequence[float]) -> ArimaBaseline
  forecast(steps: int) -> (mean: ndarray, standard_error: ndarray)

A fresh instance is fit per series (and per walk-forward fold).  Output is
deterministic for identical input.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

import numpy as np
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.arima_process import arma2ma
from statsmodels.tsa.stattools import adfuller

from cityspark.errors import InsufficientDataError

log = logging.getLogger(__name__)

_CONSTANT_RTOL = 1e-12


class ArimaBaseline:
    """ARIMA(p, d, q) with ADF-chosen ``d`` and AIC-chosen ``(p, q)``.

    Notes:
        - ``order``, ``aic``, ``sigma2`` and ``residuals`` are only
          available after ``fit``.
        - The AIC of the exact constant-step model is reported as 0.0.
    """

    name = "arima"

    def __init__(
        self,
        ar_orders: Sequence[int] = (0, 1, 2, 3),
        ma_orders: Sequence[int] = (0, 1, 2, 3),
        max_diff_order: int = 2,
        adf_alpha: float = 0.05,
    ) -> None:
        self._ar_orders = tuple(sorted(set(ar_orders)))
        self._ma_orders = tuple(sorted(set(ma_orders)))
        self._max_diff_order = max_diff_order
        self._adf_alpha = adf_alpha

        self._order: Optional[tuple[int, int, int]] = None
        self._aic: Optional[float] = None
        self._sigma2 = 0.0
        self._tails: list[float] = []
        self._result = None
        self._constant_step: Optional[float] = None
        self._ar_poly = np.array([1.0])
        self._ma_poly = np.array([1.0])
        self._residuals = np.array([])

    # ── Fitted state ──────────────────────────────────────────────────────────

    @property
    def order(self) -> tuple[int, int, int]:
        self._require_fit()
        return self._order  # type: ignore[return-value]

    @property
    def aic(self) -> float:
        self._require_fit()
        return self._aic  # type: ignore[return-value]

    @property
    def sigma2(self) -> float:
        self._require_fit()
        return self._sigma2

    @property
    def residuals(self) -> np.ndarray:
        """In-sample one-step residuals on the differenced scale."""
        self._require_fit()
        return self._residuals

    # ── Fit / forecast ────────────────────────────────────────────────────────

    def fit(self, values: Sequence[float]) -> "ArimaBaseline":
        """Select ``(p, d, q)`` and fit the series.

        Raises:
            InsufficientDataError: Fewer than 3 values, or no grid candidate
                could be estimated.
        """
        y = np.asarray(values, dtype=float)
        if y.size < 3:
            raise InsufficientDataError(
                f"ARIMA needs at least 3 observations, got {y.size}.", field="series"
            )

        d = select_differencing_order(y, self._max_diff_order, self._adf_alpha)
        levels = [y]
        for _ in range(d):
            levels.append(np.diff(levels[-1]))
        z = levels[d]
        # Last value of each level, innermost first, for integrating back.
        self._tails = [float(levels[k][-1]) for k in range(d - 1, -1, -1)]

        if _is_constant(z):
            self._fit_constant(z, d)
        else:
            self._fit_grid(z, d)

        log.debug(
            "Fitted ARIMA%s | n=%d | aic=%.3f | sigma2=%.4g",
            self._order, y.size, self._aic, self._sigma2,
        )
        return self

    def forecast(self, steps: int) -> tuple[np.ndarray, np.ndarray]:
        """Point forecasts and standard errors for the next ``steps`` periods."""
        self._require_fit()
        if steps < 1:
            raise ValueError(f"steps must be >= 1, got {steps}")

        if self._constant_step is not None:
            diff_mean = np.full(steps, self._constant_step)
        else:
            diff_mean = np.asarray(self._result.forecast(steps=steps), dtype=float)

        mean = diff_mean
        for last in self._tails:
            mean = last + np.cumsum(mean)

        if self._sigma2 <= 0.0:
            return mean, np.zeros(steps)

        ar_poly = np.asarray(self._ar_poly, dtype=float)
        for _ in range(self._order[1]):  # type: ignore[index]
            ar_poly = np.convolve(ar_poly, [1.0, -1.0])
        psi = arma2ma(ar_poly, np.asarray(self._ma_poly, dtype=float), lags=steps)
        standard_error = np.sqrt(self._sigma2 * np.cumsum(psi ** 2))
        return mean, standard_error

    # ── Internals ─────────────────────────────────────────────────────────────

    def _fit_constant(self, z: np.ndarray, d: int) -> None:
        self._order = (0, d, 0)
        self._aic = 0.0
        self._sigma2 = 0.0
        self._constant_step = float(z[-1])
        self._result = None
        self._ar_poly = np.array([1.0])
        self._ma_poly = np.array([1.0])
        self._residuals = np.zeros(z.size)

    def _fit_grid(self, z: np.ndarray, d: int) -> None:
        best = None
        best_key: Optional[tuple[float, int, int, int]] = None

        for p in self._ar_orders:
            for q in self._ma_orders:
                # p + q ARMA terms, the constant, and sigma2.
                if (p, q) != (0, 0) and p + q + 2 >= z.size:
                    continue
                result = _fit_arma(z, p, q)
                if result is None or not np.isfinite(result.aic):
                    continue
                key = (float(result.aic), p + q, p, q)
                if best_key is None or key < best_key:
                    best, best_key = result, key

        if best is None:
            raise InsufficientDataError(
                f"No ARMA candidate could be estimated on {z.size} differenced points.",
                field="series",
            )

        params = dict(zip(best.model.param_names, np.asarray(best.params, dtype=float)))
        self._order = (best_key[2], d, best_key[3])  # type: ignore[index]
        self._aic = float(best.aic)
        self._sigma2 = max(0.0, float(params.get("sigma2", 0.0)))
        self._constant_step = None
        self._result = best
        self._ar_poly = np.r_[1.0, -np.asarray(best.arparams, dtype=float)]
        self._ma_poly = np.r_[1.0, np.asarray(best.maparams, dtype=float)]
        self._residuals = np.asarray(best.resid, dtype=float)

    def _require_fit(self) -> None:
        if self._order is None:
            raise RuntimeError("ArimaBaseline.fit() must be called before use.")


# ── Helpers ───────────────────────────────────────────────────────────────────

def select_differencing_order(
    values: np.ndarray,
    max_diff_order: int = 2,
    adf_alpha: float = 0.05,
) -> int:
    """Number of differences needed to make ``values`` stationary (ADF)."""
    current = np.asarray(values, dtype=float)
    d = 0
    while d < max_diff_order and current.size > 2:
        if _is_constant(current):
            break
        if not _is_constant(np.diff(current)):
            p_value = _adf_pvalue(current)
            if p_value is None or p_value < adf_alpha:
                break
        current = np.diff(current)
        d += 1
    return d


def _adf_pvalue(values: np.ndarray) -> Optional[float]:
    """ADF p-value, or None when the series is too short to test.

    A non-finite p-value is treated as "not stationary" (1.0).
    """
    try:
        p_value = adfuller(values, autolag="AIC")[1]
    except (ValueError, np.linalg.LinAlgError) as exc:
        log.debug("ADF test skipped on %d points: %s", values.size, exc)
        return None
    return float(p_value) if np.isfinite(p_value) else 1.0


def _fit_arma(z: np.ndarray, p: int, q: int):
    """Fit ARMA(p, q) with constant; None if estimation fails."""
    try:
        return ARIMA(z, order=(p, 0, q), trend="c").fit()
    except (ValueError, np.linalg.LinAlgError) as exc:
        log.debug("ARMA(%d,%d) failed on %d points: %s", p, q, z.size, exc)
        return None


def _is_constant(values: np.ndarray) -> bool:
    if values.size == 0:
        return True
    scale = max(1.0, float(np.max(np.abs(values))))
    return float(np.ptp(values)) <= _CONSTANT_RTOL * scale

"""
Forecast engine: baseline ARIMA forecasts of annual migration series.

Modules
-------
splits      Expanding-window walk-forward fold generation.
models      ArimaBaseline: ADF-chosen differencing, AIC grid over (p, q).
metrics     MAE, RMSE, MAPE and supporting types.
evaluator   Walk-forward one-step-ahead diagnostics.
engine      fit() / forecast() entry points, yearly summary, simulation baseline.
"""

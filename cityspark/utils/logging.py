"""
Logging setup for the CitySpark CLI.

``configure_logging(config)`` is called once per CLI command, before any
engine work.  Library modules only ever call ``logging.getLogger(__name__)``.

Engine context
--------------
The engines attach run context to their summary records through ``extra=``:

    series_id      forecast / simulation baseline series
    district_id    district being scored or analysed
    order          selected ARIMA (p, d, q)
    validation     "walk_forward" or "in_sample"
    folds          number of walk-forward folds
    reduction_pct  clamped simulation reduction

Only these keys are rendered.  The text format appends them as
``key=value`` pairs after the message; the JSON format emits them as
top-level fields::

    {"ts": "...", "level": "INFO", "logger": "cityspark.forecast.engine",
     "msg": "Forecast | n=6 | horizon=6", "series_id": "national",
     "order": [1, 1, 0]}

statsmodels reports estimation trouble (non-convergence, non-invertible
starting values) as Python warnings.  ``quiet_model_warnings()`` filters
those categories once here instead of around every fit.
"""

from __future__ import annotations

import json
import logging
import sys
import warnings
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cityspark.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

CONTEXT_FIELDS: tuple[str, ...] = (
    "series_id",
    "district_id",
    "order",
    "validation",
    "folds",
    "reduction_pct",
)


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields present on ``record``, in ``CONTEXT_FIELDS`` order."""
    context: dict[str, Any] = {}
    for key in CONTEXT_FIELDS:
        value = getattr(record, key, None)
        if value is None:
            continue
        context[key] = list(value) if isinstance(value, tuple) else value
    return context


class ContextFormatter(logging.Formatter):
    """Plain-text formatter that appends engine context as ``key=value``."""

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{k}={_render(v)}" for k, v in context.items())
        return f"{line} | {pairs}"


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ``ts``, ``level``, ``logger``, ``msg``, context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(record_context(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def quiet_model_warnings() -> None:
    """Ignore statsmodels estimation warnings for the rest of the process."""
    from statsmodels.tools.sm_exceptions import ConvergenceWarning, ValueWarning

    warnings.filterwarnings("ignore", category=ConvergenceWarning)
    warnings.filterwarnings("ignore", category=ValueWarning)
    warnings.filterwarnings("ignore", category=UserWarning, module=r"statsmodels\.")
    warnings.filterwarnings("ignore", category=RuntimeWarning, module=r"statsmodels\.")


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from a ``LoggingConfig`` instance.

    Records go to stderr, so report output on stdout stays pipeable, and
    to ``config.log_file`` when set.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter: logging.Formatter = JsonFormatter() if config.json_format else ContextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.getLogger("pyarrow").setLevel(logging.WARNING)
    quiet_model_warnings()


def _render(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, list):
        return "(" + ", ".join(str(v) for v in value) + ")"
    return str(value)

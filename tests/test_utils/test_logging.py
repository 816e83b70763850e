"""Tests for the CLI logging setup and engine context rendering."""

from __future__ import annotations

import json
import logging
import warnings
from pathlib import Path

import pytest
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from cityspark.config import LoggingConfig
from cityspark.forecast.engine import forecast
from cityspark.models.district import TimeSeriesPoint
from cityspark.utils.logging import (
    ContextFormatter,
    JsonFormatter,
    configure_logging,
    quiet_model_warnings,
    record_context,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.makeLogRecord({
        "name": "cityspark.forecast.engine",
        "levelno": logging.INFO,
        "levelname": "INFO",
        "msg": "Forecast | n=%d",
        "args": (6,),
    })
    record.__dict__.update(extra)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


# ── Context extraction ────────────────────────────────────────────────────────

def test_record_context_keeps_known_fields_in_order() -> None:
    record = _record(order=(1, 1, 0), series_id="national", unrelated="x")
    assert record_context(record) == {"series_id": "national", "order": [1, 1, 0]}


def test_record_without_context_is_empty() -> None:
    assert record_context(_record()) == {}


# ── Formatters ────────────────────────────────────────────────────────────────

def test_text_format_appends_context_pairs() -> None:
    line = ContextFormatter().format(_record(order=(0, 1, 0), reduction_pct=17.65))
    assert "Forecast | n=6 | order=(0, 1, 0) reduction_pct=17.65" in line
    assert "[INFO] cityspark.forecast.engine" in line


def test_text_format_without_context_is_plain() -> None:
    assert ContextFormatter().format(_record()).endswith("Forecast | n=6")


def test_json_format_emits_context_fields() -> None:
    payload = json.loads(JsonFormatter().format(
        _record(series_id="b", validation="walk_forward", folds=2)
    ))
    assert payload["msg"] == "Forecast | n=6"
    assert payload["level"] == "INFO"
    assert payload["series_id"] == "b"
    assert payload["validation"] == "walk_forward"
    assert payload["folds"] == 2


# ── configure_logging ─────────────────────────────────────────────────────────

def test_engine_context_reaches_json_log_file(tmp_path: Path, restore_root_logger) -> None:
    log_file = tmp_path / "logs" / "run.log"
    configure_logging(LoggingConfig(level="INFO", log_file=str(log_file), json_format=True))

    series = [TimeSeriesPoint(year=2020 + i, value=10.0 * (i + 1)) for i in range(4)]
    forecast(series, 2)
    for handler in logging.getLogger().handlers:
        handler.flush()

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    summary = next(r for r in records if r["msg"].startswith("Forecast |"))
    assert summary["order"] == [0, 1, 0]
    diagnostics = next(r for r in records if r["msg"].startswith("Forecast diagnostics"))
    assert diagnostics["validation"] in {"walk_forward", "in_sample"}


def test_quiet_model_warnings_filters_convergence() -> None:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        quiet_model_warnings()
        warnings.warn("did not converge", ConvergenceWarning)
    assert caught == []

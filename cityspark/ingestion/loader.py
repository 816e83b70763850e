"""
Tabular loaders for district indicators and migration series.

Supported formats (chosen by file suffix):
  .csv      comma delimited, with a header row
  .json     a list of row objects
  .parquet  read with ``pyarrow.parquet``

District rows
-------------
Required columns:
  district_id, name

Optional columns:
  migration_rate   observed out-migration per 1,000 residents (empty → None)

Every other column is an indicator category (``economic``,
``infrastructure``, ``social``, ...).  An empty indicator cell is left out
of ``District.indicators``; scoring then fails for that district with
``UnknownIndicatorError``.  JSON rows may instead carry a nested
``"indicators": {...}`` object.

Migration series rows (long format)
-----------------------------------
Required columns:
  district_id, year, value

Rows are grouped by ``district_id`` and sorted by year.  The national series
uses the id configured as ``data.national_series_id`` (default
``"national"``).  Duplicate years are kept; the forecast engine reports
them as ``DataOrderError``.

All rows are validated before any are returned.  If **any** row fails, a
single ``ValidationError`` is raised listing the first 10 failures with
their row number and field.
"""

from __future__ import annotations

import csv
import json
import logging
import math
from collections import defaultdict
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

import pyarrow.parquet as pq
from pydantic import ValidationError as PydanticValidationError

from cityspark.config import AppConfig, ScoringConfig, _find_project_root
from cityspark.context import AnalyticsContext
from cityspark.errors import ValidationError
from cityspark.models.district import District, TimeSeriesPoint
from cityspark.scoring.ranges import compute_ranges
from cityspark.scoring.scorer import validate_weights

logger = logging.getLogger(__name__)

REQUIRED_DISTRICT_COLUMNS = frozenset({"district_id", "name"})
REQUIRED_SERIES_COLUMNS = frozenset({"district_id", "year", "value"})
NON_INDICATOR_COLUMNS = frozenset({"district_id", "name", "migration_rate", "indicators"})
SUPPORTED_SUFFIXES = (".csv", ".json", ".parquet")

_MAX_ERRORS_SHOWN = 10


class _RowError(Exception):
    """A single-field failure while converting one row."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


# ── Public API ─────────────────────────────────────────────────────────────────

def load_districts(path: Path) -> list[District]:
    """Load district indicator rows into validated :class:`District` objects.

    Args:
        path: CSV, JSON, or Parquet file (must exist).

    Returns:
        Districts in file order.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValidationError:   Unsupported format, missing columns, duplicate
                           ids, or any row failing validation.
    """
    rows = read_rows(path)
    _require_columns(rows, REQUIRED_DISTRICT_COLUMNS, path)

    districts: list[District] = []
    errors: list[tuple[int, str, str]] = []
    seen: set[str] = set()

    for i, row in enumerate(rows):
        row_no = i + 1
        try:
            district = _row_to_district(row)
        except _RowError as exc:
            errors.append((row_no, exc.field, exc.message))
            continue
        if district.id in seen:
            errors.append((row_no, "district_id", f"Duplicate district id '{district.id}'."))
            continue
        seen.add(district.id)
        districts.append(district)

    _raise_row_errors(errors, path)
    logger.info("Loaded %d districts from %s", len(districts), Path(path).name)
    return districts


def load_migration_series(path: Path) -> dict[str, list[TimeSeriesPoint]]:
    """Load long-format migration rows grouped by series id.

    Returns:
        ``{district_id: [TimeSeriesPoint, ...]}`` with each list sorted by year.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValidationError:   Unsupported format, missing columns, or any row
                           failing validation.
    """
    rows = read_rows(path)
    _require_columns(rows, REQUIRED_SERIES_COLUMNS, path)

    grouped: dict[str, list[TimeSeriesPoint]] = defaultdict(list)
    errors: list[tuple[int, str, str]] = []

    for i, row in enumerate(rows):
        row_no = i + 1
        try:
            series_id = _req_str(row, "district_id")
            year = _req_int(row, "year")
            value = _req_float(row, "value")
            point = _build(TimeSeriesPoint, "value", year=year, value=value)
        except _RowError as exc:
            errors.append((row_no, exc.field, exc.message))
            continue
        grouped[series_id].append(point)

    _raise_row_errors(errors, path)

    series = {sid: sorted(points, key=lambda p: p.year) for sid, points in grouped.items()}
    logger.info(
        "Loaded %d migration series (%d points) from %s",
        len(series), sum(len(p) for p in series.values()), Path(path).name,
    )
    return series


def build_context(
    districts: list[District],
    series: dict[str, list[TimeSeriesPoint]],
    config: Optional[ScoringConfig] = None,
) -> AnalyticsContext:
    """Freeze loaded data into the shared :class:`AnalyticsContext`.

    Weights are validated and normalisation ranges computed here, once, so
    every later scoring call reads the same immutable context.

    Raises:
        ConfigurationError:    Weights don't sum to 1.0.
        InsufficientDataError: ``districts`` is empty.
        UnknownIndicatorError: No district carries a weighted category.
    """
    cfg = config or ScoringConfig()
    validate_weights(cfg.weights, cfg.weight_tolerance)
    ranges = compute_ranges(districts, cfg.weights)
    return AnalyticsContext(
        districts=tuple(districts),
        ranges=ranges,
        weights=MappingProxyType(dict(cfg.weights)),
        series=MappingProxyType({sid: tuple(points) for sid, points in series.items()}),
    )


def load_context(config: AppConfig) -> AnalyticsContext:
    """Load both configured datasets and build the context."""
    districts = load_districts(resolve_data_path(config.data.districts_file))
    series = load_migration_series(resolve_data_path(config.data.migration_file))
    return build_context(districts, series, config.scoring)


def resolve_data_path(path: str | Path) -> Path:
    """Resolve a configured data path.

    Absolute paths and paths that exist relative to the working directory
    are used as-is; anything else is taken relative to the project root.
    """
    p = Path(path)
    if p.is_absolute() or p.exists():
        return p
    return _find_project_root() / p


def read_rows(path: Path) -> list[dict[str, Any]]:
    """Read a CSV, JSON, or Parquet file into a list of row dicts."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValidationError(
            f"Unsupported data format '{suffix}' for {path.name}; "
            f"expected one of {list(SUPPORTED_SUFFIXES)}.",
            field="path",
        )
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    if suffix == ".parquet":
        return pq.read_table(str(path)).to_pylist()

    if suffix == ".json":
        with open(path, encoding="utf-8") as f:
            try:
                payload = json.load(f)
            except json.JSONDecodeError as exc:
                raise ValidationError(
                    f"Invalid JSON in {path.name}: {exc}", field="path"
                ) from exc
        if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
            raise ValidationError(
                f"{path.name} must contain a JSON list of row objects.", field="path"
            )
        return payload

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValidationError(
                f"CSV file is empty or has no header row: {path.name}", field="path"
            )
        return list(reader)


# ── Private helpers ────────────────────────────────────────────────────────────

def _require_columns(rows: list[dict[str, Any]], required: frozenset[str], path: Path) -> None:
    if not rows:
        logger.warning("Data file has no rows: %s", path)
        return
    columns: set[str] = set()
    for row in rows:
        columns.update(row)
    missing = required - columns
    if missing:
        raise ValidationError(
            f"{Path(path).name} missing required columns: {sorted(missing)}. "
            f"Found columns: {sorted(columns)}",
            field=sorted(missing)[0],
        )


def _raise_row_errors(errors: list[tuple[int, str, str]], path: Path) -> None:
    if not errors:
        return
    detail = "\n".join(
        f"  Row {row_no} [{field}]: {msg}" for row_no, field, msg in errors[:_MAX_ERRORS_SHOWN]
    )
    extra = len(errors) - _MAX_ERRORS_SHOWN
    suffix = f"\n  ... and {extra} more" if extra > 0 else ""
    first_row, first_field, _ = errors[0]
    raise ValidationError(
        f"{len(errors)} row(s) failed validation in {Path(path).name}:\n{detail}{suffix}",
        field=f"row {first_row}: {first_field}",
    )


def _row_to_district(row: dict[str, Any]) -> District:
    """Convert one row dict to a validated :class:`District`."""
    district_id = _req_str(row, "district_id")
    name = _req_str(row, "name")

    nested = row.get("indicators")
    if nested is not None and not isinstance(nested, dict):
        raise _RowError("indicators", "'indicators' must be an object of numbers.")
    source = nested if nested is not None else {
        k: v for k, v in row.items() if k not in NON_INDICATOR_COLUMNS
    }

    indicators: dict[str, float] = {}
    for key, raw in source.items():
        value = _opt_float(raw, key)
        if value is not None:
            indicators[key] = value

    return _build(
        District,
        "indicators",
        id=district_id,
        name=name,
        indicators=indicators,
        migration_rate=_opt_float(row.get("migration_rate"), "migration_rate"),
    )


def _build(model: type, default_field: str, **kwargs: Any) -> Any:
    """Instantiate a pydantic model, mapping its error to a _RowError."""
    try:
        return model(**kwargs)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        loc = first.get("loc") or (default_field,)
        raise _RowError(str(loc[0]), first.get("msg", str(exc))) from exc


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _req_str(row: dict[str, Any], key: str) -> str:
    """Return a required string field, stripped; raise if empty."""
    raw = row.get(key)
    if _is_blank(raw):
        raise _RowError(key, f"Required field '{key}' is empty.")
    return str(raw).strip()


def _opt_float(raw: Any, key: str) -> Optional[float]:
    """Parse an optional numeric cell, or None if absent/empty."""
    if _is_blank(raw):
        return None
    if isinstance(raw, bool):
        raise _RowError(key, f"Invalid number for '{key}': {raw!r}.")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise _RowError(key, f"Invalid number for '{key}': {raw!r}.")
    if not math.isfinite(value):
        raise _RowError(key, f"'{key}' must be a finite number, got {raw!r}.")
    return value


def _req_float(row: dict[str, Any], key: str) -> float:
    value = _opt_float(row.get(key), key)
    if value is None:
        raise _RowError(key, f"Required field '{key}' is empty.")
    return value


def _req_int(row: dict[str, Any], key: str) -> int:
    value = _req_float(row, key)
    if not value.is_integer():
        raise _RowError(key, f"'{key}' must be a whole number, got {row.get(key)!r}.")
    return int(value)

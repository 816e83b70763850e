"""
Tests for the district and migration-series loaders.

What we test
------------
1. CSV, JSON (flat and nested), and Parquet district files.
2. Empty indicator cells are left out; migration_rate is optional.
3. Row errors are collected and reported as one ValidationError.
4. Missing columns, duplicate ids, unsupported suffix, missing file.
5. Migration rows grouped by id and sorted by year.
6. build_context freezes ranges and series; load_context reads AppConfig paths.
"""

from __future__ import annotations

import json
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from cityspark.config import AppConfig, DataConfig, ScoringConfig
from cityspark.errors import ConfigurationError, ValidationError
from cityspark.ingestion.loader import (
    build_context,
    load_context,
    load_districts,
    load_migration_series,
    read_rows,
    resolve_data_path,
)

DISTRICT_HEADER = "district_id,name,economic,infrastructure,social,migration_rate\n"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


# ── District CSV ──────────────────────────────────────────────────────────────

def test_load_districts_csv(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.csv", DISTRICT_HEADER
                  + "a,District A,0.91,0.84,0.77,18.4\n"
                  + "b,District B,0.82,0.79,0.64,\n")
    districts = load_districts(path)
    assert [d.id for d in districts] == ["a", "b"]
    assert districts[0].indicators == {"economic": 0.91, "infrastructure": 0.84, "social": 0.77}
    assert districts[0].migration_rate == pytest.approx(18.4)
    assert districts[1].migration_rate is None


def test_empty_indicator_cell_is_omitted(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.csv", DISTRICT_HEADER + "a,A,0.5,,0.3,\n")
    (district,) = load_districts(path)
    assert "infrastructure" not in district.indicators


def test_bundled_dataset_loads() -> None:
    districts = load_districts(resolve_data_path("config/data/districts.csv"))
    assert [d.id for d in districts] == ["a", "b", "c", "d", "e", "f"]


# ── Row and column errors ─────────────────────────────────────────────────────

def test_row_errors_aggregated(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.csv", DISTRICT_HEADER
                  + "a,A,0.5,0.5,0.5,\n"
                  + "b,B,abc,0.5,0.5,\n"
                  + ",C,0.5,0.5,0.5,\n")
    with pytest.raises(ValidationError) as exc_info:
        load_districts(path)
    assert exc_info.value.field == "row 2: economic"
    assert "2 row(s) failed" in exc_info.value.message


def test_duplicate_district_id_is_row_error(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.csv", DISTRICT_HEADER
                  + "a,A,0.5,0.5,0.5,\n"
                  + "a,A2,0.6,0.6,0.6,\n")
    with pytest.raises(ValidationError) as exc_info:
        load_districts(path)
    assert exc_info.value.field == "row 2: district_id"


def test_negative_migration_rate_is_row_error(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.csv", DISTRICT_HEADER + "a,A,0.5,0.5,0.5,-3\n")
    with pytest.raises(ValidationError) as exc_info:
        load_districts(path)
    assert exc_info.value.field == "row 1: migration_rate"


def test_missing_required_column(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.csv", "district_id,economic\na,0.5\n")
    with pytest.raises(ValidationError) as exc_info:
        load_districts(path)
    assert exc_info.value.field == "name"


def test_unsupported_suffix(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.xlsx", "")
    with pytest.raises(ValidationError) as exc_info:
        read_rows(path)
    assert exc_info.value.field == "path"


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_districts(tmp_path / "nope.csv")


def test_invalid_json(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.json", "{not json")
    with pytest.raises(ValidationError):
        load_districts(path)


def test_json_must_be_list_of_objects(tmp_path: Path) -> None:
    path = _write(tmp_path / "districts.json", json.dumps({"district_id": "a"}))
    with pytest.raises(ValidationError):
        load_districts(path)


# ── JSON / Parquet ────────────────────────────────────────────────────────────

def test_load_districts_nested_json(tmp_path: Path) -> None:
    rows = [
        {"district_id": "a", "name": "A", "migration_rate": 12.0,
         "indicators": {"economic": 0.4, "infrastructure": 0.5, "social": 0.6}},
        {"district_id": "b", "name": "B", "economic": 0.7, "infrastructure": 0.2, "social": 0.1},
    ]
    path = _write(tmp_path / "districts.json", json.dumps(rows))
    districts = load_districts(path)
    assert districts[0].indicators["social"] == pytest.approx(0.6)
    assert districts[1].indicators["economic"] == pytest.approx(0.7)
    assert districts[1].migration_rate is None


def test_load_districts_parquet(tmp_path: Path) -> None:
    table = pa.Table.from_pylist([
        {"district_id": "a", "name": "A", "economic": 0.9, "infrastructure": 0.8,
         "social": 0.7, "migration_rate": 18.0},
        {"district_id": "b", "name": "B", "economic": 0.1, "infrastructure": 0.2,
         "social": 0.3, "migration_rate": None},
    ])
    path = tmp_path / "districts.parquet"
    pq.write_table(table, str(path))
    districts = load_districts(path)
    assert [d.id for d in districts] == ["a", "b"]
    assert districts[1].migration_rate is None


# ── Migration series ──────────────────────────────────────────────────────────

def test_migration_series_grouped_and_sorted(tmp_path: Path) -> None:
    path = _write(tmp_path / "series.csv", "district_id,year,value\n"
                  "national,2021,110\n"
                  "a,2020,5\n"
                  "national,2020,100\n"
                  "a,2021,6\n")
    series = load_migration_series(path)
    assert set(series) == {"national", "a"}
    assert [(p.year, p.value) for p in series["national"]] == [(2020, 100.0), (2021, 110.0)]


def test_fractional_year_is_row_error(tmp_path: Path) -> None:
    path = _write(tmp_path / "series.csv", "district_id,year,value\nnational,2020.5,100\n")
    with pytest.raises(ValidationError) as exc_info:
        load_migration_series(path)
    assert exc_info.value.field == "row 1: year"


def test_negative_series_value_is_row_error(tmp_path: Path) -> None:
    path = _write(tmp_path / "series.csv", "district_id,year,value\nnational,2020,-1\n")
    with pytest.raises(ValidationError) as exc_info:
        load_migration_series(path)
    assert exc_info.value.field == "row 1: value"


# ── Context ───────────────────────────────────────────────────────────────────

def test_build_context_is_read_only(sample_districts, national_series) -> None:
    ctx = build_context(sample_districts, {"national": national_series})
    assert ctx.district_ids == ["a", "b", "c", "d", "e", "f"]
    assert ctx.ranges["economic"].max_value == pytest.approx(0.91)
    assert len(ctx.series_for("national")) == 6
    with pytest.raises(TypeError):
        ctx.weights["economic"] = 1.0  # type: ignore[index]


def test_build_context_rejects_bad_weights(sample_districts) -> None:
    cfg = ScoringConfig(weights={"economic": 0.5, "infrastructure": 0.5, "social": 0.5})
    with pytest.raises(ConfigurationError):
        build_context(sample_districts, {}, cfg)


def test_load_context_from_config_paths(tmp_path: Path) -> None:
    districts = _write(tmp_path / "d.csv", DISTRICT_HEADER
                       + "a,A,0.9,0.8,0.7,10\n"
                       + "b,B,0.1,0.2,0.3,5\n")
    series = _write(tmp_path / "s.csv", "district_id,year,value\n"
                    + "".join(f"national,{2018 + i},{100 + i}\n" for i in range(5)))
    cfg = AppConfig(data=DataConfig(districts_file=str(districts), migration_file=str(series)))
    ctx = load_context(cfg)
    assert ctx.district("b").name == "B"
    assert len(ctx.series_for("national")) == 5

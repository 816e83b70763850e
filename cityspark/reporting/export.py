"""
Export helpers for spreadsheets, BI tools, and manual analysis.

All functions write to disk and return the written ``Path``.
They accept generic ``list[dict]`` data to stay decoupled from
specific report shapes.

CSV and Parquet exports are flat (no nested dicts) so they load directly in
Power BI, Excel, or pandas without any pre-processing step.

The ``flatten_*`` functions are the adapters: each converts one engine
result into flat rows with every nested component as a separate column.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from cityspark.models.forecast import ForecastResult
from cityspark.models.scoring import CompositeScoreResult
from cityspark.models.simulation import SimulationResult


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file.

    Args:
        data: Dict or list to serialise.
        path: Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def export_to_parquet(records: list[dict], path: Path) -> Path:
    """Write flat ``records`` to a Parquet file (schema inferred by pyarrow)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(pa.Table.from_pylist(records), str(path))
    return path


def export_records(records: list[dict], path: Path) -> Path:
    """Write flat records in the format implied by the file suffix.

    ``.json`` → JSON list, ``.parquet`` → Parquet, anything else → CSV.
    """
    suffix = path.suffix.lower()
    if suffix == ".json":
        return export_to_json(records, path)
    if suffix == ".parquet":
        return export_to_parquet(records, path)
    return export_to_csv(records, path)


def flatten_ranking_for_export(ranked: list[CompositeScoreResult]) -> list[dict]:
    """One row per district with each normalised indicator as ``ind_<name>``.

    Each row contains:
    - ``rank``, ``district_id``, ``district_name``, ``score``, ``risk_category``
    - ``ind_<category>`` for every indicator in the breakdown
    """
    rows: list[dict] = []
    for r in ranked:
        row = {
            "rank":          r.rank,
            "district_id":   r.district_id,
            "district_name": r.district_name,
            "score":         round(r.score, 6),
            "risk_category": r.risk_category.value,
        }
        for iv in r.indicator_breakdown:
            row[f"ind_{iv.name}"] = iv.normalized_value
        rows.append(row)
    return rows


def flatten_forecast_for_export(result: ForecastResult, series_id: str = "") -> list[dict]:
    """One row per forecast year, with band width and the fit diagnostics.

    Diagnostics and model order repeat on every row so a single flat file
    carries the full provenance of each point.
    """
    p, d, q = result.order
    diag = result.diagnostics
    return [
        {
            "series_id":      series_id,
            "year":           y.year,
            "forecast":       round(y.forecast, 4),
            "lower_bound":    round(y.lower_bound, 4),
            "upper_bound":    round(y.upper_bound, 4),
            "band_width":     round(y.upper_bound - y.lower_bound, 4),
            "growth_pct":     None if y.growth_pct is None else round(y.growth_pct, 4),
            "order":          f"({p},{d},{q})",
            "confidence_pct": result.confidence_pct,
            "rmse":           diag.rmse,
            "mae":            diag.mae,
            "aic":            diag.aic,
            "validation":     diag.validation,
        }
        for y in result.yearly_breakdown
    ]


def flatten_simulation_for_export(result: SimulationResult) -> list[dict]:
    """One row per trajectory year plus the simulation-level totals.

    Budget lines are spread into ``budget_<lever>`` columns.
    """
    budget = {f"budget_{b.lever.value}": b.amount for b in result.budget_breakdown}
    return [
        {
            "year":            c.year,
            "baseline":        round(c.baseline, 4),
            "projected":       round(c.projected, 4),
            "reduction_pct":   result.reduction_pct,
            "best_case":       result.best_case,
            "worst_case":      result.worst_case,
            "confidence":      result.confidence,
            **budget,
        }
        for c in result.trajectory_comparison
    ]

"""
District ranker: scores a whole population, orders it deterministically, and
derives the dashboard aggregates.

Usage flow
----------
1. score_population(districts, weights, ranges, config)
   -> list[CompositeScoreResult]  (ranked, rank 1 = most imbalanced)

2. top_n(ranked, n=5)
   -> list[CompositeScoreResult]  (dashboard "top districts")

3. national_average(ranked)
   -> float  (mean composite score)

Ordering contract
-----------------
Primary key: score descending.  Secondary key: district id ascending.
The order is a strict total order over distinct ids, so pagination and
tests see the same sequence on every run.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from typing import Optional

from cityspark.config import ScoringConfig
from cityspark.errors import InsufficientDataError, ValidationError
from cityspark.models.district import District
from cityspark.models.scoring import CompositeScoreResult, NormalizationRange
from cityspark.scoring.scorer import score_district
from cityspark.taxonomy.indicator_taxonomy import RiskCategory

log = logging.getLogger(__name__)


def rank_districts(results: list[CompositeScoreResult]) -> list[CompositeScoreResult]:
    """Order results by score descending, ties by district id ascending.

    Returns new result objects with 1-based ``rank`` set; inputs are not
    modified.

    Raises:
        ValidationError: If two results share a district id (the order would
            no longer be total).
    """
    ids = Counter(r.district_id for r in results)
    duplicates = sorted(i for i, n in ids.items() if n > 1)
    if duplicates:
        raise ValidationError(
            f"Duplicate district ids in ranking input: {duplicates}.",
            field="district_id",
        )

    ordered = sorted(results, key=lambda r: (-r.score, r.district_id))
    return [
        r.model_copy(update={"rank": position})
        for position, r in enumerate(ordered, start=1)
    ]


def score_population(
    districts: list[District],
    weights: Mapping[str, float],
    ranges: Mapping[str, NormalizationRange],
    config: Optional[ScoringConfig] = None,
) -> list[CompositeScoreResult]:
    """Score and rank every district.

    Any district failing to score aborts the whole call. A ranking over a
    silently reduced population would misstate every rank.
    """
    results = [score_district(d, weights, ranges, config) for d in districts]
    ranked = rank_districts(results)
    log.info(
        "Scored %d districts | high=%d | medium=%d | low=%d",
        len(ranked),
        sum(1 for r in ranked if r.risk_category == RiskCategory.HIGH),
        sum(1 for r in ranked if r.risk_category == RiskCategory.MEDIUM),
        sum(1 for r in ranked if r.risk_category == RiskCategory.LOW),
    )
    return ranked


def top_n(ranked: list[CompositeScoreResult], n: int = 5) -> list[CompositeScoreResult]:
    """Return the first ``n`` ranked results (all of them if fewer)."""
    if n < 0:
        raise ValidationError(f"n must be >= 0, got {n}.", field="n")
    return ranked[:n]


def national_average(results: list[CompositeScoreResult]) -> float:
    """Mean composite score across the population."""
    if not results:
        raise InsufficientDataError(
            "Cannot average an empty set of scores.", field="results"
        )
    return sum(r.score for r in results) / len(results)


def risk_distribution(results: list[CompositeScoreResult]) -> dict[RiskCategory, int]:
    """Count of districts per risk category (every category present)."""
    counts = {category: 0 for category in RiskCategory}
    for r in results:
        counts[r.risk_category] += 1
    return counts

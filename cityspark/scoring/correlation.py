"""
Score ↔ migration correlation.

Pearson's r between composite imbalance scores and observed out-migration
rates answers "do more imbalanced districts actually lose more people?".
A strong positive r is the evidence that justifies using the score to
target interventions.

r is undefined with fewer than two pairs or when either series is constant;
both cases raise ``InsufficientDataError`` instead of returning NaN.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from cityspark.errors import InsufficientDataError, ValidationError
from cityspark.models.district import District
from cityspark.models.scoring import CompositeScoreResult, ScatterPoint


def correlation(scores: Sequence[float], migration_rates: Sequence[float]) -> float:
    """Pearson correlation coefficient of paired observations.

    Args:
        scores:          Composite scores.
        migration_rates: Observed migration rates, paired by position.

    Returns:
        r in [-1, 1].

    Raises:
        ValidationError:       The two sequences differ in length.
        InsufficientDataError: Fewer than 2 pairs, or zero variance in either.
    """
    if len(scores) != len(migration_rates):
        raise ValidationError(
            f"scores ({len(scores)}) and migration_rates ({len(migration_rates)}) "
            "must be paired one-to-one.",
            field="migration_rates",
        )
    n = len(scores)
    if n < 2:
        raise InsufficientDataError(
            f"Correlation needs at least 2 paired observations, got {n}.",
            field="scores",
        )

    mean_x = math.fsum(scores) / n
    mean_y = math.fsum(migration_rates) / n
    dx = [x - mean_x for x in scores]
    dy = [y - mean_y for y in migration_rates]

    var_x = math.fsum(d * d for d in dx)
    var_y = math.fsum(d * d for d in dy)
    if var_x == 0.0:
        raise InsufficientDataError(
            "Correlation undefined: scores have zero variance.", field="scores"
        )
    if var_y == 0.0:
        raise InsufficientDataError(
            "Correlation undefined: migration rates have zero variance.",
            field="migration_rates",
        )

    cov = math.fsum(a * b for a, b in zip(dx, dy))
    r = cov / math.sqrt(var_x * var_y)
    return max(-1.0, min(1.0, r))


def scatter_points(
    results: list[CompositeScoreResult],
    districts: list[District],
) -> list[ScatterPoint]:
    """Pair each scored district with its observed migration rate.

    Districts without a ``migration_rate`` are left out.  Points are
    returned in district-id order.
    """
    rates = {d.id: d.migration_rate for d in districts}
    points = [
        ScatterPoint(district_id=r.district_id, imbalance=r.score, migration=rate)
        for r in results
        if (rate := rates.get(r.district_id)) is not None
    ]
    return sorted(points, key=lambda p: p.district_id)


def score_migration_correlation(
    results: list[CompositeScoreResult],
    districts: list[District],
) -> float:
    """Pearson r over every district that has both a score and a migration rate."""
    points = scatter_points(results, districts)
    return correlation(
        [p.imbalance for p in points],
        [p.migration for p in points],
    )

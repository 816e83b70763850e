"""
Composite imbalance scoring for a single district.

Score formula (weighted sum, range 0–1)
---------------------------------------
    score = Σ  weight_c * normalize(raw_c, min_c, max_c)
            c

with the canonical weights

    economic        0.40   # unemployed / employed ratio
    infrastructure  0.35   # facilities, schools, night-light intensity
    social          0.25   # education quality, health access

Normalisation
-------------
Min-max scaling against the population range, clamped to [0, 1].  A flat
indicator (``min == max``) carries no information about relative imbalance,
so every district gets the neutral 0.5 for it instead of a division by zero.

Categories listed in ``ScoringConfig.inverted_indicators`` are scored as
``1 - normalized``: a high raw value there means *less* imbalance.

Risk categories
---------------
    1. HIGH   : score >= 0.80
    2. MEDIUM : score >= 0.65
    3. LOW    : everything else

Thresholds come from ``ScoringConfig`` so they can be audited in one place.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from cityspark.config import ScoringConfig
from cityspark.errors import ConfigurationError, UnknownIndicatorError
from cityspark.models.district import District
from cityspark.models.scoring import (
    CompositeScoreResult,
    IndicatorValue,
    NormalizationRange,
)
from cityspark.taxonomy.indicator_taxonomy import RiskCategory

NEUTRAL_NORMALIZED_VALUE = 0.5


def normalize(value: float, min_value: float, max_value: float) -> float:
    """Min-max normalise ``value`` into [0, 1].

    Returns 0.5 when ``min_value == max_value``.
    """
    if max_value == min_value:
        return NEUTRAL_NORMALIZED_VALUE
    return _clamp((value - min_value) / (max_value - min_value), 0.0, 1.0)


def validate_weights(weights: Mapping[str, float], tolerance: float = 1e-6) -> None:
    """Raise ``ConfigurationError`` unless weights are non-negative and sum to 1.0."""
    if not weights:
        raise ConfigurationError("Indicator weights must not be empty.", field="weights")
    negative = sorted(name for name, w in weights.items() if w < 0)
    if negative:
        raise ConfigurationError(
            f"Indicator weights must be non-negative; offending: {negative}.",
            field="weights",
        )
    total = sum(weights.values())
    if abs(total - 1.0) > tolerance:
        raise ConfigurationError(
            f"Indicator weights must sum to 1.0 (±{tolerance}), got {total:.6f}.",
            field="weights",
        )


def classify_risk(
    score: float,
    high_threshold: float = 0.80,
    medium_threshold: float = 0.65,
) -> RiskCategory:
    """Map a composite score to its risk bucket (first match wins)."""
    if score >= high_threshold:
        return RiskCategory.HIGH
    if score >= medium_threshold:
        return RiskCategory.MEDIUM
    return RiskCategory.LOW


def score_district(
    district: District,
    weights: Mapping[str, float],
    ranges: Mapping[str, NormalizationRange],
    config: Optional[ScoringConfig] = None,
) -> CompositeScoreResult:
    """Compute the composite imbalance score for one district.

    The whole input is validated before anything is computed, so a failure
    never leaves a partially-filled result behind.

    Args:
        district: The district to score.
        weights:  Indicator category → weight (must sum to 1.0).
        ranges:   Population ranges per category (from ``compute_ranges``).
        config:   Thresholds, tolerance, and inverted indicators.
                  Defaults to ``ScoringConfig()``.

    Returns:
        ``CompositeScoreResult`` with ``rank=None`` (ranking needs the whole
        population; see ``ranker.rank_districts``).

    Raises:
        ConfigurationError:    Weights don't sum to 1.0, or a weighted
                               category has no normalisation range.
        UnknownIndicatorError: The district lacks a weighted category.
    """
    cfg = config or ScoringConfig()
    validate_weights(weights, cfg.weight_tolerance)

    missing_ranges = [c for c in weights if c not in ranges]
    if missing_ranges:
        raise ConfigurationError(
            f"No normalisation range for weighted indicator(s) {missing_ranges}.",
            field="ranges",
        )

    for category in weights:
        if category not in district.indicators:
            raise UnknownIndicatorError(
                f"District '{district.id}' has no value for weighted indicator '{category}'.",
                field=category,
            )

    inverted = set(cfg.inverted_indicators)
    breakdown: list[IndicatorValue] = []
    total = 0.0
    for category, weight in weights.items():
        rng = ranges[category]
        normalized = normalize(district.indicators[category], rng.min_value, rng.max_value)
        if category in inverted and not rng.is_flat:
            normalized = 1.0 - normalized
        breakdown.append(
            IndicatorValue(name=category, normalized_value=round(normalized, 6), weight=weight)
        )
        total += normalized * weight

    # Weights may sum to 1 ± tolerance; keep the score inside [0, 1].
    score = _clamp(total, 0.0, 1.0)

    return CompositeScoreResult(
        district_id=district.id,
        district_name=district.name,
        score=score,
        risk_category=classify_risk(score, cfg.high_threshold, cfg.medium_threshold),
        indicator_breakdown=tuple(breakdown),
    )


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))

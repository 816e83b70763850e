"""
Tests for composite scoring of a single district.

What we test
------------
1. normalize(): endpoints, flat range, clamping.
2. Worked example: 0.82 / 0.79 / 0.64 with 0.40 / 0.35 / 0.25 → 0.7645.
3. Risk classification: canonical thresholds and a configured override.
4. Weight validation: ConfigurationError on a bad sum or negative weight.
5. Missing indicator → UnknownIndicatorError naming the category.
6. Inverted indicators and flat ranges.
7. Score always in [0, 1].
"""

from __future__ import annotations

from types import MappingProxyType

import pytest

from cityspark.config import ScoringConfig
from cityspark.errors import ConfigurationError, UnknownIndicatorError
from cityspark.models.district import District
from cityspark.models.scoring import NormalizationRange
from cityspark.scoring.scorer import (
    NEUTRAL_NORMALIZED_VALUE,
    classify_risk,
    normalize,
    score_district,
    validate_weights,
)
from cityspark.taxonomy.indicator_taxonomy import RiskCategory


def _district(economic: float, infrastructure: float, social: float, did: str = "b") -> District:
    return District(
        id=did,
        name=f"District {did}",
        indicators={"economic": economic, "infrastructure": infrastructure, "social": social},
    )


# ── normalize ─────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("lo,hi", [(0.0, 1.0), (-5.0, 5.0), (10.0, 250.0)])
def test_normalize_endpoints(lo: float, hi: float) -> None:
    assert normalize(lo, lo, hi) == 0.0
    assert normalize(hi, lo, hi) == 1.0


def test_normalize_midpoint() -> None:
    assert normalize(5.0, 0.0, 10.0) == pytest.approx(0.5)


def test_normalize_flat_range_is_neutral() -> None:
    assert normalize(3.0, 3.0, 3.0) == NEUTRAL_NORMALIZED_VALUE == 0.5


def test_normalize_clamps_out_of_range_values() -> None:
    assert normalize(-1.0, 0.0, 1.0) == 0.0
    assert normalize(2.0, 0.0, 1.0) == 1.0


# ── Worked example ────────────────────────────────────────────────────────────

def test_worked_example_composite(weights, unit_ranges) -> None:
    result = score_district(_district(0.82, 0.79, 0.64), weights, unit_ranges)
    assert result.score == pytest.approx(0.7645)
    assert result.rank is None
    assert [iv.name for iv in result.indicator_breakdown] == [
        "economic", "infrastructure", "social",
    ]


def test_worked_example_is_medium_under_canonical_thresholds(weights, unit_ranges) -> None:
    result = score_district(_district(0.82, 0.79, 0.64), weights, unit_ranges)
    assert result.risk_category == RiskCategory.MEDIUM


def test_worked_example_is_high_with_lowered_high_threshold(weights, unit_ranges) -> None:
    cfg = ScoringConfig(high_threshold=0.70)
    result = score_district(_district(0.82, 0.79, 0.64), weights, unit_ranges, cfg)
    assert result.risk_category == RiskCategory.HIGH


def test_breakdown_contributions_sum_to_score(weights, unit_ranges) -> None:
    result = score_district(_district(0.82, 0.79, 0.64), weights, unit_ranges)
    total = sum(iv.contribution for iv in result.indicator_breakdown)
    assert total == pytest.approx(result.score, abs=1e-6)


# ── Risk classification ───────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "score,expected",
    [
        (0.95, RiskCategory.HIGH),
        (0.80, RiskCategory.HIGH),
        (0.7999, RiskCategory.MEDIUM),
        (0.65, RiskCategory.MEDIUM),
        (0.6499, RiskCategory.LOW),
        (0.0, RiskCategory.LOW),
    ],
)
def test_classify_risk_boundaries(score: float, expected: RiskCategory) -> None:
    assert classify_risk(score) == expected


# ── Weight validation ─────────────────────────────────────────────────────────

def test_validate_weights_accepts_canonical(weights) -> None:
    validate_weights(weights)


def test_weights_not_summing_to_one_raise(unit_ranges) -> None:
    bad = {"economic": 0.5, "infrastructure": 0.35, "social": 0.25}
    with pytest.raises(ConfigurationError) as exc_info:
        score_district(_district(0.5, 0.5, 0.5), bad, unit_ranges)
    assert exc_info.value.field == "weights"
    assert exc_info.value.kind == "configuration_error"


def test_negative_weight_raises() -> None:
    with pytest.raises(ConfigurationError):
        validate_weights({"economic": 1.2, "social": -0.2})


def test_empty_weights_raise() -> None:
    with pytest.raises(ConfigurationError):
        validate_weights({})


def test_missing_range_raises_configuration_error(weights) -> None:
    ranges = MappingProxyType({
        "economic": NormalizationRange(indicator="economic", min_value=0.0, max_value=1.0),
    })
    with pytest.raises(ConfigurationError) as exc_info:
        score_district(_district(0.5, 0.5, 0.5), weights, ranges)
    assert exc_info.value.field == "ranges"


# ── Missing indicator ─────────────────────────────────────────────────────────

def test_missing_indicator_raises_unknown_indicator(weights, unit_ranges) -> None:
    district = District(id="x", name="X", indicators={"economic": 0.5, "social": 0.5})
    with pytest.raises(UnknownIndicatorError) as exc_info:
        score_district(district, weights, unit_ranges)
    assert exc_info.value.field == "infrastructure"
    assert exc_info.value.kind == "unknown_indicator"


# ── Inversion and flat ranges ─────────────────────────────────────────────────

def test_inverted_indicator_scores_one_minus_normalized(weights, unit_ranges) -> None:
    cfg = ScoringConfig(inverted_indicators=["social"])
    result = score_district(_district(0.0, 0.0, 0.2), weights, unit_ranges, cfg)
    social = next(iv for iv in result.indicator_breakdown if iv.name == "social")
    assert social.normalized_value == pytest.approx(0.8)
    assert result.score == pytest.approx(0.25 * 0.8)


def test_flat_range_contributes_neutral_half(weights) -> None:
    ranges = MappingProxyType({
        "economic":       NormalizationRange(indicator="economic", min_value=0.0, max_value=1.0),
        "infrastructure": NormalizationRange(indicator="infrastructure", min_value=0.0, max_value=1.0),
        "social":         NormalizationRange(indicator="social", min_value=0.7, max_value=0.7),
    })
    result = score_district(_district(1.0, 1.0, 0.7), weights, ranges)
    assert result.score == pytest.approx(0.40 + 0.35 + 0.25 * 0.5)


# ── Score range ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "values",
    [(0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (0.3, 0.9, 0.1), (5.0, -3.0, 0.5)],
)
def test_score_always_in_unit_interval(weights, unit_ranges, values) -> None:
    result = score_district(_district(*values), weights, unit_ranges)
    assert 0.0 <= result.score <= 1.0


def test_all_maximal_indicators_score_exactly_one(weights, unit_ranges) -> None:
    result = score_district(_district(1.0, 1.0, 1.0), weights, unit_ranges)
    assert result.score == pytest.approx(1.0)
    assert result.risk_category == RiskCategory.HIGH

"""
Composite imbalance score models.

``NormalizationRange`` is the population ``(min, max)`` of one indicator.
``CompositeScoreResult`` is the scoring engine's per-district output; its
``rank`` is ``None`` until the ranker has ordered the whole population.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from cityspark.taxonomy.indicator_taxonomy import RiskCategory


class NormalizationRange(BaseModel):
    """Population range of one indicator.

    ``min_value == max_value`` is allowed (a flat indicator); the scorer maps
    every value of such an indicator to the neutral 0.5.
    """

    model_config = ConfigDict(frozen=True)

    indicator: str
    min_value: float
    max_value: float

    @model_validator(mode="after")
    def validate_bounds(self) -> "NormalizationRange":
        if self.min_value > self.max_value:
            raise ValueError(
                f"min_value ({self.min_value}) must be <= max_value ({self.max_value}) "
                f"for indicator '{self.indicator}'."
            )
        return self

    @property
    def is_flat(self) -> bool:
        return self.min_value == self.max_value


class IndicatorValue(BaseModel):
    """One ``(name, normalized_value)`` entry of a score breakdown."""

    model_config = ConfigDict(frozen=True)

    name: str
    normalized_value: float
    weight: float

    @property
    def contribution(self) -> float:
        return self.normalized_value * self.weight


class CompositeScoreResult(BaseModel):
    """Composite imbalance score for one district.

    Attributes:
        district_id: District identifier.
        district_name: District display name.
        score: Weighted sum of normalized indicators, in ``[0, 1]``.
        rank: 1-based rank within the population (score desc, id asc),
            or ``None`` before ranking.
        risk_category: ``Low``, ``Medium``, or ``High``.
        indicator_breakdown: Normalized indicators in weight-config order.
    """

    model_config = ConfigDict(frozen=True)

    district_id: str
    district_name: str
    score: float
    rank: Optional[int] = None
    risk_category: RiskCategory
    indicator_breakdown: tuple[IndicatorValue, ...] = ()

    @field_validator("score")
    @classmethod
    def validate_score_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"score must be in [0, 1], got {v}.")
        return v

    @field_validator("rank")
    @classmethod
    def validate_rank(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError(f"rank must be >= 1, got {v}.")
        return v


class ScatterPoint(BaseModel):
    """A ``(score, migration_rate)`` pair behind the correlation coefficient."""

    model_config = ConfigDict(frozen=True)

    district_id: str
    imbalance: float
    migration: float

"""
District and time-series input models.

``District`` carries one district's raw indicator values, keyed by indicator
category (``"economic"``, ``"infrastructure"``, ``"social"``), plus an
optional observed out-migration rate used for the score ↔ migration
correlation.

``TimeSeriesPoint`` is one ``(year, value)`` observation of a migration
series.  Ordering and gap checks happen in the forecast engine, which raises
``DataOrderError``; this model only guards the shape of a single point.

Both models are frozen: a district is immutable once loaded for an analysis.
"""

from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class District(BaseModel):
    """One district's raw socioeconomic indicators.

    Attributes:
        id: Stable district identifier (ranking tie-breaker).
        name: Human-readable district name.
        indicators: Indicator category → raw numeric value.
        migration_rate: Observed out-migration per 1,000 residents, or ``None``
            if not available.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    indicators: dict[str, float]
    migration_rate: Optional[float] = None

    @field_validator("id", "name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty.")
        return v.strip()

    @field_validator("indicators")
    @classmethod
    def validate_indicator_values(cls, v: dict[str, float]) -> dict[str, float]:
        for name, value in v.items():
            if not math.isfinite(value):
                raise ValueError(f"Indicator '{name}' must be a finite number, got {value}.")
        return v

    @field_validator("migration_rate")
    @classmethod
    def validate_migration_rate(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and (not math.isfinite(v) or v < 0):
            raise ValueError("migration_rate must be a non-negative finite number.")
        return v


class TimeSeriesPoint(BaseModel):
    """A single yearly observation of a migration series."""

    model_config = ConfigDict(frozen=True)

    year: int
    value: float

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError(f"value must be a non-negative finite number, got {v}.")
        return v

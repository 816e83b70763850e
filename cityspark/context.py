"""
Immutable analytics context.

Built once at process start (``ingestion.loader.build_context``) and passed
explicitly into every engine call.  Nothing in it is mutated after
construction: districts and series are tuples, and the lookup maps are
``MappingProxyType`` views, so concurrent readers need no locking and tests
can swap in a fixture context without touching process-wide state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from cityspark.errors import InsufficientDataError, ValidationError
from cityspark.models.district import District, TimeSeriesPoint
from cityspark.models.scoring import NormalizationRange


@dataclass(frozen=True)
class AnalyticsContext:
    """Read-only inputs shared by all engine calls.

    Attributes:
        districts: Full district population, in load order.
        ranges:    Population normalisation range per weighted indicator.
        weights:   Indicator category → weight (sums to 1.0).
        series:    Series id (district id or the national id) → yearly points.
    """

    districts: tuple[District, ...]
    ranges: Mapping[str, NormalizationRange]
    weights: Mapping[str, float]
    series: Mapping[str, tuple[TimeSeriesPoint, ...]]

    def district(self, district_id: str) -> District:
        """Look up one district by id."""
        for d in self.districts:
            if d.id == district_id:
                return d
        raise ValidationError(
            f"Unknown district '{district_id}'.", field="district_id"
        )

    def series_for(self, series_id: str) -> tuple[TimeSeriesPoint, ...]:
        """Historical migration series for a district (or the national id)."""
        points = self.series.get(series_id)
        if points is None:
            raise InsufficientDataError(
                f"No migration series for '{series_id}'.", field="series_id"
            )
        return points

    @property
    def district_ids(self) -> list[str]:
        return [d.id for d in self.districts]

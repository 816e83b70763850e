"""
Shared pytest fixtures for the CitySpark analytics test suite.

Provides:
  - Sample districts mirroring ``config/data/districts.csv``.
  - Unit-range normalisation context (raw value == normalised value), so
    hand-computed composite scores can be asserted directly.
  - The national migration series (2020-2025) and a built
    ``AnalyticsContext`` / ``AnalyticsService``.
  - The canonical 40/25/20/15 lever allocation.
"""

from __future__ import annotations

from types import MappingProxyType

import pytest

from cityspark.config import AppConfig, ScoringConfig
from cityspark.context import AnalyticsContext
from cityspark.ingestion.loader import build_context
from cityspark.models.district import District, TimeSeriesPoint
from cityspark.models.scoring import NormalizationRange
from cityspark.models.simulation import LeverAllocation
from cityspark.service import AnalyticsService

CANONICAL_WEIGHTS = {"economic": 0.40, "infrastructure": 0.35, "social": 0.25}

NATIONAL_SERIES = [
    (2020, 52000), (2021, 56800), (2022, 61200),
    (2023, 65700), (2024, 68900), (2025, 72400),
]


def make_series(pairs: list[tuple[int, float]]) -> list[TimeSeriesPoint]:
    return [TimeSeriesPoint(year=y, value=v) for y, v in pairs]


def make_district(
    district_id: str,
    economic: float,
    infrastructure: float,
    social: float,
    migration_rate: float | None = None,
) -> District:
    return District(
        id=district_id,
        name=f"District {district_id.upper()}",
        indicators={
            "economic": economic,
            "infrastructure": infrastructure,
            "social": social,
        },
        migration_rate=migration_rate,
    )


# ── Scoring fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def weights() -> dict[str, float]:
    return dict(CANONICAL_WEIGHTS)


@pytest.fixture
def unit_ranges() -> MappingProxyType:
    """[0, 1] range for every category: normalize(v) == v."""
    return MappingProxyType({
        c: NormalizationRange(indicator=c, min_value=0.0, max_value=1.0)
        for c in CANONICAL_WEIGHTS
    })


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def sample_districts() -> list[District]:
    return [
        make_district("a", 0.91, 0.84, 0.77, 18.4),
        make_district("b", 0.82, 0.79, 0.64, 15.9),
        make_district("c", 0.74, 0.70, 0.69, 13.2),
        make_district("d", 0.88, 0.81, 0.72, 17.1),
        make_district("e", 0.58, 0.62, 0.55, 9.8),
        make_district("f", 0.79, 0.73, 0.66, 14.6),
    ]


# ── Forecast fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def national_series() -> list[TimeSeriesPoint]:
    return make_series(NATIONAL_SERIES)


# ── Context / service fixtures ────────────────────────────────────────────────

@pytest.fixture
def context(sample_districts, national_series) -> AnalyticsContext:
    return build_context(
        sample_districts,
        {"national": national_series},
        ScoringConfig(),
    )


@pytest.fixture
def service(context) -> AnalyticsService:
    return AnalyticsService(context, AppConfig())


# ── Simulation fixtures ───────────────────────────────────────────────────────

@pytest.fixture
def balanced_allocation() -> LeverAllocation:
    return LeverAllocation(jobs=40, healthcare=25, education=20, infrastructure=15)

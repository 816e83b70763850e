"""
Indicator taxonomy for the composite imbalance score.

Two enums describe the scoring domain:
  - ``IndicatorCategory``: the weighted indicator groups a district carries.
  - ``RiskCategory``:      the bucket a composite score falls into.

Category weights live in configuration (``[scoring.weights]``), not here;
this module only names the categories so that config keys, loader columns,
and report labels agree.

This module has NO imports from any other ``cityspark`` package.
"""

from enum import StrEnum


class IndicatorCategory(StrEnum):
    """Weighted indicator groups feeding the composite score."""

    ECONOMIC = "economic"
    """Economic dependency: ratio of unemployed to employed population."""

    INFRASTRUCTURE = "infrastructure"
    """Healthcare facilities, schools, night-light intensity."""

    SOCIAL = "social"
    """Education quality and health access."""


class RiskCategory(StrEnum):
    """Risk bucket derived from the composite imbalance score."""

    LOW = "Low"
    """Below the medium threshold; routine monitoring."""

    MEDIUM = "Medium"
    """Elevated imbalance; candidate for targeted intervention."""

    HIGH = "High"
    """Severe imbalance; warrants immediate policy intervention."""


INDICATOR_DISPLAY_NAMES: dict[str, str] = {
    IndicatorCategory.ECONOMIC:       "Economic Dependency",
    IndicatorCategory.INFRASTRUCTURE: "Infrastructure Score",
    IndicatorCategory.SOCIAL:         "Social Indicators",
}

"""
Population normalisation ranges.

The ``(min, max)`` of every weighted indicator is computed once across the
full district population and then shared, read-only, by every scoring call.
``compute_ranges`` returns a ``MappingProxyType`` so the context cannot be
mutated after it is built.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from cityspark.errors import InsufficientDataError, UnknownIndicatorError
from cityspark.models.district import District
from cityspark.models.scoring import NormalizationRange

log = logging.getLogger(__name__)

IndicatorRanges = Mapping[str, NormalizationRange]


def compute_ranges(
    districts: list[District],
    categories: Iterable[str],
) -> IndicatorRanges:
    """Compute the population range of each indicator category.

    Districts that lack a category are ignored for that category's range;
    they fail later, at scoring time, with ``UnknownIndicatorError``.

    Args:
        districts:  The full district population.
        categories: Indicator categories to compute (normally the weight keys).

    Returns:
        Read-only mapping of category → ``NormalizationRange``.

    Raises:
        InsufficientDataError: If ``districts`` is empty.
        UnknownIndicatorError: If no district carries one of the categories.
    """
    if not districts:
        raise InsufficientDataError(
            "Cannot compute normalisation ranges from an empty population.",
            field="districts",
        )

    ranges: dict[str, NormalizationRange] = {}
    for category in categories:
        values = [d.indicators[category] for d in districts if category in d.indicators]
        if not values:
            raise UnknownIndicatorError(
                f"No district carries indicator '{category}'.",
                field=category,
            )
        ranges[category] = NormalizationRange(
            indicator=category,
            min_value=min(values),
            max_value=max(values),
        )
        log.debug(
            "Range %s: [%.4f, %.4f] over %d districts",
            category, ranges[category].min_value, ranges[category].max_value, len(values),
        )

    return MappingProxyType(ranges)

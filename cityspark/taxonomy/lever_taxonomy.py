"""
Policy lever taxonomy.

A ``Lever`` is a policy intervention category that can receive a share of a
budget.  The set is fixed: allocations, impact coefficients, and budget
breakdowns are always reported in ``LEVER_ORDER``.

This module has NO imports from any other ``cityspark`` package.
"""

from enum import StrEnum


class Lever(StrEnum):
    """Budget-allocatable intervention category."""

    JOBS = "jobs"
    """Job creation programs; highest marginal impact on out-migration."""

    HEALTHCARE = "healthcare"
    """Primary healthcare infrastructure; reduces push factors."""

    EDUCATION = "education"
    """Education quality; long-term retention benefits."""

    INFRASTRUCTURE = "infrastructure"
    """Physical infrastructure; roads, market access, utilities."""


LEVER_ORDER: tuple[Lever, ...] = (
    Lever.JOBS,
    Lever.HEALTHCARE,
    Lever.EDUCATION,
    Lever.INFRASTRUCTURE,
)

LEVER_DISPLAY_NAMES: dict[Lever, str] = {
    Lever.JOBS:           "Job Creation Programs",
    Lever.HEALTHCARE:     "Healthcare Infrastructure",
    Lever.EDUCATION:      "Education Quality",
    Lever.INFRASTRUCTURE: "Physical Infrastructure",
}

"""
Error taxonomy for the analytics engines.

Every failure raised by the scoring, forecast, and simulation engines is an
``AnalyticsError`` subclass carrying a machine-readable ``kind`` and the
offending ``field`` so the calling layer can translate it into a user-facing
message without parsing strings.

Hierarchy::

    AnalyticsError
    ├── ValidationError            malformed / out-of-range input shape
    │   ├── UnknownIndicatorError  district lacks a weighted indicator
    │   ├── DataOrderError         non-monotonic or gapped time series
    │   ├── AllocationError        lever percentages don't sum to 100
    │   └── InvalidBudgetError     non-positive budget
    ├── ConfigurationError         weights / coefficients misconfigured
    └── InsufficientDataError      too few observations for a result
        └── InsufficientHistoryError   series too short to forecast

Engines never retry: a failure is a function of the input, so re-running the
same call reproduces the same error.

This module has NO imports from any other ``cityspark`` package.
"""

from __future__ import annotations

from typing import Any, Optional


class AnalyticsError(Exception):
    """Base class for all engine failures.

    Attributes:
        kind:    Stable error-kind slug, e.g. ``"allocation_error"``.
        field:   Name of the offending input field, or ``None``.
        message: Human-readable description.
    """

    kind: str = "analytics_error"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        """Structured form for the calling layer (API / CLI)."""
        return {"kind": self.kind, "field": self.field, "message": self.message}

    def __str__(self) -> str:
        if self.field:
            return f"{self.message} (field: {self.field})"
        return self.message


class ValidationError(AnalyticsError):
    kind = "validation_error"


class UnknownIndicatorError(ValidationError):
    kind = "unknown_indicator"


class DataOrderError(ValidationError):
    kind = "data_order_error"


class AllocationError(ValidationError):
    kind = "allocation_error"


class InvalidBudgetError(ValidationError):
    kind = "invalid_budget"


class ConfigurationError(AnalyticsError):
    kind = "configuration_error"


class InsufficientDataError(AnalyticsError):
    kind = "insufficient_data"


class InsufficientHistoryError(InsufficientDataError):
    kind = "insufficient_history"

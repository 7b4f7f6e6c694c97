"""Custom exceptions for the analytics engine.

Only programmer errors raise to callers. Malformed data points are raised by
the parsers and caught at the aligner boundary; short or degenerate series
produce empty results or sentinel values instead of exceptions.
"""

from __future__ import annotations

from typing import Any


class AnalyticsError(Exception):
    """Base analytics exception with a structured error payload."""

    error_code: str = "ANALYTICS_ERROR"
    message: str = "An unexpected analytics error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a problem-style payload."""
        return {
            "error": self.error_code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


class InvalidParameterError(AnalyticsError):
    """A calculator was called with an unusable parameter."""

    error_code = "INVALID_PARAMETER"
    message = "Invalid calculator parameter"


class MalformedPointError(AnalyticsError):
    """A raw observation has an unparseable date or a non-finite value."""

    error_code = "MALFORMED_POINT"
    message = "Malformed observation"

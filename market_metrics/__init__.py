"""
Market Metrics
==============

Pure, UI-independent computations that turn raw (date, value) series into
derived indicators: risk scores, valuation ratios, z-scores, peak
projections and the Market Heat Index composite.

Every function takes full input series and returns newly allocated output.
Nothing is cached or streamed; callers recompute from the full history and
memoize on their side if they need to.
"""

from __future__ import annotations

__version__ = "1.0.0"

from market_metrics.core.exceptions import (
    AnalyticsError,
    InvalidParameterError,
    MalformedPointError,
)
from market_metrics.core.logging import get_logger, setup_logging
from market_metrics.indicators import (
    build_heat_index,
    compute_risk_metric,
    normalize_series,
    to_records,
)


__all__ = [
    "AnalyticsError",
    "InvalidParameterError",
    "MalformedPointError",
    "build_heat_index",
    "compute_risk_metric",
    "get_logger",
    "normalize_series",
    "setup_logging",
    "to_records",
]

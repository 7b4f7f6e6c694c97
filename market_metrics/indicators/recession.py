"""Sahm Rule recession indicator over a monthly unemployment-rate series."""

from __future__ import annotations

import pandas as pd

from ..core.logging import get_logger
from .types import as_values, empty_frame, validate_window


logger = get_logger("indicators.recession")

# Unemployment data before this date is not reliable enough for the rule
SAHM_FLOOR_DATE = pd.Timestamp("1948-12-01")

# Conventional trigger level in percentage points
SAHM_TRIGGER = 0.5


def compute_sahm_rule(
    unemployment: pd.Series,
    floor_date: str | pd.Timestamp = SAHM_FLOOR_DATE,
    lookback_months: int = 12,
    average_months: int = 3,
    trigger: float = SAHM_TRIGGER,
) -> pd.DataFrame:
    """
    Sahm Rule: recent unemployment average minus the trailing-year low.

    For each month with at least ``lookback_months`` months of history
    (counting itself):
        three_month_avg = mean of the last 3 monthly values
        min_trailing_12 = minimum single-month value over the last 12 months
        sahm            = three_month_avg - min_trailing_12

    Args:
        unemployment: Monthly unemployment rate TimeSeries
        floor_date: Observations before this date are ignored
        lookback_months: Months in the trailing minimum
        average_months: Months in the recent average
        trigger: Level at or above which ``triggered`` is True

    Returns:
        DataFrame with columns three_month_avg, min_trailing_12, sahm,
        triggered; empty until enough history exists.
    """
    lookback_months = validate_window(lookback_months, "lookback_months")
    average_months = validate_window(average_months, "average_months")
    columns = ["three_month_avg", "min_trailing_12", "sahm", "triggered"]

    series = unemployment[unemployment.index >= pd.Timestamp(floor_date)]
    first = max(lookback_months, average_months) - 1
    if len(series) <= first:
        logger.debug("Sahm rule needs %d months, got %d", first + 1, len(series))
        frame = empty_frame(columns)
        frame["triggered"] = frame["triggered"].astype(bool)
        return frame

    values = as_values(series)
    avg = pd.Series(values).rolling(average_months).mean().to_numpy(copy=True)
    low = pd.Series(values).rolling(lookback_months).min().to_numpy(copy=True)
    sahm = avg - low

    frame = pd.DataFrame(
        {
            "three_month_avg": avg,
            "min_trailing_12": low,
            "sahm": sahm,
            "triggered": sahm >= trigger,
        },
        index=series.index.copy(),
    )
    return frame.iloc[first:]

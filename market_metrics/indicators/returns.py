"""Return-on-investment and volatility indicators.

Running ROI and historical volatility both look back a number of calendar
days rather than a number of points: for each date the window starts at the
latest earlier point at least ``window_days`` days old. On a gap-free daily
series this is the point ``window_days`` positions back.
"""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from ..core.logging import get_logger
from .types import as_values, empty_frame, validate_window
from .windows import day_numbers, log_returns, population_std, trailing_window_start


logger = get_logger("indicators.returns")

ANNUALIZATION_DAYS = 365


def compute_running_roi(series: pd.Series, window_days: int = 365) -> pd.DataFrame:
    """
    ROI multiplier over a trailing calendar window.

    ``roi[i] = value[i] / value[start]`` where ``start`` is the latest point
    at least ``window_days`` before ``i``. Dates before the window has elapsed
    are omitted; a zero start value gives a multiplier of 1.

    Returns:
        DataFrame with columns value, start_value, roi
    """
    window_days = validate_window(window_days, "window_days")
    columns = ["value", "start_value", "roi"]
    if series.empty:
        return empty_frame(columns)

    values = as_values(series)
    starts = trailing_window_start(day_numbers(series.index), window_days)
    valid = starts >= 0
    if not valid.any():
        logger.debug("Running ROI: fewer than %d days of history", window_days)
        return empty_frame(columns)

    current = values[valid]
    start_values = values[starts[valid]]
    with np.errstate(divide="ignore", invalid="ignore"):
        roi = np.where(start_values != 0, current / start_values, 1.0)

    return pd.DataFrame(
        {"value": current, "start_value": start_values, "roi": roi},
        index=series.index[valid].copy(),
    )


def compute_historical_volatility(series: pd.Series, window_days: int = 60) -> pd.DataFrame:
    """
    Annualized volatility of log returns over a trailing calendar window.

    For each date with a full window, take the log returns between
    consecutive points from the window start to the date, and report
    ``population_std(returns) * sqrt(365) * 100`` (percent). Returns whose
    previous value is zero are skipped.

    Returns:
        DataFrame with columns value, volatility
    """
    window_days = validate_window(window_days, "window_days")
    columns = ["value", "volatility"]
    if series.empty:
        return empty_frame(columns)

    values = as_values(series)
    returns = log_returns(values)
    starts = trailing_window_start(day_numbers(series.index), window_days)

    positions: list[int] = []
    volatility: list[float] = []
    for i, start in enumerate(starts):
        if start < 0:
            continue
        # returns[k] is the return from point k to k + 1
        window_returns = returns[start:i]
        window_returns = window_returns[np.isfinite(window_returns)]
        if len(window_returns) == 0:
            continue
        positions.append(i)
        volatility.append(
            population_std(window_returns) * math.sqrt(ANNUALIZATION_DAYS) * 100
        )

    if not positions:
        return empty_frame(columns)

    return pd.DataFrame(
        {"value": values[positions], "volatility": volatility},
        index=series.index[positions].copy(),
    )


def _monthly_average_prices(series: pd.Series) -> pd.Series:
    """Mean value per (year, month)."""
    grouped = series.groupby([series.index.year, series.index.month]).mean()
    grouped.index.names = ["year", "month"]
    return grouped


def compute_monthly_average_roi(series: pd.Series, months_ahead: int = 12) -> pd.DataFrame:
    """
    Average ROI by calendar month of entry.

    Monthly average prices are computed per (year, month). For every month
    with data, the ROI is the average price ``months_ahead`` months later
    divided by the month's average (skipped when the later month has no
    data). ROIs are then averaged across years for each calendar month; a
    month without any ROI sample reports 1.0.

    Returns:
        DataFrame indexed by month (1-12) with columns avg_roi, samples
    """
    months_ahead = validate_window(months_ahead, "months_ahead")
    averages = _monthly_average_prices(series) if not series.empty else pd.Series(dtype=float)
    lookup = averages.to_dict()

    rois_by_month: dict[int, list[float]] = {m: [] for m in range(1, 13)}
    for (year, month), current in lookup.items():
        offset = (month - 1) + months_ahead
        future_key = (year + offset // 12, offset % 12 + 1)
        future = lookup.get(future_key)
        if future is None:
            continue
        rois_by_month[month].append(future / current if current != 0 else 1.0)

    rows = []
    for month in range(1, 13):
        rois = rois_by_month[month]
        rows.append(
            {
                "month": month,
                "avg_roi": sum(rois) / len(rois) if rois else 1.0,
                "samples": len(rois),
            }
        )
    return pd.DataFrame(rows).set_index("month")


def compute_monthly_returns(series: pd.Series) -> pd.DataFrame:
    """
    Percentage return within each calendar month.

    The return is ``(last - first) / first * 100`` over the month's first and
    last observations (0 when the first value is zero).

    Returns:
        DataFrame indexed by year with columns 1-12; NaN where a month has
        no data.
    """
    columns = list(range(1, 13))
    if series.empty:
        return pd.DataFrame(columns=columns, dtype=float).rename_axis("year")

    grouped = series.groupby([series.index.year, series.index.month])
    first = grouped.first()
    last = grouped.last()
    with np.errstate(divide="ignore", invalid="ignore"):
        pct = np.where(first != 0, (last - first) / first * 100, 0.0)

    monthly = pd.Series(pct, index=first.index)
    monthly.index.names = ["year", "month"]
    table = monthly.unstack("month").reindex(columns=columns)
    table.columns.name = None
    return table

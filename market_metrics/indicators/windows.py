"""Rolling-window primitives with growing-window semantics.

At index ``i`` a window of size ``w`` covers ``values[max(0, i-w+1) .. i]``:
the first ``w-1`` points use a smaller, growing window instead of being
undefined. The Risk Metric, Mayer Multiple and PiCycle values shown
historically were all computed this way, so every primitive here follows it.

All statistics are population statistics (divide by n). The rolling passes
delegate to pandas' incremental window aggregations, which are O(n) in the
series length regardless of the window size.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from .types import validate_window


def _rolling(values: Sequence[float] | np.ndarray, window: int, growing_at_start: bool):
    window = validate_window(window)
    arr = np.asarray(values, dtype=float)
    min_periods = 1 if growing_at_start else window
    return pd.Series(arr).rolling(window, min_periods=min_periods)


def rolling_mean(
    values: Sequence[float] | np.ndarray,
    window: int,
    growing_at_start: bool = True,
) -> np.ndarray:
    """
    Rolling arithmetic mean.

    Args:
        values: Input values (oldest first)
        window: Window size in points
        growing_at_start: If False, the first window-1 entries are NaN

    Returns:
        Array of the same length as ``values``
    """
    if len(values) == 0:
        return np.array([])
    return _rolling(values, window, growing_at_start).mean().to_numpy(copy=True)


def rolling_std(
    values: Sequence[float] | np.ndarray,
    window: int,
    growing_at_start: bool = True,
) -> np.ndarray:
    """Rolling population standard deviation (ddof=0)."""
    if len(values) == 0:
        return np.array([])
    std = _rolling(values, window, growing_at_start).std(ddof=0).to_numpy(copy=True)
    # Constant windows can leave tiny negative variances behind in the
    # incremental update; those are zero
    return np.where(np.isnan(std), std, np.maximum(std, 0.0))


def rolling_min(
    values: Sequence[float] | np.ndarray,
    window: int,
    growing_at_start: bool = True,
) -> np.ndarray:
    """Rolling minimum."""
    if len(values) == 0:
        return np.array([])
    return _rolling(values, window, growing_at_start).min().to_numpy(copy=True)


def rolling_max(
    values: Sequence[float] | np.ndarray,
    window: int,
    growing_at_start: bool = True,
) -> np.ndarray:
    """Rolling maximum."""
    if len(values) == 0:
        return np.array([])
    return _rolling(values, window, growing_at_start).max().to_numpy(copy=True)


def log_returns(values: Sequence[float] | np.ndarray) -> np.ndarray:
    """
    Log returns between consecutive points.

    ``r[k] = ln(values[k+1] / values[k])``. A return whose previous value is
    zero (or which is otherwise undefined) is NaN.
    """
    arr = np.asarray(values, dtype=float)
    if len(arr) < 2:
        return np.array([])
    prev = arr[:-1]
    curr = arr[1:]
    with np.errstate(divide="ignore", invalid="ignore"):
        returns = np.log(curr / prev)
    returns[(prev == 0) | ~np.isfinite(returns)] = np.nan
    return returns


def population_std(values: Sequence[float] | np.ndarray) -> float:
    """Population standard deviation of the finite values (0.0 when none)."""
    arr = np.asarray(values, dtype=float)
    arr = arr[np.isfinite(arr)]
    if len(arr) == 0:
        return 0.0
    return float(np.std(arr))


def rolling_log_return_std(
    values: Sequence[float] | np.ndarray,
    window: int,
    growing_at_start: bool = True,
) -> np.ndarray:
    """
    Rolling population stddev of log returns.

    Entry ``i`` uses the returns ending at ``i`` inside the window
    ``values[max(0, i-window+1) .. i]``; entry 0 has no return and is NaN.
    Undefined returns are skipped rather than poisoning the window.
    """
    arr = np.asarray(values, dtype=float)
    n = len(arr)
    if n == 0:
        return np.array([])
    window = validate_window(window)

    # Returns aligned to the index of their later point
    aligned = np.full(n, np.nan)
    aligned[1:] = log_returns(arr)

    # A window of w points holds at most w-1 returns
    return_window = max(window - 1, 1)
    min_periods = 1 if growing_at_start else return_window
    std = (
        pd.Series(aligned)
        .rolling(return_window, min_periods=min_periods)
        .std(ddof=0)
        .to_numpy(copy=True)
    )
    std[0] = np.nan
    return np.where(np.isnan(std), std, np.maximum(std, 0.0))


def trailing_window_start(day_numbers: np.ndarray, window_days: int) -> np.ndarray:
    """
    For each point, the index of the latest earlier point at least
    ``window_days`` calendar days before it.

    Args:
        day_numbers: Ascending integer day numbers of the points
        window_days: Required elapsed days

    Returns:
        Integer array; -1 where no such point exists yet
    """
    window_days = validate_window(window_days, "window_days")
    days = np.asarray(day_numbers, dtype=np.int64)
    if len(days) == 0:
        return np.array([], dtype=np.int64)
    targets = days - window_days
    return np.searchsorted(days, targets, side="right").astype(np.int64) - 1


def day_numbers(index: pd.DatetimeIndex) -> np.ndarray:
    """Integer calendar-day numbers (days since the epoch) for an index."""
    return index.values.astype("datetime64[D]").astype(np.int64)

"""Local-peak detection and next-peak extrapolation (MVRV-style).

A point ``i`` in ``[window, n - window)`` is a peak when its value is at least
every value in ``[i - window, i + window]`` and strictly above the minimum
peak value (2.0 by default, which keeps near-baseline wiggles out). Equal
neighbours do not disqualify a point, so a flat top yields one peak per
qualifying index.

The projection averages the fractional decrease between consecutive peaks
and applies it once more to the last peak. It is a heuristic, not a forecast;
window, cutoff and tie rule must stay exactly as they are to reproduce the
historical values.
"""

from __future__ import annotations

from collections import deque

import numpy as np
import pandas as pd

from ..core.logging import get_logger
from .config import PeakConfig
from .types import PeakProjection, PeakRecord, as_values, validate_window


logger = get_logger("indicators.peaks")


def sliding_window_max(values: np.ndarray, size: int) -> np.ndarray:
    """
    Trailing maximum over ``values[i-size+1 .. i]``.

    Uses an O(n) monotonic deque. Entries before a full window is available
    are NaN.
    """
    size = validate_window(size, "size")
    n = len(values)
    result = np.full(n, np.nan)

    # Monotonic decreasing deque of indices; front is the window maximum
    max_deque: deque = deque()

    for i in range(n):
        value = values[i]

        while max_deque and max_deque[0] <= i - size:
            max_deque.popleft()

        while max_deque and values[max_deque[-1]] <= value:
            max_deque.pop()

        max_deque.append(i)

        if i >= size - 1:
            result[i] = values[max_deque[0]]

    return result


def detect_peak_flags(values: np.ndarray, config: PeakConfig | None = None) -> np.ndarray:
    """Boolean mask of the peaks in ``values`` (all False when too short)."""
    config = config or PeakConfig()
    window = validate_window(config.window)
    values = np.asarray(values, dtype=float)
    n = len(values)
    flags = np.zeros(n, dtype=bool)
    if n < config.min_points:
        return flags

    size = 2 * window + 1
    trailing = sliding_window_max(values, size)
    # Max over [i - window, i + window] is the trailing max ending at i + window
    centered = trailing[2 * window:]
    candidates = values[window:n - window]

    # A missing value anywhere in the window disqualifies the candidate
    missing = pd.Series(np.isnan(values)).rolling(size).sum().to_numpy(copy=True)
    complete = missing[2 * window:] == 0

    flags[window:n - window] = (
        complete & (candidates >= centered) & (candidates > config.min_peak_value)
    )
    return flags


def _project(peak_values: list[float]) -> tuple[float, float | None]:
    decreases = [
        (prev - curr) / prev for prev, curr in zip(peak_values, peak_values[1:])
    ]
    avg_decrease = sum(decreases) / len(decreases) if decreases else 0.0
    projected = peak_values[-1] * (1 - avg_decrease) if peak_values else None
    return avg_decrease, projected


def compute_peak_projection(
    series: pd.Series,
    config: PeakConfig | None = None,
) -> PeakProjection:
    """
    Detect peaks over the full series and project the next one.

    Returns:
        PeakProjection; ``projected_peak`` is None when the series has fewer
        than ``2 * window + 1`` points or no peak qualifies.
    """
    config = config or PeakConfig()
    if len(series) < config.min_points:
        logger.debug(
            "Peak projection needs %d points, got %d", config.min_points, len(series)
        )
        return PeakProjection()

    values = as_values(series)
    flags = detect_peak_flags(values, config)
    peaks = [
        PeakRecord(timestamp=ts, value=float(v))
        for ts, v in zip(series.index[flags], values[flags])
    ]
    if not peaks:
        return PeakProjection()

    avg_decrease, projected = _project([p.value for p in peaks])
    return PeakProjection(peaks=peaks, avg_decrease=avg_decrease, projected_peak=projected)


def compute_projected_peak_history(
    series: pd.Series,
    config: PeakConfig | None = None,
) -> pd.Series:
    """
    Projected peak as it stood on every date, using only data up to that date.

    Whether index ``i`` is a peak depends only on values up to ``i + window``,
    so the projection for the history ending at ``t`` uses exactly the peaks
    of the full series at indices ``<= t - window``. That turns a per-date
    recompute into a single pass.

    Returns:
        Series named ``projected_peak``; NaN where no projection existed yet.
    """
    config = config or PeakConfig()
    n = len(series)
    result = np.full(n, np.nan)
    if n < config.min_points:
        return pd.Series(result, index=series.index.copy(), name="projected_peak")

    values = as_values(series)
    flags = detect_peak_flags(values, config)
    peak_positions = np.flatnonzero(flags)

    window = config.window
    peak_values: list[float] = []
    decrease_sum = 0.0
    cursor = 0

    for t in range(config.min_points - 1, n):
        while cursor < len(peak_positions) and peak_positions[cursor] <= t - window:
            value = float(values[peak_positions[cursor]])
            if peak_values:
                decrease_sum += (peak_values[-1] - value) / peak_values[-1]
            peak_values.append(value)
            cursor += 1

        if peak_values:
            n_decreases = len(peak_values) - 1
            avg = decrease_sum / n_decreases if n_decreases else 0.0
            result[t] = peak_values[-1] * (1 - avg)

    return pd.Series(result, index=series.index.copy(), name="projected_peak")

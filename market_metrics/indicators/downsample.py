"""Bucketed averaging to shrink series for display."""

from __future__ import annotations

import numpy as np
import pandas as pd

from .config import DownsampleConfig
from .types import validate_window


def downsample_with_last_point(
    data: pd.DataFrame | pd.Series,
    config: DownsampleConfig | None = None,
) -> pd.DataFrame | pd.Series:
    """
    Average every ``factor`` consecutive points, then append the last point.

    Series at or below ``threshold`` points are returned unchanged (as a
    copy). Each bucket is stamped with the date of its first point and holds
    the mean of every numeric field.

    The original last point is always appended
    as its own entry even though the final bucket already averaged it in, so
    the latest value is counted twice. When the length leaves a single point
    in the final bucket, that bucket and the appended entry share a date.
    """
    config = config or DownsampleConfig()
    factor = validate_window(config.factor, "factor")
    if len(data) <= config.threshold:
        return data.copy()

    buckets = np.arange(len(data)) // factor
    is_series = isinstance(data, pd.Series)
    frame = data.to_frame() if is_series else data

    numeric = frame.select_dtypes(include="number")
    averaged = numeric.groupby(buckets).mean()
    averaged.index = frame.index[::factor]

    result = pd.concat([averaged, numeric.iloc[[-1]]])
    result.index.name = frame.index.name

    if is_series:
        return result.iloc[:, 0].rename(data.name)
    return result

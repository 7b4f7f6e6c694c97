"""Standard score of a metric over a dataset."""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..core.exceptions import InvalidParameterError
from ..core.logging import get_logger
from .types import empty_series


logger = get_logger("indicators.zscore")


def compute_zscore(data: pd.DataFrame | pd.Series, key: str = "value") -> pd.Series:
    """
    Z-score of ``data[key]`` against the dataset's own mean and stddev.

    Non-finite values are filtered out first and omitted from the output.
    Mean and stddev are population statistics over the filtered set. When
    the stddev is zero there is nothing to standardize against and the
    result is empty.

    Args:
        data: DerivedSeries holding column ``key``, or a TimeSeries
        key: Column to standardize (ignored for a Series)

    Returns:
        Series named ``zscore`` on the dates of the finite source values
    """
    if isinstance(data, pd.DataFrame):
        if key not in data.columns:
            raise InvalidParameterError(
                f"Column '{key}' not found", details={"columns": list(data.columns)}
            )
        column = data[key]
    else:
        column = data

    values = pd.to_numeric(column, errors="coerce").astype("float64")
    finite = values[np.isfinite(values.to_numpy())]
    if finite.empty:
        return empty_series("zscore")

    arr = finite.to_numpy()
    mean = float(np.mean(arr))
    std = float(np.std(arr))
    if std == 0:
        logger.debug("Z-score of %s: zero variance, nothing to emit", key)
        return empty_series("zscore")

    return pd.Series((arr - mean) / std, index=finite.index.copy(), name="zscore")

"""Risk Metric: log-distance from a long moving average, normalized to [0, 1].

Steps:
1. MA[i] = growing-window mean of the last 374 values
2. preavg[i] = (ln(value[i]) - ln(MA[i])) * position[i] ** 0.395,
   where position[i] is the point's index in the series (0 for the first
   point, so preavg[0] == 0)
3. risk[i] = (preavg[i] - min(preavg)) / (max(preavg) - min(preavg))

The normalization in step 3 runs over the whole series, so extending the
history can change the risk of earlier dates. There is deliberately no
incremental form: callers recompute from the full history every time.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..core.exceptions import InvalidParameterError
from ..core.logging import get_logger
from .config import RiskMetricConfig
from .types import as_values, empty_frame, validate_window
from .windows import rolling_mean


logger = get_logger("indicators.risk")

RISK_COLUMNS = ["value", "ma", "preavg", "risk"]


def _positive_only(series: pd.Series) -> pd.Series:
    """Drop points whose logarithm is undefined."""
    mask = series > 0
    if not mask.all():
        logger.warning(
            "Dropping %d non-positive values before log transform",
            int((~mask).sum()),
            extra={"extra_fields": {"series": series.name}},
        )
        return series[mask]
    return series


def compute_preavg(
    values: np.ndarray,
    moving_average: np.ndarray,
    position_index: np.ndarray,
    config: RiskMetricConfig,
) -> np.ndarray:
    """
    Scaled log distance of each value from its moving average.

    ``position_index`` is the scaling input raised to ``config.exponent``.
    The historical charts use the raw positional index (0, 1, 2, ...), not
    elapsed calendar days; pass calendar-day offsets here to switch.
    """
    values = np.asarray(values, dtype=float)
    position_index = np.asarray(position_index, dtype=float)
    if position_index.shape != values.shape:
        raise InvalidParameterError(
            "position_index must have one entry per value",
            details={"values": len(values), "position_index": len(position_index)},
        )

    scale = np.power(position_index, config.exponent)
    preavg = (np.log(values) - np.log(moving_average)) * scale

    if config.parabolic_ratio is not None or config.decline_ramp_days is not None:
        preavg = _apply_altcoin_adjustment(values, preavg, config)
    return preavg


def _apply_altcoin_adjustment(
    values: np.ndarray,
    preavg: np.ndarray,
    config: RiskMetricConfig,
) -> np.ndarray:
    """Damp parabolic days and amplify prolonged declines."""
    adjusted = preavg.copy()
    consecutive_declines = 0

    for i in range(1, len(values)):
        change = values[i] / values[i - 1]

        if config.parabolic_ratio is not None and change > config.parabolic_ratio:
            adjusted[i] *= 1.0 / change

        if change < 1:
            consecutive_declines += 1
            if config.decline_ramp_days:
                ramp = min(consecutive_declines / config.decline_ramp_days, 1.0)
                adjusted[i] *= 1.0 + ramp
        else:
            consecutive_declines = 0

    return adjusted


def normalize_min_max(values: np.ndarray) -> np.ndarray:
    """Min-max normalize to [0, 1]; a zero range yields all zeros."""
    values = np.asarray(values, dtype=float)
    if len(values) == 0:
        return np.array([])
    lo = float(np.min(values))
    hi = float(np.max(values))
    if hi == lo:
        return np.zeros_like(values)
    return np.clip((values - lo) / (hi - lo), 0.0, 1.0)


def compute_risk_metric(
    series: pd.Series,
    config: RiskMetricConfig | None = None,
    position_index: np.ndarray | None = None,
) -> pd.DataFrame:
    """
    Compute the Risk Metric over the full history.

    Args:
        series: Price TimeSeries (aligned, ascending)
        config: Risk parameters (defaults to the standard preset)
        position_index: Exponent input per point; defaults to 0..n-1

    Returns:
        DataFrame with columns value, ma, preavg, risk. Empty if the series
        has no positive values.
    """
    config = config or RiskMetricConfig()
    validate_window(config.ma_window, "ma_window")

    if position_index is not None and len(position_index) != len(series):
        raise InvalidParameterError(
            "position_index must have one entry per point",
            details={"points": len(series), "position_index": len(position_index)},
        )

    positive = _positive_only(series)
    if position_index is not None and len(positive) != len(series):
        position_index = np.asarray(position_index, dtype=float)[
            (series > 0).to_numpy()
        ]

    if positive.empty:
        logger.debug("Risk metric: no usable points")
        return empty_frame(RISK_COLUMNS)

    values = as_values(positive)
    if position_index is None:
        position_index = np.arange(len(values), dtype=float)

    ma = rolling_mean(values, config.ma_window)
    preavg = compute_preavg(values, ma, position_index, config)
    risk = normalize_min_max(preavg)

    return pd.DataFrame(
        {"value": values, "ma": ma, "preavg": preavg, "risk": risk},
        index=positive.index.copy(),
    )


def compute_point_in_time_risk(
    series: pd.Series,
    config: RiskMetricConfig | None = None,
) -> pd.Series:
    """
    Risk as each date would have reported it when it was the latest point.

    preavg at a date depends only on data up to that date, so the value a
    full recompute on the history ending at ``t`` gives for ``t`` equals
    ``preavg[t]`` normalized by the running min and max of preavg.
    """
    frame = compute_risk_metric(series, config)
    if frame.empty:
        return pd.Series([], index=frame.index, dtype="float64", name="risk")

    preavg = frame["preavg"].to_numpy()
    lo = np.minimum.accumulate(preavg)
    hi = np.maximum.accumulate(preavg)
    span = hi - lo
    with np.errstate(divide="ignore", invalid="ignore"):
        risk = np.where(span == 0, 0.0, (preavg - lo) / span)
    return pd.Series(np.clip(risk, 0.0, 1.0), index=frame.index, name="risk")


def compute_risk_band_durations(
    risk: pd.Series | np.ndarray,
    band_size: float = 0.1,
) -> pd.DataFrame:
    """
    Count how many days the risk spent in each band.

    Bands split [0, 1] into steps of ``band_size``; a value of exactly 1.0
    falls into the last band.

    Returns:
        DataFrame indexed by band label ("0.00 - 0.10", ...) with columns
        band_start, band_end, days, percentage.
    """
    if not 0 < band_size <= 1:
        raise InvalidParameterError(
            "band_size must be in (0, 1]", details={"band_size": band_size}
        )

    values = np.asarray(risk, dtype=float)
    values = values[np.isfinite(values)]
    n_bands = int(np.ceil(round(1.0 / band_size, 9)))

    band_index = np.minimum(np.floor(values / band_size).astype(int), n_bands - 1)
    band_index = np.maximum(band_index, 0)
    counts = np.bincount(band_index, minlength=n_bands)[:n_bands]
    total = counts.sum()

    starts = np.arange(n_bands) * band_size
    ends = np.minimum(starts + band_size, 1.0)
    percentage = counts / total * 100 if total else np.zeros(n_bands)
    labels = [f"{s:.2f} - {e:.2f}" for s, e in zip(starts, ends)]

    return pd.DataFrame(
        {
            "band_start": starts,
            "band_end": ends,
            "days": counts.astype(int),
            "percentage": percentage,
        },
        index=pd.Index(labels, name="band"),
    )

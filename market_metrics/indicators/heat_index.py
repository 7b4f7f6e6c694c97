"""Market Heat Index: a weighted composite of five 0-100 sub-scores.

Sub-scores (each clipped to [0, 100]):
- mvrv:      MVRV against the projected next peak and the 3.7 overvaluation
             threshold, using only MVRV history up to the scored date
- mayer:     Mayer Multiple against the 0.6 / 2.4 bounds
- risk:      Risk Metric * 100, as the date reported it at the time
- sentiment: externally supplied 0-100 sentiment index
- piCycle:   PiCycle ratio scaled through a 0.5 buffer, plus an offset

The weights and the MVRV/Mayer scaling strategy come from a named
HeatIndexPreset. A sub-score whose input is missing on a date counts as 0
for that date.
"""

from __future__ import annotations

import math
from typing import Mapping

import pandas as pd

from ..core.exceptions import InvalidParameterError
from ..core.logging import get_logger
from .config import (
    HEAT_SMOOTHING_PERIODS,
    HEAT_SUBSCORES,
    HeatIndexPreset,
    HeatScaling,
    get_heat_index_preset,
)
from .peaks import compute_projected_peak_history
from .ratios import compute_mayer_multiple, compute_pi_cycle_ratio
from .risk import compute_point_in_time_risk
from .types import INDEX_NAME, CompositeRecord, empty_frame


logger = get_logger("indicators.heat_index")


def _clip(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def _usable(value: float | None) -> bool:
    """Missing, non-finite and zero inputs produce no heat."""
    return value is not None and math.isfinite(value) and value != 0


# =============================================================================
# Scaling strategies
# =============================================================================


def scale_by_distance(value: float, thresholds: list[float]) -> float:
    """
    Heat from the distance to the nearest threshold.

    Distances are percentages of each threshold; every 10% away from the
    nearest threshold costs 100 points, so only values within 10% of a
    threshold score above zero.
    """
    distances = [abs((value - t) / t * 100) for t in thresholds if t > 0]
    if not distances:
        return 0.0
    return _clip(100 - (min(distances) / 10) * 100)


def scale_linear(value: float, lower: float, upper: float) -> float:
    """Heat rising linearly from 0 at ``lower`` to 100 at ``upper``."""
    if value <= lower or upper <= lower:
        return 0.0
    return _clip((value - lower) / (upper - lower) * 100)


# =============================================================================
# Sub-scores
# =============================================================================


def mvrv_heat(
    mvrv: float | None,
    projected_peak: float | None,
    preset: HeatIndexPreset,
) -> float:
    """MVRV heat against the projected peak and the overvaluation threshold."""
    if not _usable(mvrv) or not _usable(projected_peak):
        return 0.0

    current = _clip(mvrv, 0.0, preset.mvrv_cap)
    peak = _clip(projected_peak, 0.0, preset.mvrv_cap)
    if current == 0:
        return 0.0

    if preset.mvrv_scaling is HeatScaling.DISTANCE:
        return scale_by_distance(current, [peak, preset.mvrv_overvalued])
    upper = max(peak, preset.mvrv_overvalued)
    return scale_linear(current, preset.mvrv_lower, upper)


def mayer_heat(mayer: float | None, preset: HeatIndexPreset) -> float:
    """Mayer Multiple heat between the fixed lower and upper bounds."""
    if not _usable(mayer):
        return 0.0
    current = _clip(mayer, 0.0, preset.ratio_cap)
    if current == 0:
        return 0.0

    if preset.mayer_scaling is HeatScaling.DISTANCE:
        return scale_by_distance(current, [preset.mayer_upper, preset.mayer_lower])
    return scale_linear(current, preset.mayer_lower, preset.mayer_upper)


def risk_heat(risk: float | None) -> float:
    """Risk Metric in [0, 1] as a 0-100 score."""
    if risk is None or not math.isfinite(risk):
        return 0.0
    return _clip(risk * 100)


def sentiment_heat(sentiment: float | None) -> float:
    """Sentiment index is already 0-100; clip it."""
    if sentiment is None or not math.isfinite(sentiment):
        return 0.0
    return _clip(sentiment)


def pi_cycle_heat(ratio: float | None, preset: HeatIndexPreset) -> float:
    """PiCycle ratio through the buffer, plus the preset offset."""
    if not _usable(ratio):
        return 0.0
    current = _clip(ratio, 0.0, preset.ratio_cap)
    if current == 0:
        return 0.0
    return _clip(current / preset.pi_cycle_buffer * 100 + preset.pi_cycle_offset)


def combine_subscores(subscores: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """Weighted sum of the sub-scores, clipped to [0, 100].

    A sub-score missing from ``subscores`` counts as 0.
    """
    missing = [name for name in subscores if name not in weights]
    if missing:
        raise InvalidParameterError(
            f"No weight for sub-scores {missing}", details={"missing": missing}
        )
    total = sum(subscores.get(name, 0.0) * weight for name, weight in weights.items())
    return _clip(total)


# =============================================================================
# Builder
# =============================================================================


def _lookup_preset(preset: HeatIndexPreset | str) -> HeatIndexPreset:
    if isinstance(preset, HeatIndexPreset):
        return preset
    return get_heat_index_preset(preset)


def _value_at(series: pd.Series, ts: pd.Timestamp) -> float | None:
    value = series.get(ts)
    if value is None or pd.isna(value):
        return None
    return float(value)


def build_heat_index(
    price: pd.Series,
    mvrv: pd.Series,
    sentiment: pd.Series,
    preset: HeatIndexPreset | str = "weighted",
    start_date: str | pd.Timestamp | None = None,
) -> list[CompositeRecord]:
    """
    Compute the Market Heat Index for every price date.

    Args:
        price: Price TimeSeries; its dates are the output dates
        mvrv: MVRV TimeSeries
        sentiment: Sentiment index TimeSeries (0-100)
        preset: HeatIndexPreset or preset name
        start_date: Drop output dates before this (history before it still
            feeds the windowed inputs)

    Returns:
        One CompositeRecord per price date, ascending.
    """
    preset = _lookup_preset(preset)
    if price.empty:
        return []

    mayer = compute_mayer_multiple(price, preset.mayer_window)
    pi_cycle = compute_pi_cycle_ratio(price, preset.pi_cycle_short, preset.pi_cycle_long)
    risk = compute_point_in_time_risk(price, preset.risk)
    projected = compute_projected_peak_history(mvrv, preset.peaks)

    dates = price.index
    if start_date is not None:
        dates = dates[dates >= pd.Timestamp(start_date).normalize()]

    ratio = pi_cycle["ratio"]
    weights = dict(preset.weights)
    records: list[CompositeRecord] = []
    missing_mvrv = 0

    for ts in dates:
        mvrv_value = _value_at(mvrv, ts)
        if mvrv_value is None:
            missing_mvrv += 1

        subscores = {
            "mvrv": mvrv_heat(mvrv_value, _value_at(projected, ts), preset),
            "mayer": mayer_heat(_value_at(mayer, ts), preset),
            "risk": risk_heat(_value_at(risk, ts)),
            "sentiment": sentiment_heat(_value_at(sentiment, ts)),
            "piCycle": pi_cycle_heat(_value_at(ratio, ts), preset),
        }
        records.append(
            CompositeRecord(
                timestamp=ts,
                subscores=subscores,
                weights=weights,
                composite=combine_subscores(subscores, weights),
            )
        )

    if missing_mvrv:
        logger.debug(
            "Heat index: %d of %d dates had no MVRV value",
            missing_mvrv,
            len(records),
            extra={"extra_fields": {"preset": preset.name}},
        )
    return records


def heat_index_frame(records: list[CompositeRecord]) -> pd.DataFrame:
    """Flatten CompositeRecords into a DataFrame (one column per sub-score)."""
    columns = list(HEAT_SUBSCORES) + ["composite"]
    if not records:
        return empty_frame(columns)
    rows = [{**r.subscores, "composite": r.composite} for r in records]
    index = pd.DatetimeIndex([r.timestamp for r in records], name=INDEX_NAME)
    return pd.DataFrame(rows, index=index, columns=columns)


def smooth_heat_index(composite: pd.Series, days: int) -> pd.Series:
    """
    Simple moving average of the composite for display.

    The first ``days - 1`` points are passed through unsmoothed; later points
    are the mean of the full ``days`` window.
    """
    if days not in HEAT_SMOOTHING_PERIODS:
        raise InvalidParameterError(
            f"Unsupported heat index smoothing period {days}",
            details={"allowed": list(HEAT_SMOOTHING_PERIODS)},
        )
    values = composite.to_numpy(dtype=float, copy=True)
    smoothed = pd.Series(values).rolling(days, min_periods=days).mean().to_numpy(copy=True)
    head = min(days - 1, len(values))
    smoothed[:head] = values[:head]
    return pd.Series(smoothed, index=composite.index.copy(), name=composite.name)

"""Valuation ratio indicators: Mayer Multiple, PiCycle, Puell Multiple.

Formulas:
- Mayer Multiple: value / SMA(200)
- PiCycle ratio:  SMA(111) / (2 * SMA(350)), 0 when SMA(350) <= 0.001
- Puell Multiple: daily issuance (USD) / growing-window mean of issuance,
  then smoothed again with a caller-selected moving average
- 20-week extension: (value - SMA(140)) / SMA(140) * 100
"""

from __future__ import annotations

from datetime import date

import numpy as np
import pandas as pd

from ..core.exceptions import InvalidParameterError
from ..core.logging import get_logger
from .config import PUELL_SMOOTHING_PERIODS, PuellConfig
from .types import as_values, empty_frame, empty_series, validate_window
from .windows import rolling_mean


logger = get_logger("indicators.ratios")

# Denominators at or below this are treated as missing
PI_CYCLE_MIN_DENOMINATOR = 0.001


# =============================================================================
# Mayer Multiple
# =============================================================================


def compute_mayer_multiple(series: pd.Series, window: int = 200) -> pd.Series:
    """
    Price divided by its ``window``-day moving average.

    Returns:
        Series named ``mayer`` starting at the first point with a full window;
        empty when the series is shorter than ``window``.
    """
    window = validate_window(window)
    if len(series) < window:
        logger.debug("Mayer Multiple needs %d points, got %d", window, len(series))
        return empty_series("mayer")

    values = as_values(series)
    ma = rolling_mean(values, window)
    with np.errstate(divide="ignore", invalid="ignore"):
        mayer = np.where(ma != 0, values / ma, np.nan)

    result = pd.Series(mayer, index=series.index.copy(), name="mayer")
    return result.iloc[window - 1:].dropna()


# =============================================================================
# PiCycle
# =============================================================================


def compute_pi_cycle_ratio(
    series: pd.Series,
    short_window: int = 111,
    long_window: int = 350,
) -> pd.DataFrame:
    """
    PiCycle top ratio: SMA(short) / (SMA(long) * 2).

    Returns:
        DataFrame with columns sma_short, sma_long, ratio, starting at the
        first point with a full long window; empty when too short.
    """
    short_window = validate_window(short_window, "short_window")
    long_window = validate_window(long_window, "long_window")
    columns = ["sma_short", "sma_long", "ratio"]
    if len(series) < max(short_window, long_window):
        logger.debug("PiCycle needs %d points, got %d", long_window, len(series))
        return empty_frame(columns)

    values = as_values(series)
    sma_short = rolling_mean(values, short_window)
    sma_long = rolling_mean(values, long_window)

    guarded = sma_long > PI_CYCLE_MIN_DENOMINATOR
    ratio = np.zeros(len(values))
    ratio[guarded] = sma_short[guarded] / (sma_long[guarded] * 2)

    frame = pd.DataFrame(
        {"sma_short": sma_short, "sma_long": sma_long, "ratio": ratio},
        index=series.index.copy(),
    )
    return frame.iloc[max(short_window, long_window) - 1:]


# =============================================================================
# Puell Multiple
# =============================================================================


def daily_issuance_btc(day: date | pd.Timestamp, config: PuellConfig | None = None) -> float:
    """
    New coins issued per day under the halving schedule.

    Blocks mined are estimated as whole days since genesis times blocks per
    day; the block reward halves every ``halving_interval`` blocks.
    """
    config = config or PuellConfig()
    days_since_genesis = (pd.Timestamp(day).normalize() - pd.Timestamp(config.genesis_date)).days
    blocks_mined = days_since_genesis * config.blocks_per_day
    halvings = blocks_mined // config.halving_interval
    reward = config.initial_reward / (2 ** halvings)
    return reward * config.blocks_per_day


def derive_issuance_usd(price: pd.Series, config: PuellConfig | None = None) -> pd.Series:
    """Daily issuance in USD derived from the halving schedule and price."""
    config = config or PuellConfig()
    btc = np.array([daily_issuance_btc(ts, config) for ts in price.index], dtype=float)
    return pd.Series(btc * as_values(price), index=price.index.copy(), name="issuance_usd")


def compute_puell_multiple(
    price: pd.Series | None = None,
    issuance_usd: pd.Series | None = None,
    smoothing_period: int = 7,
    config: PuellConfig | None = None,
) -> pd.DataFrame:
    """
    Puell Multiple, smoothed.

    Args:
        price: Price TimeSeries, used only when no issuance series is given
        issuance_usd: Direct on-chain daily issuance in USD (preferred)
        smoothing_period: Second moving-average period, one of 7/28/90/180/365
        config: Lookback and rounding (see PUELL_PRESETS)

    Returns:
        DataFrame with columns issuance, puell (raw multiple), smoothed.
        Dates where the issuance mean is zero have no raw multiple and are
        skipped by the smoothing.
    """
    config = config or PuellConfig()
    if smoothing_period not in PUELL_SMOOTHING_PERIODS:
        raise InvalidParameterError(
            f"Unsupported Puell smoothing period {smoothing_period}",
            details={"allowed": list(PUELL_SMOOTHING_PERIODS)},
        )
    validate_window(config.issuance_window, "issuance_window")

    columns = ["issuance", "puell", "smoothed"]
    if issuance_usd is None or issuance_usd.empty:
        if price is None or price.empty:
            return empty_frame(columns)
        logger.warning("%s series missing, deriving issuance from block reward", config.issuance_metric)
        issuance_usd = derive_issuance_usd(price, config)

    issuance = as_values(issuance_usd)
    mean = rolling_mean(issuance, config.issuance_window)
    with np.errstate(divide="ignore", invalid="ignore"):
        puell = np.where(mean != 0, issuance / mean, np.nan)
    if config.round_decimals is not None:
        puell = np.round(puell, config.round_decimals)

    # Missing raw values are skipped inside each smoothing window
    smoothed = rolling_mean(puell, smoothing_period)
    if config.round_decimals is not None:
        smoothed = np.round(smoothed, config.round_decimals)

    return pd.DataFrame(
        {"issuance": issuance, "puell": puell, "smoothed": smoothed},
        index=issuance_usd.index.copy(),
    )


# =============================================================================
# 20-week extension
# =============================================================================


def compute_ma_extension(series: pd.Series, window: int = 140) -> pd.DataFrame:
    """
    Percentage distance of the value from its growing-window moving average.

    The default window of 140 days is the 20-week MA.
    """
    window = validate_window(window)
    if series.empty:
        return empty_frame(["value", "ma", "extension"])

    values = as_values(series)
    ma = rolling_mean(values, window)
    with np.errstate(divide="ignore", invalid="ignore"):
        extension = np.where(ma != 0, (values - ma) / ma * 100, np.nan)

    return pd.DataFrame(
        {"value": values, "ma": ma, "extension": extension},
        index=series.index.copy(),
    )

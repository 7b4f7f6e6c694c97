"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np
import pandas as pd
import pytest


def make_series(
    values: Sequence[float] | np.ndarray,
    start: str = "2020-01-01",
    freq: str = "D",
    name: str = "value",
) -> pd.Series:
    """Build a TimeSeries on a regular day-normalized index."""
    index = pd.date_range(start, periods=len(values), freq=freq, name="time")
    return pd.Series(np.asarray(values, dtype=float), index=index, name=name)


@pytest.fixture
def series_factory() -> Callable[..., pd.Series]:
    """Factory for synthetic daily series."""
    return make_series


@pytest.fixture
def random_walk_prices() -> pd.Series:
    """Two years of a positive geometric random walk."""
    rng = np.random.default_rng(42)
    returns = rng.normal(0.001, 0.03, 730)
    prices = 100.0 * np.cumprod(1 + returns)
    return make_series(prices, start="2019-01-01", name="price")


@pytest.fixture
def three_peak_mvrv() -> pd.Series:
    """MVRV-like series with isolated peaks of 100, 80 and 64.

    Peaks sit 200 days apart with a baseline of 1.0 everywhere else, so
    every other point is lower than each peak.
    """
    values = np.ones(800)
    values[150] = 100.0
    values[350] = 80.0
    values[550] = 64.0
    return make_series(values, start="2015-01-01", name="mvrv")

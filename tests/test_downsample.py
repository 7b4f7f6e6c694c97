"""Tests for display downsampling."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from market_metrics.indicators.config import DownsampleConfig
from market_metrics.indicators.downsample import downsample_with_last_point


class TestDownsampleWithLastPoint:
    """Tests for downsample_with_last_point."""

    def test_small_series_unchanged(self, series_factory):
        series = series_factory(np.arange(200.0))
        result = downsample_with_last_point(series)

        assert result.equals(series)
        assert result is not series

    def test_last_point_counted_twice(self, series_factory):
        """203 points: 41 buckets (the last holding 3 points) plus the last point."""
        series = series_factory(np.arange(203.0))
        result = downsample_with_last_point(series)

        assert len(result) == 42
        assert result.iloc[0] == pytest.approx(2.0)
        assert result.index[0] == series.index[0]
        assert result.index[1] == series.index[5]
        # Final bucket averages points 200-202, then 202 is appended again
        assert result.index[40] == series.index[200]
        assert result.iloc[40] == pytest.approx(201.0)
        assert result.index[-1] == series.index[-1]
        assert result.iloc[-1] == 202.0

    def test_single_point_final_bucket_shares_date(self, series_factory):
        series = series_factory(np.arange(201.0))
        result = downsample_with_last_point(series)

        assert len(result) == 42
        assert result.index[-1] == result.index[-2]
        assert result.iloc[-1] == result.iloc[-2] == 200.0

    def test_frame_numeric_columns(self, series_factory):
        index = series_factory(np.zeros(250)).index
        frame = pd.DataFrame(
            {"value": np.arange(250.0), "risk": np.linspace(0, 1, 250), "label": ["x"] * 250},
            index=index,
        )
        result = downsample_with_last_point(frame)

        assert list(result.columns) == ["value", "risk"]
        assert len(result) == 51
        assert result["value"].iloc[-1] == 249.0
        assert result.index.name == "time"

    def test_custom_config(self, series_factory):
        series = series_factory(np.arange(20.0))
        result = downsample_with_last_point(series, DownsampleConfig(factor=10, threshold=10))

        assert list(result) == [4.5, 14.5, 19.0]
        assert result.name == "value"

"""Tests for the Mayer Multiple, PiCycle, Puell Multiple and MA extension."""

from __future__ import annotations

import logging
from datetime import date

import numpy as np
import pytest

from market_metrics.core.exceptions import InvalidParameterError
from market_metrics.indicators.config import PuellConfig, get_puell_preset
from market_metrics.indicators.ratios import (
    compute_ma_extension,
    compute_mayer_multiple,
    compute_pi_cycle_ratio,
    compute_puell_multiple,
    daily_issuance_btc,
)


class TestMayerMultiple:
    """Tests for compute_mayer_multiple."""

    def test_constant_price_is_one(self, series_factory):
        series = series_factory([50.0] * 300)
        mayer = compute_mayer_multiple(series)

        assert mayer.name == "mayer"
        assert len(mayer) == 101
        assert mayer.index[0] == series.index[199]
        np.testing.assert_allclose(mayer.to_numpy(), 1.0)

    def test_short_series_is_empty(self, series_factory):
        assert compute_mayer_multiple(series_factory([50.0] * 199)).empty

    def test_against_direct_mean(self, random_walk_prices):
        mayer = compute_mayer_multiple(random_walk_prices)
        values = random_walk_prices.to_numpy()

        for i in (199, 450, 729):
            expected = values[i] / values[i - 199: i + 1].mean()
            assert mayer.loc[random_walk_prices.index[i]] == pytest.approx(expected)


class TestPiCycleRatio:
    """Tests for compute_pi_cycle_ratio."""

    def test_constant_price_is_half(self, series_factory):
        series = series_factory([10.0] * 400)
        frame = compute_pi_cycle_ratio(series)

        assert list(frame.columns) == ["sma_short", "sma_long", "ratio"]
        assert len(frame) == 51
        assert frame.index[0] == series.index[349]
        np.testing.assert_allclose(frame["ratio"].to_numpy(), 0.5)

    def test_tiny_denominator_is_zero(self, series_factory):
        frame = compute_pi_cycle_ratio(series_factory([0.0] * 400))
        assert (frame["ratio"] == 0.0).all()

    def test_short_series_is_empty(self, series_factory):
        assert compute_pi_cycle_ratio(series_factory([10.0] * 349)).empty

    def test_against_direct_means(self, random_walk_prices):
        frame = compute_pi_cycle_ratio(random_walk_prices)
        values = random_walk_prices.to_numpy()
        i = 600
        expected = values[i - 110: i + 1].mean() / (values[i - 349: i + 1].mean() * 2)
        assert frame.loc[random_walk_prices.index[i], "ratio"] == pytest.approx(expected)


class TestDailyIssuance:
    """Tests for the halving-schedule issuance estimate."""

    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2009, 1, 3), 7200.0),
            (date(2011, 6, 1), 7200.0),
            (date(2013, 6, 1), 3600.0),
            (date(2020, 6, 1), 1800.0),
        ],
    )
    def test_schedule(self, day, expected):
        assert daily_issuance_btc(day) == expected


class TestPuellMultiple:
    """Tests for compute_puell_multiple."""

    def test_constant_issuance_is_one(self, series_factory):
        issuance = series_factory([100.0] * 400)
        frame = compute_puell_multiple(issuance_usd=issuance)

        assert list(frame.columns) == ["issuance", "puell", "smoothed"]
        np.testing.assert_allclose(frame["puell"].to_numpy(), 1.0)
        np.testing.assert_allclose(frame["smoothed"].to_numpy(), 1.0)

    def test_growing_window_and_smoothing(self, series_factory):
        frame = compute_puell_multiple(issuance_usd=series_factory([1.0, 2.0, 3.0]))

        np.testing.assert_allclose(frame["puell"].to_numpy(), [1.0, 4 / 3, 1.5])
        np.testing.assert_allclose(
            frame["smoothed"].to_numpy(), [1.0, 7 / 6, (1 + 4 / 3 + 1.5) / 3]
        )

    def test_dashboard_preset_window_and_rounding(self, series_factory):
        values = np.ones(367)
        values[0] = 1000.0
        issuance = series_factory(values)

        trailing = compute_puell_multiple(issuance_usd=issuance, smoothing_period=7)
        dashboard = compute_puell_multiple(
            issuance_usd=issuance,
            smoothing_period=7,
            config=get_puell_preset("dashboard"),
        )

        # A 365-point window has dropped the outlier at index 365
        assert trailing["puell"].iloc[365] == pytest.approx(1.0)
        # A 366-point window still holds it
        assert dashboard["puell"].iloc[365] == round(366 / 1365, 2)

    def test_rounding(self, series_factory):
        frame = compute_puell_multiple(
            issuance_usd=series_factory([1.0, 2.0]),
            config=PuellConfig(round_decimals=2),
        )
        assert frame["puell"].iloc[1] == 1.33

    def test_invalid_smoothing_period(self, series_factory):
        with pytest.raises(InvalidParameterError):
            compute_puell_multiple(
                issuance_usd=series_factory([1.0]), smoothing_period=10
            )

    def test_derived_from_price(self, series_factory, caplog):
        price = series_factory([2.0] * 30, start="2010-01-01")
        with caplog.at_level(logging.WARNING, logger="market_metrics"):
            frame = compute_puell_multiple(price=price)

        assert frame["issuance"].iloc[0] == pytest.approx(7200.0 * 2.0)
        np.testing.assert_allclose(frame["puell"].to_numpy(), 1.0)
        assert any("deriving issuance" in r.getMessage() for r in caplog.records)

    def test_no_inputs_is_empty(self):
        assert compute_puell_multiple().empty

    def test_zero_issuance_has_no_multiple(self, series_factory):
        frame = compute_puell_multiple(issuance_usd=series_factory([0.0, 0.0, 5.0]))
        assert np.isnan(frame["puell"].iloc[0])
        assert frame["puell"].iloc[2] == pytest.approx(3.0)
        assert frame["smoothed"].iloc[2] == pytest.approx(3.0)


class TestMaExtension:
    """Tests for compute_ma_extension."""

    def test_extension(self, series_factory):
        frame = compute_ma_extension(series_factory([100.0, 200.0]))

        np.testing.assert_allclose(frame["ma"].to_numpy(), [100.0, 150.0])
        np.testing.assert_allclose(frame["extension"].to_numpy(), [0.0, 100 / 3])

    def test_empty(self, series_factory):
        assert compute_ma_extension(series_factory([])).empty

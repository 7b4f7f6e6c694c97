"""Tests for the Market Heat Index."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from market_metrics.core.exceptions import InvalidParameterError
from market_metrics.indicators.config import HEAT_SUBSCORES, get_heat_index_preset
from market_metrics.indicators.heat_index import (
    build_heat_index,
    combine_subscores,
    heat_index_frame,
    mayer_heat,
    mvrv_heat,
    pi_cycle_heat,
    risk_heat,
    scale_by_distance,
    scale_linear,
    sentiment_heat,
    smooth_heat_index,
)


WEIGHTED = get_heat_index_preset("weighted")
UNIFORM = get_heat_index_preset("uniform")


@pytest.fixture
def market_inputs(random_walk_prices):
    """Price, MVRV and sentiment on the same dates."""
    price = random_walk_prices
    mvrv = (price / price.mean() * 2.0).rename("mvrv")
    sentiment = pd.Series(
        np.linspace(10, 90, len(price)), index=price.index.copy(), name="sentiment"
    )
    return price, mvrv, sentiment


class TestScaling:
    """Tests for the two scaling strategies."""

    def test_distance_at_threshold(self):
        assert scale_by_distance(3.7, [10.0, 3.7]) == 100.0

    def test_distance_five_percent_away(self):
        assert scale_by_distance(3.7 * 1.05, [3.7]) == pytest.approx(50.0)

    def test_distance_far_away_is_zero(self):
        assert scale_by_distance(1.5, [2.4, 0.6]) == 0.0

    def test_distance_ignores_non_positive_thresholds(self):
        assert scale_by_distance(1.0, [0.0]) == 0.0

    def test_linear(self):
        assert scale_linear(1.5, 0.6, 2.4) == pytest.approx(50.0)
        assert scale_linear(0.5, 0.6, 2.4) == 0.0
        assert scale_linear(3.0, 0.6, 2.4) == 100.0


class TestSubscores:
    """Tests for the individual sub-scores."""

    def test_mvrv_linear(self):
        assert mvrv_heat(3.0, 5.0, UNIFORM) == pytest.approx(50.0)

    def test_mvrv_linear_upper_at_least_overvalued(self):
        # Projected peak below 3.7 still scales up to 3.7
        assert mvrv_heat(2.35, 2.0, UNIFORM) == pytest.approx(50.0)

    def test_mvrv_distance(self):
        assert mvrv_heat(3.7, 10.0, WEIGHTED) == 100.0

    @pytest.mark.parametrize("mvrv, projected", [(None, 5.0), (3.0, None), (0.0, 5.0), (float("nan"), 5.0)])
    def test_mvrv_missing_inputs(self, mvrv, projected):
        assert mvrv_heat(mvrv, projected, UNIFORM) == 0.0

    def test_mayer(self):
        assert mayer_heat(1.5, UNIFORM) == pytest.approx(50.0)
        assert mayer_heat(2.4, WEIGHTED) == 100.0
        assert mayer_heat(None, WEIGHTED) == 0.0

    def test_risk(self):
        assert risk_heat(0.42) == pytest.approx(42.0)
        assert risk_heat(None) == 0.0

    def test_sentiment_clipped(self):
        assert sentiment_heat(120.0) == 100.0
        assert sentiment_heat(-5.0) == 0.0
        assert sentiment_heat(None) == 0.0

    def test_pi_cycle_offset(self):
        assert pi_cycle_heat(0.25, UNIFORM) == pytest.approx(50.0)
        assert pi_cycle_heat(0.25, WEIGHTED) == pytest.approx(50.28)
        assert pi_cycle_heat(0.0, WEIGHTED) == 0.0
        assert pi_cycle_heat(1.0, WEIGHTED) == 100.0


class TestCombineSubscores:
    """Tests for combine_subscores."""

    def test_uniform_all_fifty(self):
        subscores = {name: 50.0 for name in HEAT_SUBSCORES}
        assert combine_subscores(subscores, UNIFORM.weights) == pytest.approx(50.0)

    def test_weighted_all_hundred(self):
        subscores = {name: 100.0 for name in HEAT_SUBSCORES}
        assert combine_subscores(subscores, WEIGHTED.weights) == pytest.approx(100.0)

    def test_missing_subscore_counts_as_zero(self):
        subscores = {"mvrv": 100.0}
        assert combine_subscores(subscores, WEIGHTED.weights) == pytest.approx(25.0)

    def test_unknown_subscore(self):
        with pytest.raises(InvalidParameterError):
            combine_subscores({"volume": 10.0}, WEIGHTED.weights)


class TestBuildHeatIndex:
    """Tests for build_heat_index."""

    @pytest.mark.parametrize("preset", ["weighted", "uniform"])
    def test_one_bounded_record_per_price_date(self, market_inputs, preset):
        price, mvrv, sentiment = market_inputs
        records = build_heat_index(price, mvrv, sentiment, preset=preset)

        assert len(records) == len(price)
        assert [r.timestamp for r in records] == list(price.index)
        for record in records:
            assert 0.0 <= record.composite <= 100.0
            assert set(record.subscores) == set(HEAT_SUBSCORES)
            assert all(0.0 <= v <= 100.0 for v in record.subscores.values())

    def test_weights_reported(self, market_inputs):
        records = build_heat_index(*market_inputs, preset="weighted")
        assert records[0].weights["mvrv"] == 0.25

    def test_missing_sentiment_counts_as_zero(self, market_inputs):
        price, mvrv, sentiment = market_inputs
        records = build_heat_index(price, mvrv, sentiment.iloc[:100])

        assert records[100].subscores["sentiment"] == 0.0
        assert records[50].subscores["sentiment"] > 0.0

    def test_windowed_subscores_start_with_full_windows(self, market_inputs):
        records = build_heat_index(*market_inputs, preset="uniform")

        assert records[198].subscores["mayer"] == 0.0
        assert records[348].subscores["piCycle"] == 0.0
        assert records[400].subscores["piCycle"] > 0.0

    def test_matches_truncated_history(self, market_inputs):
        price, mvrv, sentiment = market_inputs
        full = build_heat_index(price, mvrv, sentiment)

        k = 500
        truncated = build_heat_index(
            price.iloc[: k + 1], mvrv.iloc[: k + 1], sentiment.iloc[: k + 1]
        )
        assert truncated[-1].timestamp == full[k].timestamp
        assert truncated[-1].composite == pytest.approx(full[k].composite)
        for name in HEAT_SUBSCORES:
            assert truncated[-1].subscores[name] == pytest.approx(full[k].subscores[name])

    def test_start_date(self, market_inputs):
        price, mvrv, sentiment = market_inputs
        full = build_heat_index(price, mvrv, sentiment)
        late = build_heat_index(price, mvrv, sentiment, start_date="2020-06-01")

        assert late[0].timestamp == pd.Timestamp("2020-06-01")
        offset = len(full) - len(late)
        assert late[0].composite == pytest.approx(full[offset].composite)

    def test_empty_price(self, series_factory):
        assert build_heat_index(series_factory([]), series_factory([]), series_factory([])) == []

    def test_unknown_preset(self, market_inputs):
        with pytest.raises(InvalidParameterError):
            build_heat_index(*market_inputs, preset="aggressive")

    def test_record_to_dict(self, market_inputs):
        record = build_heat_index(*market_inputs)[-1]
        data = record.to_dict()

        assert data["time"] == "2020-12-30"
        assert set(data["subscores"]) == set(HEAT_SUBSCORES)
        assert data["composite"] == round(record.composite, 4)


class TestHeatIndexFrame:
    """Tests for heat_index_frame."""

    def test_columns(self, market_inputs):
        records = build_heat_index(*market_inputs)
        frame = heat_index_frame(records)

        assert list(frame.columns) == list(HEAT_SUBSCORES) + ["composite"]
        assert len(frame) == len(records)
        assert frame.index.name == "time"

    def test_empty(self):
        frame = heat_index_frame([])
        assert frame.empty
        assert "composite" in frame.columns


class TestSmoothHeatIndex:
    """Tests for smooth_heat_index."""

    def test_head_passes_through(self, series_factory):
        composite = series_factory(np.arange(1.0, 11.0), name="composite")
        smoothed = smooth_heat_index(composite, 7)

        np.testing.assert_allclose(smoothed.iloc[:6], np.arange(1.0, 7.0))
        assert smoothed.iloc[6] == pytest.approx(4.0)
        assert smoothed.iloc[9] == pytest.approx(7.0)
        assert smoothed.name == "composite"

    def test_result_is_writable(self, series_factory):
        composite = series_factory(np.arange(1.0, 31.0), name="composite")
        smoothed = smooth_heat_index(composite, 28)

        values = smoothed.to_numpy(copy=True)
        values[0] = 0.0
        assert smoothed.iloc[27] == pytest.approx(14.5)
        assert composite.iloc[0] == 1.0

    def test_short_series(self, series_factory):
        composite = series_factory([5.0, 6.0])
        np.testing.assert_allclose(smooth_heat_index(composite, 28), [5.0, 6.0])

    def test_unsupported_period(self, series_factory):
        with pytest.raises(InvalidParameterError):
            smooth_heat_index(series_factory([1.0]), 14)

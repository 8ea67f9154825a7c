"""Tests for the rolling-window primitives."""

import numpy as np
import pytest

from stockscan.services.base import InsufficientDataError, MalformedSeriesError
from stockscan.services.indicators.series import (
    IndicatorSeries,
    atr,
    directional_movement,
    donchian_midpoint,
    ema,
    highest,
    lowest,
    rma,
    sma,
    true_range,
    wma,
)


class TestIndicatorSeries:
    """Tests for the not-yet-available prefix."""

    def test_prefix_reads_none(self):
        series = IndicatorSeries(np.array([1.0, 2.0]), 5)

        assert series.start == 3
        assert len(series) == 5
        assert series[0] is None
        assert series[2] is None
        assert series[3] == 1.0
        assert series[-1] == 2.0

    def test_latest_of_empty_is_none(self):
        series = IndicatorSeries(np.array([]), 4)
        assert series.latest() is None

    def test_to_list_pads_with_none(self):
        series = IndicatorSeries(np.array([1.234, 5.678]), 4)
        assert series.to_list(2) == [None, None, 1.23, 5.68]

    def test_index_out_of_range(self):
        series = IndicatorSeries(np.array([1.0]), 2)
        with pytest.raises(IndexError):
            series[2]

    def test_defined_longer_than_length_rejected(self):
        with pytest.raises(ValueError):
            IndicatorSeries(np.array([1.0, 2.0, 3.0]), 2)


class TestMovingAverages:
    """Tests for SMA/EMA/RMA/WMA."""

    def test_sma_basic(self):
        result = sma([float(i) for i in range(1, 11)], 3)

        assert result[1] is None
        assert result[2] == 2.0
        assert result[3] == 3.0
        assert result.defined_length == 8

    def test_sma_ema_agree_at_seed(self):
        values = [101.3, 99.8, 102.4, 100.1, 98.7, 103.9, 104.2, 101.1, 100.5, 99.9]
        for n in (3, 5, 9):
            assert sma(values, n)[n - 1] == ema(values, n)[n - 1]
            assert sma(values, n)[n - 1] == pytest.approx(sum(values[:n]) / n)

    def test_ema_recurrence(self):
        values = [float(i) for i in range(1, 11)]
        result = ema(values, 5)

        alpha = 2 / 6
        assert result[4] == 3.0
        assert result[5] == pytest.approx(alpha * 6 + (1 - alpha) * 3.0)

    def test_rma_recurrence(self):
        values = [2.0, 4.0, 6.0, 8.0]
        result = rma(values, 3)

        assert result[2] == 4.0
        assert result[3] == pytest.approx((4.0 * 2 + 8.0) / 3)

    def test_wma_weights_newest_most(self):
        result = wma([1.0, 2.0, 3.0], 3)
        assert result[2] == pytest.approx((1 * 1 + 2 * 2 + 3 * 3) / 6)

    @pytest.mark.parametrize("func", [sma, ema, rma, wma])
    def test_insufficient_data(self, func):
        with pytest.raises(InsufficientDataError) as exc_info:
            func([1.0, 2.0], 3)

        assert exc_info.value.required == 3
        assert exc_info.value.available == 2
        assert exc_info.value.reason == "insufficient_data"

    def test_deterministic(self):
        values = list(np.linspace(50, 75, 40))
        first = ema(values, 9).defined
        second = ema(values, 9).defined
        assert np.array_equal(first, second)


class TestWindowExtremes:
    """Tests for highest/lowest/donchian."""

    def test_window_includes_current_bar(self):
        values = [1.0, 5.0, 2.0, 3.0]

        assert highest(values, 2).to_list() == [None, 5.0, 5.0, 3.0]
        assert lowest(values, 2).to_list() == [None, 1.0, 2.0, 2.0]

    def test_donchian_midpoint(self):
        highs = [10.0, 12.0, 11.0]
        lows = [8.0, 9.0, 7.0]
        assert donchian_midpoint(highs, lows, 3).latest() == (12.0 + 7.0) / 2


class TestRangeAndDirection:
    """Tests for true range, directional movement and ATR."""

    def test_true_range_uses_previous_close(self):
        highs = [10.0, 15.0]
        lows = [9.0, 14.0]
        closes = [9.5, 14.5]

        result = true_range(highs, lows, closes)

        assert result.start == 1
        assert result.latest() == pytest.approx(15.0 - 9.5)

    def test_true_range_length_mismatch(self):
        with pytest.raises(MalformedSeriesError):
            true_range([1.0, 2.0], [1.0], [1.0, 2.0])

    def test_directional_movement(self):
        highs = [10.0, 12.0, 12.5]
        lows = [9.0, 9.5, 7.0]

        plus_dm, minus_dm = directional_movement(highs, lows)

        assert plus_dm.to_list() == [None, 2.0, 0.0]
        assert minus_dm.to_list() == [None, 0.0, 2.5]

    def test_atr_constant_range(self):
        highs = [102.0] * 20
        lows = [100.0] * 20
        closes = [101.0] * 20

        result = atr(highs, lows, closes, 9)

        assert result.start == 9
        assert result.latest() == pytest.approx(2.0)

    def test_atr_insufficient_data(self):
        with pytest.raises(InsufficientDataError):
            atr([102.0] * 14, [100.0] * 14, [101.0] * 14, 14)

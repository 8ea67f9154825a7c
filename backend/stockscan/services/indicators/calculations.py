"""
Technical Indicator Calculations

Pure Python/NumPy implementations of the screener's indicators, built on
the primitives in ``series``. All math is deterministic.

Every function raises InsufficientDataError when its input is shorter than
the documented minimum and returns IndicatorSeries aligned to the input.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from stockscan.services.indicators.series import (
    ArrayLike,
    IndicatorSeries,
    as_array,
    atr,
    directional_movement,
    donchian_midpoint,
    ema,
    highest,
    lowest,
    require_length,
    rma,
    sma,
    true_range,
    wma,
)


class MovingAverageKind(str, Enum):
    SMA = "SMA"
    EMA = "EMA"
    RMA = "RMA"
    SMMA = "SMMA"
    WMA = "WMA"


_MOVING_AVERAGES = {
    MovingAverageKind.SMA: sma,
    MovingAverageKind.EMA: ema,
    MovingAverageKind.RMA: rma,
    MovingAverageKind.SMMA: rma,
    MovingAverageKind.WMA: wma,
}


def moving_average(values: ArrayLike, length: int, kind: MovingAverageKind) -> IndicatorSeries:
    """Dispatch to the moving average named by ``kind``."""
    return _MOVING_AVERAGES[MovingAverageKind(kind)](values, length)


def _tail(series: IndicatorSeries, size: int) -> np.ndarray:
    return series.defined[len(series.defined) - size:]


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass(frozen=True, eq=False)
class MACDResult:
    macd: IndicatorSeries
    signal: IndicatorSeries
    histogram: IndicatorSeries


@dataclass(frozen=True, eq=False)
class ADXResult:
    adx: IndicatorSeries
    plus_di: IndicatorSeries
    minus_di: IndicatorSeries


@dataclass(frozen=True, eq=False)
class SupertrendResult:
    line: IndicatorSeries
    direction: IndicatorSeries  # +1 up, -1 down


@dataclass(frozen=True, eq=False)
class BollingerBandsResult:
    basis: IndicatorSeries
    upper: IndicatorSeries
    lower: IndicatorSeries


@dataclass(frozen=True, eq=False)
class VWAPResult:
    vwap: IndicatorSeries
    upper_bands: tuple[IndicatorSeries, ...]
    lower_bands: tuple[IndicatorSeries, ...]


@dataclass(frozen=True, eq=False)
class IchimokuResult:
    """
    Ichimoku lines in input coordinates.

    ``lagging_span`` holds the closes that sit ``displacement - 1`` bars
    behind the end, so its own length is ``n - displacement + 1``.
    """

    conversion_line: IndicatorSeries
    base_line: IndicatorSeries
    lead_line1: IndicatorSeries
    lead_line2: IndicatorSeries
    lagging_span: IndicatorSeries
    displacement: int

    @property
    def cloud_index(self) -> int:
        """Input index whose lead spans form the cloud under the latest bar."""
        return self.lead_line1.length - self.displacement

    def cloud_spans(self) -> tuple[Optional[float], Optional[float]]:
        """(span A, span B) under the latest bar, None where not yet available."""
        index = self.cloud_index
        if index < 0:
            return None, None
        return self.lead_line1[index], self.lead_line2[index]

    def lagging_reference(self) -> tuple[Optional[float], Optional[float]]:
        """(latest lagging value, close one bar before it)."""
        if self.lagging_span.defined_length < 2:
            return self.lagging_span.latest(), None
        return self.lagging_span[-1], self.lagging_span[-2]


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: ArrayLike, period: int = 14) -> IndicatorSeries:
    """
    Relative Strength Index.

    Gains/losses of the first ``period`` changes seed the averages; values
    are emitted from the first Wilder-smoothed step (index ``period + 1``).
    RSI is 100 whenever the average loss is zero.
    """
    data = as_array(closes)
    require_length("RSI", len(data), period + 2)

    deltas = np.diff(data)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(np.sum(gains[:period])) / period
    avg_loss = float(np.sum(losses[:period])) / period

    result = np.empty(len(deltas) - period)
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

        if avg_loss == 0:
            result[i - period] = 100.0
        else:
            rs = avg_gain / avg_loss
            result[i - period] = 100 - (100 / (1 + rs))

    return IndicatorSeries(result, len(data))


def macd(
    closes: ArrayLike,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
    source_ma: MovingAverageKind = MovingAverageKind.EMA,
    signal_ma: MovingAverageKind = MovingAverageKind.EMA,
) -> MACDResult:
    """
    MACD (Moving Average Convergence Divergence).

    The signal line averages only the defined MACD values.
    """
    data = as_array(closes)
    require_length("MACD", len(data), slow_period + signal_period)

    fast = moving_average(data, fast_period, source_ma)
    slow = moving_average(data, slow_period, source_ma)

    size = min(fast.defined_length, slow.defined_length)
    macd_line = IndicatorSeries(_tail(fast, size) - _tail(slow, size), len(data))

    signal = moving_average(macd_line.defined, signal_period, signal_ma).aligned_to(len(data))
    histogram = IndicatorSeries(
        _tail(macd_line, signal.defined_length) - signal.defined, len(data)
    )

    return MACDResult(macd=macd_line, signal=signal, histogram=histogram)


def williams_r(
    highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, length: int = 14
) -> IndicatorSeries:
    """Williams %R, 0 when the window has no range."""
    high, low, close = as_array(highs), as_array(lows), as_array(closes)
    require_length("WilliamsR", len(close), length)

    upper = highest(high, length).defined
    lower = lowest(low, length).defined
    span = upper - lower
    latest_close = close[length - 1:]

    result = np.divide(
        100 * (latest_close - upper), span, out=np.zeros_like(span), where=span != 0
    )
    return IndicatorSeries(result, len(close))


# =============================================================================
# TREND INDICATORS
# =============================================================================


def adx(
    highs: ArrayLike,
    lows: ArrayLike,
    closes: ArrayLike,
    di_length: int = 14,
    adx_length: int = 14,
) -> ADXResult:
    """
    Average Directional Index.

    TR and +DM/-DM are Wilder-smoothed over ``di_length``; ADX is the
    Wilder average of the defined DX values over ``adx_length``.
    """
    require_length("ADX", len(highs), di_length + adx_length)

    tr = true_range(highs, lows, closes)
    plus_dm, minus_dm = directional_movement(highs, lows)
    length = tr.length

    smoothed_tr = rma(tr.defined, di_length).defined
    smoothed_plus = rma(plus_dm.defined, di_length).defined
    smoothed_minus = rma(minus_dm.defined, di_length).defined

    zeros = np.zeros_like(smoothed_tr)
    plus_di = np.divide(100 * smoothed_plus, smoothed_tr, out=zeros.copy(), where=smoothed_tr != 0)
    minus_di = np.divide(100 * smoothed_minus, smoothed_tr, out=zeros.copy(), where=smoothed_tr != 0)

    di_sum = plus_di + minus_di
    dx = np.divide(
        100 * np.abs(plus_di - minus_di), di_sum, out=zeros.copy(), where=di_sum != 0
    )

    return ADXResult(
        adx=rma(dx, adx_length).aligned_to(length),
        plus_di=IndicatorSeries(plus_di, length),
        minus_di=IndicatorSeries(minus_di, length),
    )


def supertrend(
    highs: ArrayLike,
    lows: ArrayLike,
    closes: ArrayLike,
    atr_period: int = 10,
    factor: float = 3.0,
) -> SupertrendResult:
    """
    Supertrend.

    Bands sit ``factor * ATR`` around the bar midpoint. The lower band only
    ratchets up while price holds above it, the upper band only ratchets
    down while price holds below it, and direction flips when the close
    crosses the active band.
    """
    high, low, close = as_array(highs), as_array(lows), as_array(closes)
    require_length("Supertrend", len(close), atr_period + 1)

    atr_values = atr(high, low, close, atr_period).defined
    midpoint = (high[atr_period:] + low[atr_period:]) / 2
    basic_upper = midpoint + factor * atr_values
    basic_lower = midpoint - factor * atr_values

    size = len(atr_values)
    line = np.empty(size)
    direction = np.empty(size)

    final_upper = basic_upper[0]
    final_lower = basic_lower[0]
    line[0] = final_lower
    direction[0] = 1

    for j in range(1, size):
        i = j + atr_period
        prev_close = close[i - 1]

        if basic_upper[j] < final_upper or prev_close > final_upper:
            final_upper = basic_upper[j]
        if basic_lower[j] > final_lower or prev_close < final_lower:
            final_lower = basic_lower[j]

        if direction[j - 1] == 1:
            direction[j] = -1 if close[i] < final_lower else 1
        else:
            direction[j] = 1 if close[i] > final_upper else -1

        line[j] = final_lower if direction[j] == 1 else final_upper

    return SupertrendResult(
        line=IndicatorSeries(line, len(close)),
        direction=IndicatorSeries(direction, len(close)),
    )


def parabolic_sar(
    highs: ArrayLike,
    lows: ArrayLike,
    start: float = 0.02,
    increment: float = 0.02,
    maximum: float = 0.2,
) -> IndicatorSeries:
    """
    Parabolic Stop and Reverse.

    Begins long with SAR at the first low and the first high as extreme
    point. SAR never enters the prior two bars' range; a bar that
    penetrates it reverses the trend.
    """
    high, low = as_array(highs), as_array(lows)
    require_length("PSAR", len(high), 2)

    sar = np.empty(len(high))
    sar[0] = low[0]
    uptrend = True
    extreme = high[0]
    af = start

    for i in range(1, len(high)):
        value = sar[i - 1] + af * (extreme - sar[i - 1])
        prior = slice(max(i - 2, 0), i)

        if uptrend:
            value = min(value, low[prior].min())
            if low[i] < value:
                uptrend = False
                value = max(extreme, high[i], high[i - 1])
                extreme = low[i]
                af = start
            elif high[i] > extreme:
                extreme = high[i]
                af = min(af + increment, maximum)
        else:
            value = max(value, high[prior].max())
            if high[i] > value:
                uptrend = True
                value = min(extreme, low[i], low[i - 1])
                extreme = high[i]
                af = start
            elif low[i] < extreme:
                extreme = low[i]
                af = min(af + increment, maximum)

        sar[i] = value

    return IndicatorSeries(sar, len(high))


def ichimoku_cloud(
    highs: ArrayLike,
    lows: ArrayLike,
    closes: ArrayLike,
    conversion_periods: int = 9,
    base_periods: int = 26,
    lagging_span2_periods: int = 52,
    displacement: int = 26,
) -> IchimokuResult:
    """Ichimoku Kinko Hyo lines built from Donchian midpoints."""
    close = as_array(closes)
    require_length(
        "Ichimoku", len(close), max(conversion_periods, base_periods, lagging_span2_periods)
    )
    if displacement < 1 or displacement > len(close):
        raise ValueError(f"displacement {displacement} outside series of {len(close)}")

    conversion = donchian_midpoint(highs, lows, conversion_periods)
    base = donchian_midpoint(highs, lows, base_periods)

    size = min(conversion.defined_length, base.defined_length)
    lead1 = IndicatorSeries((_tail(conversion, size) + _tail(base, size)) / 2, len(close))
    lead2 = donchian_midpoint(highs, lows, lagging_span2_periods)

    lagging_values = close[: len(close) - displacement + 1]
    lagging = IndicatorSeries(lagging_values, len(lagging_values))

    return IchimokuResult(
        conversion_line=conversion,
        base_line=base,
        lead_line1=lead1,
        lead_line2=lead2,
        lagging_span=lagging,
        displacement=displacement,
    )


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def bollinger_bands(
    source: ArrayLike,
    length: int = 20,
    ma_kind: MovingAverageKind = MovingAverageKind.SMA,
    mult: float = 2.0,
) -> BollingerBandsResult:
    """
    Bollinger Bands.

    Deviation is the population standard deviation of each window measured
    around the basis.
    """
    data = as_array(source)
    require_length("BollingerBands", len(data), length)

    basis = moving_average(data, length, ma_kind)
    windows = sliding_window_view(data, length)
    deviation = mult * np.sqrt(np.mean((windows - basis.defined[:, None]) ** 2, axis=1))

    return BollingerBandsResult(
        basis=basis,
        upper=IndicatorSeries(basis.defined + deviation, len(data)),
        lower=IndicatorSeries(basis.defined - deviation, len(data)),
    )


# =============================================================================
# VOLUME INDICATORS
# =============================================================================


class VWAPBandMode(str, Enum):
    STANDARD_DEVIATION = "Standard Deviation"
    PERCENTAGE = "Percentage"


def vwap(
    highs: ArrayLike,
    lows: ArrayLike,
    closes: ArrayLike,
    volumes: ArrayLike,
    band_mode: VWAPBandMode = VWAPBandMode.STANDARD_DEVIATION,
    band_multipliers: tuple[float, ...] = (1.0, 2.0, 3.0),
) -> VWAPResult:
    """
    Cumulative Volume Weighted Average Price with bands.

    Bands start at the second bar. Their basis is either the standard
    deviation of all typical prices so far around the VWAP, or 1% of VWAP.
    """
    high, low, close, volume = (as_array(a) for a in (highs, lows, closes, volumes))
    require_length("VWAP", len(close), 1)

    typical = (high + low + close) / 3
    cumulative_pv = np.cumsum(typical * volume)
    cumulative_volume = np.cumsum(volume)
    values = np.divide(
        cumulative_pv, cumulative_volume, out=typical.copy(), where=cumulative_volume != 0
    )

    use_deviation = VWAPBandMode(band_mode) is VWAPBandMode.STANDARD_DEVIATION
    basis = np.empty(len(close) - 1)
    for i in range(1, len(close)):
        if use_deviation:
            basis[i - 1] = np.sqrt(np.mean((typical[: i + 1] - values[i]) ** 2))
        else:
            basis[i - 1] = values[i] * 0.01

    upper = tuple(
        IndicatorSeries(values[1:] + basis * mult, len(close)) for mult in band_multipliers
    )
    lower = tuple(
        IndicatorSeries(values[1:] - basis * mult, len(close)) for mult in band_multipliers
    )

    return VWAPResult(
        vwap=IndicatorSeries(values, len(close)), upper_bands=upper, lower_bands=lower
    )


__all__ = [
    "MovingAverageKind",
    "VWAPBandMode",
    "MACDResult",
    "ADXResult",
    "SupertrendResult",
    "BollingerBandsResult",
    "VWAPResult",
    "IchimokuResult",
    "moving_average",
    "rsi",
    "macd",
    "adx",
    "supertrend",
    "bollinger_bands",
    "vwap",
    "williams_r",
    "parabolic_sar",
    "ichimoku_cloud",
    "atr",
    "ema",
    "sma",
]

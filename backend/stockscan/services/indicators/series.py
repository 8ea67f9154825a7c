"""
Series Primitives

Rolling-window building blocks shared by every indicator.
Pure NumPy, deterministic, no hidden state.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from stockscan.services.base import InsufficientDataError, MalformedSeriesError

ArrayLike = Union[Sequence[float], np.ndarray]


@dataclass(frozen=True, eq=False)
class IndicatorSeries:
    """
    Indicator values aligned to the tail of their input.

    Only the defined values are stored. Positions before ``start`` have not
    filled their window yet and read back as ``None``; they are never
    padded with zero or NaN.
    """

    defined: np.ndarray
    length: int

    def __post_init__(self):
        if len(self.defined) > self.length:
            raise ValueError(
                f"{len(self.defined)} defined values do not fit a series of {self.length}"
            )

    @property
    def start(self) -> int:
        """Index of the first defined value, in input coordinates."""
        return self.length - len(self.defined)

    @property
    def defined_length(self) -> int:
        return len(self.defined)

    def __len__(self) -> int:
        return self.length

    def __getitem__(self, index: int) -> Optional[float]:
        position = index + self.length if index < 0 else index
        if position < 0 or position >= self.length:
            raise IndexError(f"index {index} out of range for length {self.length}")
        if position < self.start:
            return None
        return float(self.defined[position - self.start])

    def latest(self) -> Optional[float]:
        """Last defined value, or None if the window never filled."""
        if len(self.defined) == 0:
            return None
        return float(self.defined[-1])

    def aligned_to(self, length: int) -> "IndicatorSeries":
        """Re-anchor the defined tail onto a longer input."""
        return IndicatorSeries(self.defined, length)

    def to_list(self, ndigits: Optional[int] = None) -> list[Optional[float]]:
        """Full-length list with None for the unfilled prefix."""
        values = [float(v) for v in self.defined]
        if ndigits is not None:
            values = [round(v, ndigits) for v in values]
        return [None] * self.start + values


def as_array(values: ArrayLike) -> np.ndarray:
    """Coerce input prices to a float64 array."""
    return np.asarray(values, dtype=np.float64)


def require_length(indicator: str, available: int, required: int) -> None:
    """Raise InsufficientDataError when fewer than ``required`` points exist."""
    if available < required:
        raise InsufficientDataError(indicator, required, available)


def _check_window(indicator: str, data: np.ndarray, length: int) -> None:
    if length < 1:
        raise ValueError(f"{indicator} length must be positive, got {length}")
    require_length(indicator, len(data), length)


def _seed_mean(data: np.ndarray, length: int) -> float:
    """Plain mean of the first ``length`` values (shared seed for SMA/EMA/RMA)."""
    return float(np.sum(data[:length])) / length


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(values: ArrayLike, length: int) -> IndicatorSeries:
    """Simple Moving Average, maintained as a running window sum."""
    data = as_array(values)
    _check_window("SMA", data, length)

    result = np.empty(len(data) - length + 1)
    window_sum = float(np.sum(data[:length]))
    result[0] = window_sum / length

    for i in range(length, len(data)):
        window_sum = window_sum - data[i - length] + data[i]
        result[i - length + 1] = window_sum / length

    return IndicatorSeries(result, len(data))


def ema(values: ArrayLike, length: int) -> IndicatorSeries:
    """Exponential Moving Average seeded with the SMA of the first window."""
    data = as_array(values)
    _check_window("EMA", data, length)

    alpha = 2 / (length + 1)
    result = np.empty(len(data) - length + 1)
    result[0] = _seed_mean(data, length)

    for i in range(length, len(data)):
        j = i - length + 1
        result[j] = alpha * data[i] + (1 - alpha) * result[j - 1]

    return IndicatorSeries(result, len(data))


def rma(values: ArrayLike, length: int) -> IndicatorSeries:
    """Wilder's running moving average (smoothing factor 1/length)."""
    data = as_array(values)
    _check_window("RMA", data, length)

    result = np.empty(len(data) - length + 1)
    result[0] = _seed_mean(data, length)

    for i in range(length, len(data)):
        j = i - length + 1
        result[j] = (result[j - 1] * (length - 1) + data[i]) / length

    return IndicatorSeries(result, len(data))


def wma(values: ArrayLike, length: int) -> IndicatorSeries:
    """Linearly weighted moving average, newest bar weighted ``length``."""
    data = as_array(values)
    _check_window("WMA", data, length)

    weights = np.arange(1, length + 1, dtype=np.float64)
    windows = sliding_window_view(data, length)
    result = windows @ weights / weights.sum()

    return IndicatorSeries(result, len(data))


# =============================================================================
# WINDOW EXTREMES
# =============================================================================


def highest(values: ArrayLike, length: int) -> IndicatorSeries:
    """Rolling maximum over a window that includes the current bar."""
    data = as_array(values)
    _check_window("Highest", data, length)
    return IndicatorSeries(sliding_window_view(data, length).max(axis=1), len(data))


def lowest(values: ArrayLike, length: int) -> IndicatorSeries:
    """Rolling minimum over a window that includes the current bar."""
    data = as_array(values)
    _check_window("Lowest", data, length)
    return IndicatorSeries(sliding_window_view(data, length).min(axis=1), len(data))


def donchian_midpoint(highs: ArrayLike, lows: ArrayLike, length: int) -> IndicatorSeries:
    """(highest high + lowest low) / 2 over the window."""
    upper = highest(highs, length)
    lower = lowest(lows, length)
    return IndicatorSeries((upper.defined + lower.defined) / 2, upper.length)


# =============================================================================
# RANGE AND DIRECTION
# =============================================================================


def true_range(highs: ArrayLike, lows: ArrayLike, closes: ArrayLike) -> IndicatorSeries:
    """
    True Range from the second bar onward.

    max(high - low, |high - prev close|, |low - prev close|)
    """
    high, low, close = as_array(highs), as_array(lows), as_array(closes)
    if not len(high) == len(low) == len(close):
        raise MalformedSeriesError("high, low and close must have equal length")
    require_length("TrueRange", len(high), 2)

    prev_close = close[:-1]
    result = np.maximum.reduce([
        high[1:] - low[1:],
        np.abs(high[1:] - prev_close),
        np.abs(low[1:] - prev_close),
    ])
    return IndicatorSeries(result, len(high))


def directional_movement(
    highs: ArrayLike, lows: ArrayLike
) -> tuple[IndicatorSeries, IndicatorSeries]:
    """
    Directional Movement from the second bar onward.

    Returns: (plus_dm, minus_dm)
    """
    high, low = as_array(highs), as_array(lows)
    if len(high) != len(low):
        raise MalformedSeriesError("high and low must have equal length")
    require_length("DirectionalMovement", len(high), 2)

    up = high[1:] - high[:-1]
    down = low[:-1] - low[1:]

    plus_dm = np.where((up > down) & (up > 0), up, 0.0)
    minus_dm = np.where((down > up) & (down > 0), down, 0.0)

    return IndicatorSeries(plus_dm, len(high)), IndicatorSeries(minus_dm, len(high))


def atr(
    highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 14
) -> IndicatorSeries:
    """
    Average True Range.

    Seeded with the plain average of the first ``period`` true ranges, then
    Wilder-smoothed. First defined at index ``period``.
    """
    require_length("ATR", len(highs), period + 1)
    tr = true_range(highs, lows, closes)
    return rma(tr.defined, period).aligned_to(tr.length)

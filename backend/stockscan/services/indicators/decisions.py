"""
Decision Rules

One rule per indicator, mapping the latest value(s) and latest close to a
five-level Decision. Every rule returns None when an input it needs is
unavailable, which is distinct from Decision.NEUTRAL.
"""

from typing import Optional

from stockscan.schemas.indicators import Decision


def rsi_decision(rsi: Optional[float]) -> Optional[Decision]:
    if rsi is None:
        return None
    if rsi < 20:
        return Decision.STRONG_BUY
    if rsi < 30:
        return Decision.BUY
    if rsi > 80:
        return Decision.STRONG_SELL
    if rsi > 70:
        return Decision.SELL
    return Decision.NEUTRAL


def moving_average_decision(
    price: float,
    average: Optional[float],
    upper: float = 1.05,
    lower: float = 0.95,
) -> Optional[Decision]:
    """
    Price-versus-average rule shared by EMA, SMA and VWAP.

    EMA/SMA use 1.05/0.95; VWAP uses 1.03/0.97.
    """
    if average is None:
        return None
    if price > average * upper:
        return Decision.STRONG_BUY
    if price > average:
        return Decision.BUY
    if price < average * lower:
        return Decision.STRONG_SELL
    if price < average:
        return Decision.SELL
    return Decision.NEUTRAL


def macd_decision(macd: Optional[float], signal: Optional[float]) -> Optional[Decision]:
    if macd is None or signal is None:
        return None

    diff = macd - signal
    if macd > signal and macd > 0 and diff > abs(macd) * 0.1:
        return Decision.STRONG_BUY
    if macd > signal:
        return Decision.BUY
    if macd < signal and macd < 0 and abs(diff) > abs(macd) * 0.1:
        return Decision.STRONG_SELL
    if macd < signal:
        return Decision.SELL
    return Decision.NEUTRAL


def adx_decision(
    adx: Optional[float], plus_di: Optional[float], minus_di: Optional[float]
) -> Optional[Decision]:
    if adx is None or plus_di is None or minus_di is None:
        return None
    if adx > 40 and plus_di > minus_di:
        return Decision.STRONG_BUY
    if adx > 25 and plus_di > minus_di:
        return Decision.BUY
    if adx > 40 and minus_di > plus_di:
        return Decision.STRONG_SELL
    if adx > 25 and minus_di > plus_di:
        return Decision.SELL
    return Decision.NEUTRAL


def supertrend_decision(
    price: float, line: Optional[float], direction: Optional[int]
) -> Optional[Decision]:
    if line is None or direction is None:
        return None
    if direction == 1 and price > line:
        return Decision.BUY
    if direction == -1 and price < line:
        return Decision.SELL
    return Decision.NEUTRAL


def bollinger_decision(
    price: float,
    basis: Optional[float],
    upper: Optional[float],
    lower: Optional[float],
) -> Optional[Decision]:
    """``basis`` is the middle band the outer bands were built around."""
    if basis is None or upper is None or lower is None:
        return None

    if price < lower:
        return Decision.STRONG_BUY
    if price > upper:
        return Decision.STRONG_SELL
    if price < basis:
        return Decision.SELL
    if price > basis:
        return Decision.BUY
    return Decision.NEUTRAL


def vwap_decision(price: float, vwap: Optional[float]) -> Optional[Decision]:
    return moving_average_decision(price, vwap, upper=1.03, lower=0.97)


def williams_r_decision(williams_r: Optional[float]) -> Optional[Decision]:
    if williams_r is None:
        return None
    if williams_r > -20:
        return Decision.STRONG_SELL
    if williams_r > -30:
        return Decision.SELL
    if williams_r < -80:
        return Decision.STRONG_BUY
    if williams_r < -70:
        return Decision.BUY
    return Decision.NEUTRAL


def psar_decision(
    price: float, sar: Optional[float], previous_close: Optional[float]
) -> Optional[Decision]:
    if sar is None or previous_close is None:
        return None
    if price > sar and sar < previous_close:
        return Decision.BUY
    if price < sar and sar > previous_close:
        return Decision.SELL
    return Decision.NEUTRAL


def ichimoku_decision(
    price: float,
    conversion: Optional[float],
    base: Optional[float],
    span_a: Optional[float],
    span_b: Optional[float],
    lagging: Optional[float],
    lagging_reference: Optional[float],
) -> Optional[Decision]:
    """
    Cloud position plus conversion/base cross, confirmed by the lagging span.

    ``lagging_reference`` is the close one bar before the lagging value.
    """
    inputs = (conversion, base, span_a, span_b, lagging, lagging_reference)
    if any(value is None for value in inputs):
        return None

    cloud_top = max(span_a, span_b)
    cloud_bottom = min(span_a, span_b)

    if price > cloud_top and conversion > base:
        if lagging > lagging_reference:
            return Decision.STRONG_BUY
        return Decision.BUY
    if price < cloud_bottom and conversion < base:
        if lagging < lagging_reference:
            return Decision.STRONG_SELL
        return Decision.SELL
    return Decision.NEUTRAL


def atr_decision(price: float, atr: Optional[float], ema9: Optional[float]) -> Optional[Decision]:
    """Volatility only confirms the trend given by price versus EMA(9)."""
    if atr is None or ema9 is None:
        return None
    if atr < price * 0.01:
        return Decision.NEUTRAL
    if price > ema9 and atr > price * 0.02:
        return Decision.BUY
    if price < ema9 and atr > price * 0.02:
        return Decision.SELL
    return Decision.NEUTRAL

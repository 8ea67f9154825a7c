"""
Indicator Registry

One static entry per indicator carrying its weight, critical flag, minimum
length, compute function, latest-value extractor and decision rule. The
pipeline iterates REGISTRY in order; nothing is looked up by display name.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from stockscan.schemas.indicators import Decision, IndicatorName
from stockscan.services.indicators import calculations as calc
from stockscan.services.indicators import decisions as rules
from stockscan.services.indicators.aggregator import WEIGHTS


@dataclass(frozen=True, eq=False)
class PriceArrays:
    """Parallel float arrays of one instrument, oldest first."""

    opens: np.ndarray
    highs: np.ndarray
    lows: np.ndarray
    closes: np.ndarray
    volumes: np.ndarray

    def __len__(self) -> int:
        return len(self.closes)


@dataclass(frozen=True)
class DecisionContext:
    """Values several rules read besides their own indicator."""

    price: float
    previous_close: Optional[float]
    ema9: Optional[float]


LatestValues = dict[str, Optional[float]]


@dataclass(frozen=True)
class IndicatorSpec:
    name: IndicatorName
    weight: float
    critical: bool
    min_length: int
    compute: Callable[[PriceArrays], Any]
    extract: Callable[[Any], LatestValues]
    decide: Callable[[Any, DecisionContext], Optional[Decision]]


def _direction(result: calc.SupertrendResult) -> Optional[int]:
    value = result.direction.latest()
    return None if value is None else int(value)


def _ichimoku_values(result: calc.IchimokuResult) -> LatestValues:
    span_a, span_b = result.cloud_spans()
    return {
        "latest_tenkan_sen": result.conversion_line.latest(),
        "latest_kijun_sen": result.base_line.latest(),
        "latest_senkou_span_a": span_a,
        "latest_senkou_span_b": span_b,
        "latest_chikou_span": result.lagging_span.latest(),
    }


def _ichimoku_decision(
    result: calc.IchimokuResult, ctx: DecisionContext
) -> Optional[Decision]:
    span_a, span_b = result.cloud_spans()
    lagging, reference = result.lagging_reference()
    return rules.ichimoku_decision(
        ctx.price,
        result.conversion_line.latest(),
        result.base_line.latest(),
        span_a,
        span_b,
        lagging,
        reference,
    )


# =============================================================================
# REGISTRY
# =============================================================================


REGISTRY: tuple[IndicatorSpec, ...] = (
    IndicatorSpec(
        name=IndicatorName.RSI,
        weight=WEIGHTS[IndicatorName.RSI],
        critical=True,
        min_length=16,
        compute=lambda p: calc.rsi(p.closes, 14),
        extract=lambda r: {"latest_rsi": r.latest()},
        decide=lambda r, ctx: rules.rsi_decision(r.latest()),
    ),
    IndicatorSpec(
        name=IndicatorName.EMA,
        weight=WEIGHTS[IndicatorName.EMA],
        critical=False,
        min_length=9,
        compute=lambda p: calc.ema(p.closes, 9),
        extract=lambda r: {"latest_ema9": r.latest()},
        decide=lambda r, ctx: rules.moving_average_decision(ctx.price, r.latest()),
    ),
    IndicatorSpec(
        name=IndicatorName.SMA,
        weight=WEIGHTS[IndicatorName.SMA],
        critical=False,
        min_length=20,
        compute=lambda p: calc.sma(p.closes, 20),
        extract=lambda r: {"latest_sma20": r.latest()},
        decide=lambda r, ctx: rules.moving_average_decision(ctx.price, r.latest()),
    ),
    IndicatorSpec(
        name=IndicatorName.MACD,
        weight=WEIGHTS[IndicatorName.MACD],
        critical=True,
        min_length=35,
        compute=lambda p: calc.macd(p.closes, 12, 26, 9),
        extract=lambda r: {
            "latest_macd": r.macd.latest(),
            "latest_signal": r.signal.latest(),
        },
        decide=lambda r, ctx: rules.macd_decision(r.macd.latest(), r.signal.latest()),
    ),
    IndicatorSpec(
        name=IndicatorName.ADX,
        weight=WEIGHTS[IndicatorName.ADX],
        critical=True,
        min_length=28,
        compute=lambda p: calc.adx(p.highs, p.lows, p.closes, 14, 14),
        extract=lambda r: {
            "latest_adx": r.adx.latest(),
            "latest_plus_di": r.plus_di.latest(),
            "latest_minus_di": r.minus_di.latest(),
        },
        decide=lambda r, ctx: rules.adx_decision(
            r.adx.latest(), r.plus_di.latest(), r.minus_di.latest()
        ),
    ),
    IndicatorSpec(
        name=IndicatorName.SUPERTREND,
        weight=WEIGHTS[IndicatorName.SUPERTREND],
        critical=True,
        min_length=11,
        compute=lambda p: calc.supertrend(p.highs, p.lows, p.closes, 10, 3.0),
        extract=lambda r: {
            "latest_supertrend": r.line.latest(),
            "latest_supertrend_direction": _direction(r),
        },
        decide=lambda r, ctx: rules.supertrend_decision(ctx.price, r.line.latest(), _direction(r)),
    ),
    IndicatorSpec(
        name=IndicatorName.BOLLINGER_BANDS,
        weight=WEIGHTS[IndicatorName.BOLLINGER_BANDS],
        critical=False,
        min_length=20,
        compute=lambda p: calc.bollinger_bands(p.closes, 20, calc.MovingAverageKind.SMA, 2.0),
        extract=lambda r: {
            "latest_upper_band": r.upper.latest(),
            "latest_lower_band": r.lower.latest(),
        },
        decide=lambda r, ctx: rules.bollinger_decision(
            ctx.price, r.basis.latest(), r.upper.latest(), r.lower.latest()
        ),
    ),
    IndicatorSpec(
        name=IndicatorName.VWAP,
        weight=WEIGHTS[IndicatorName.VWAP],
        critical=False,
        min_length=1,
        compute=lambda p: calc.vwap(p.highs, p.lows, p.closes, p.volumes),
        extract=lambda r: {"latest_vwap": r.vwap.latest()},
        decide=lambda r, ctx: rules.vwap_decision(ctx.price, r.vwap.latest()),
    ),
    IndicatorSpec(
        name=IndicatorName.WILLIAMS_R,
        weight=WEIGHTS[IndicatorName.WILLIAMS_R],
        critical=False,
        min_length=14,
        compute=lambda p: calc.williams_r(p.highs, p.lows, p.closes, 14),
        extract=lambda r: {"latest_williams_r": r.latest()},
        decide=lambda r, ctx: rules.williams_r_decision(r.latest()),
    ),
    IndicatorSpec(
        name=IndicatorName.PSAR,
        weight=WEIGHTS[IndicatorName.PSAR],
        critical=False,
        min_length=2,
        compute=lambda p: calc.parabolic_sar(p.highs, p.lows, 0.02, 0.02, 0.2),
        extract=lambda r: {"latest_psar": r.latest()},
        decide=lambda r, ctx: rules.psar_decision(ctx.price, r.latest(), ctx.previous_close),
    ),
    IndicatorSpec(
        name=IndicatorName.ICHIMOKU,
        weight=WEIGHTS[IndicatorName.ICHIMOKU],
        critical=False,
        min_length=52,
        compute=lambda p: calc.ichimoku_cloud(p.highs, p.lows, p.closes, 9, 26, 52, 26),
        extract=_ichimoku_values,
        decide=_ichimoku_decision,
    ),
    IndicatorSpec(
        name=IndicatorName.ATR,
        weight=WEIGHTS[IndicatorName.ATR],
        critical=False,
        min_length=15,
        compute=lambda p: calc.atr(p.highs, p.lows, p.closes, 14),
        extract=lambda r: {"latest_atr": r.latest()},
        decide=lambda r, ctx: rules.atr_decision(ctx.price, r.latest(), ctx.ema9),
    ),
)

CRITICAL_INDICATORS = frozenset(spec.name for spec in REGISTRY if spec.critical)

# Longest window among the registry entries; the full scan gates on it.
FULL_MODE_MIN_LENGTH = max(spec.min_length for spec in REGISTRY)

"""
Per-Instrument Pipeline

Pending -> Validated -> Computed -> Emitted, or Skipped with a reason.

One instrument is analysed in isolation. Every failure ends in a skip
record; nothing raised inside the pipeline escapes it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

import numpy as np

from stockscan.schemas.indicators import (
    ComputationMode,
    Decision,
    IndicatorName,
    SkippedInstrument,
    SkipReason,
    StockDecision,
)
from stockscan.schemas.market import InstrumentSeries
from stockscan.services.base import (
    IdentityMissingError,
    IndicatorError,
    InsufficientDataError,
    MalformedSeriesError,
)
from stockscan.services.indicators.aggregator import ALL_INDICATORS, aggregate
from stockscan.services.indicators.registry import (
    FULL_MODE_MIN_LENGTH,
    REGISTRY,
    DecisionContext,
    LatestValues,
    PriceArrays,
)

logger = logging.getLogger(__name__)

PRECISION = 2


class InstrumentState(str, Enum):
    PENDING = "Pending"
    VALIDATED = "Validated"
    COMPUTED = "Computed"
    EMITTED = "Emitted"
    SKIPPED = "Skipped"


@dataclass
class InstrumentAnalysis:
    """Everything the pipeline derived for one emitted instrument."""

    instrument_id: int
    latest_price: float
    latest_open: float
    latest_date: Optional[datetime]
    latest: LatestValues
    decisions: dict[IndicatorName, Optional[Decision]]
    selected: list[IndicatorName]
    score: float
    decision: Decision
    ema9: list[Optional[float]] = field(default_factory=list)
    sma20: list[Optional[float]] = field(default_factory=list)

    @property
    def unavailable(self) -> list[IndicatorName]:
        return [name for name, decision in self.decisions.items() if decision is None]

    def decision_map(self) -> dict[str, Optional[Decision]]:
        return {name.value: decision for name, decision in self.decisions.items()}

    def to_stock_decision(self, series: InstrumentSeries) -> StockDecision:
        return StockDecision(
            scripcode=series.instrument_id,
            symbol=series.symbol,
            company_name=series.company_name,
            industry=series.industry,
            short_name=series.short_name,
            latest_price=self.latest_price,
            latest_open=self.latest_open,
            score=self.score,
            decision=self.decision,
            indicator_decisions=self.decision_map(),
            selected_indicators=[name.value for name in self.selected],
            unavailable_indicators=[name.value for name in self.unavailable],
            latest_date=self.latest_date,
            ema9=self.ema9,
            sma20=self.sma20,
            dates=list(series.dates),
            closes=[round(c, PRECISION) for c in series.closes],
            **self.latest,
        )


@dataclass
class PipelineOutcome:
    instrument_id: int
    state: InstrumentState
    analysis: Optional[InstrumentAnalysis] = None
    skipped: Optional[SkippedInstrument] = None

    @property
    def emitted(self) -> bool:
        return self.state is InstrumentState.EMITTED


# =============================================================================
# STAGES
# =============================================================================


def _validate(series: InstrumentSeries, mode: ComputationMode) -> PriceArrays:
    """Pending -> Validated: identity, shape, then length gate."""
    if not series.has_identity:
        raise IdentityMissingError(
            f"instrument {series.instrument_id} has no symbol or company name"
        )

    lengths = {
        "dates": len(series.dates),
        "opens": len(series.opens),
        "highs": len(series.highs),
        "lows": len(series.lows),
        "closes": len(series.closes),
        "volumes": len(series.volumes),
    }
    if len(set(lengths.values())) != 1:
        raise MalformedSeriesError(f"array lengths differ: {lengths}", lengths)

    arrays = PriceArrays(
        opens=np.asarray(series.opens, dtype=np.float64),
        highs=np.asarray(series.highs, dtype=np.float64),
        lows=np.asarray(series.lows, dtype=np.float64),
        closes=np.asarray(series.closes, dtype=np.float64),
        volumes=np.asarray(series.volumes, dtype=np.float64),
    )
    for name in ("opens", "highs", "lows", "closes", "volumes"):
        if not np.all(np.isfinite(getattr(arrays, name))):
            raise MalformedSeriesError(f"{name} contain non-finite values")

    if ComputationMode(mode) is ComputationMode.FULL:
        if len(arrays) < FULL_MODE_MIN_LENGTH:
            raise InsufficientDataError("FullScan", FULL_MODE_MIN_LENGTH, len(arrays))

    return arrays


def _compute(arrays: PriceArrays, instrument_id: int) -> dict[IndicatorName, Any]:
    """Validated -> Computed. Non-critical shortfalls become None."""
    results: dict[IndicatorName, Any] = {}

    with np.errstate(divide="raise", invalid="raise", over="raise"):
        for spec in REGISTRY:
            try:
                results[spec.name] = spec.compute(arrays)
            except InsufficientDataError as e:
                if spec.critical:
                    raise
                logger.debug(
                    f"{spec.name.value} unavailable for instrument {instrument_id}: {e.message}"
                )
                results[spec.name] = None

    return results


def _round(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(value, PRECISION)


def _emit(
    series: InstrumentSeries,
    arrays: PriceArrays,
    results: dict[IndicatorName, Any],
    selected: frozenset[IndicatorName],
) -> InstrumentAnalysis:
    """Computed -> Emitted: latest values, decisions, weighted score."""
    closes = arrays.closes
    ema_result = results[IndicatorName.EMA]
    sma_result = results[IndicatorName.SMA]

    ctx = DecisionContext(
        price=float(closes[-1]),
        previous_close=float(closes[-2]) if len(closes) >= 2 else None,
        ema9=ema_result.latest() if ema_result is not None else None,
    )

    latest: LatestValues = {}
    decisions: dict[IndicatorName, Optional[Decision]] = {}
    for spec in REGISTRY:
        result = results[spec.name]
        if result is None:
            decisions[spec.name] = None
            continue
        for key, value in spec.extract(result).items():
            latest[key] = value if isinstance(value, int) else _round(value)
        decisions[spec.name] = spec.decide(result, ctx)

    score, overall = aggregate(decisions, selected)
    unfilled = [None] * len(closes)

    return InstrumentAnalysis(
        instrument_id=series.instrument_id,
        latest_price=round(ctx.price, PRECISION),
        latest_open=round(float(arrays.opens[-1]), PRECISION),
        latest_date=series.dates[-1] if series.dates else None,
        latest=latest,
        decisions=decisions,
        selected=[name for name in IndicatorName if name in selected],
        score=round(score, PRECISION),
        decision=overall,
        ema9=ema_result.to_list(PRECISION) if ema_result is not None else unfilled,
        sma20=sma_result.to_list(PRECISION) if sma_result is not None else list(unfilled),
    )


def _skip(instrument_id: int, reason: SkipReason, detail: str) -> PipelineOutcome:
    logger.info(f"Skipping instrument {instrument_id}: {reason.value} ({detail})")
    return PipelineOutcome(
        instrument_id=instrument_id,
        state=InstrumentState.SKIPPED,
        skipped=SkippedInstrument(instrument_id=instrument_id, reason=reason, detail=detail),
    )


# =============================================================================
# ENTRY POINT
# =============================================================================


def analyze_instrument(
    series: InstrumentSeries,
    selected: Optional[Iterable[IndicatorName]] = None,
    mode: ComputationMode = ComputationMode.FULL,
) -> PipelineOutcome:
    """
    Run one instrument through the pipeline.

    Args:
        series: Price history of one instrument
        selected: Indicators that take part in the score (default: all twelve)
        mode: FULL gates on the longest indicator window; PARTIAL does not

    Returns:
        PipelineOutcome in state EMITTED or SKIPPED
    """
    instrument_id = series.instrument_id
    selection = ALL_INDICATORS if selected is None else frozenset(selected)
    state = InstrumentState.PENDING

    try:
        arrays = _validate(series, mode)
        state = InstrumentState.VALIDATED

        results = _compute(arrays, instrument_id)
        state = InstrumentState.COMPUTED

        analysis = _emit(series, arrays, results, selection)
    except IndicatorError as e:
        return _skip(instrument_id, SkipReason(e.reason), e.message)
    except FloatingPointError as e:
        logger.warning(f"Numeric error for instrument {instrument_id} in state {state.value}: {e}")
        return _skip(instrument_id, SkipReason.COMPUTATION_ERROR, str(e))
    except Exception as e:
        logger.exception(f"Unexpected error for instrument {instrument_id} in state {state.value}")
        return _skip(instrument_id, SkipReason.COMPUTATION_ERROR, str(e))

    return PipelineOutcome(
        instrument_id=instrument_id,
        state=InstrumentState.EMITTED,
        analysis=analysis,
    )

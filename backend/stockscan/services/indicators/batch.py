"""
Batch Driver

Groups pre-sorted rows by instrument, runs the pipeline over each group
and collects records in ascending instrument order. Also hosts the
fundamentals merge, which reuses the same pipeline in PARTIAL mode.
"""

import concurrent.futures
import functools
import logging
from typing import Iterable, Optional, Sequence

from stockscan.schemas.indicators import (
    ComputationMode,
    FundamentalsDecision,
    IndicatorName,
    ScanReport,
    SkipReason,
)
from stockscan.schemas.market import FundamentalsRow, InstrumentSeries, PriceRow
from stockscan.services.indicators.aggregator import ALL_INDICATORS
from stockscan.services.indicators.pipeline import (
    PipelineOutcome,
    analyze_instrument,
)

logger = logging.getLogger(__name__)


def group_rows(
    rows: Iterable[PriceRow],
    identities: Optional[dict[int, FundamentalsRow]] = None,
) -> list[InstrumentSeries]:
    """
    Group rows into one series per instrument, ascending by instrument id.

    Row order inside an instrument is kept as delivered.
    """
    grouped: dict[int, list[PriceRow]] = {}
    for row in rows:
        grouped.setdefault(row.instrument_id, []).append(row)

    identities = identities or {}
    return [
        InstrumentSeries.from_rows(instrument_id, grouped[instrument_id], identities.get(instrument_id))
        for instrument_id in sorted(grouped)
    ]


def _analyze_all(
    series_list: Sequence[InstrumentSeries],
    selected: frozenset[IndicatorName],
    mode: ComputationMode,
    max_workers: int,
) -> list[PipelineOutcome]:
    """Outcomes in the order of ``series_list`` whatever the completion order."""
    analyze = functools.partial(analyze_instrument, selected=selected, mode=mode)

    if max_workers <= 1 or len(series_list) <= 1:
        return [analyze(s) for s in series_list]

    outcomes: dict[int, PipelineOutcome] = {}
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(analyze, series): index
            for index, series in enumerate(series_list)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            outcomes[future_to_index[future]] = future.result()

    return [outcomes[index] for index in range(len(series_list))]


def run_batch(
    rows: Iterable[PriceRow],
    selected: Optional[Iterable[IndicatorName]] = None,
    mode: ComputationMode = ComputationMode.FULL,
    max_workers: int = 1,
) -> ScanReport:
    """
    Analyse every instrument found in ``rows``.

    Skipped instruments never abort the run; they are listed in
    ``ScanReport.skipped``.
    """
    selection = ALL_INDICATORS if selected is None else frozenset(selected)
    series_list = group_rows(rows)

    report = ScanReport()
    for series, outcome in zip(series_list, _analyze_all(series_list, selection, mode, max_workers)):
        if outcome.emitted:
            report.results.append(outcome.analysis.to_stock_decision(series))
        else:
            report.skipped.append(outcome.skipped)

    logger.info(
        f"Batch complete: {len(series_list)} instruments, "
        f"{len(report.results)} emitted, {len(report.skipped)} skipped"
    )
    return report


# =============================================================================
# FUNDAMENTALS MERGE
# =============================================================================


def _fundamentals_record(
    fund: FundamentalsRow, outcome: Optional[PipelineOutcome]
) -> FundamentalsDecision:
    if outcome is None:
        skip_reason = SkipReason.INSUFFICIENT_DATA
    elif not outcome.emitted:
        skip_reason = outcome.skipped.reason
    else:
        skip_reason = None

    record = FundamentalsDecision(
        fincode=fund.fincode,
        scripcode=fund.scripcode,
        symbol=fund.symbol,
        company_name=fund.company_name,
        industry=fund.industry,
        short_name=fund.short_name,
        market_cap=fund.market_cap,
        current_price=fund.last_traded_price,
        high_52w=fund.high_52w,
        low_52w=fund.low_52w,
        eps=fund.adjusted_eps,
        eps_growth=fund.eps_growth,
        dividend_yield=fund.dividend_yield,
        pe_ratio=fund.pe_ratio,
        pb_ratio=fund.pb_ratio,
        roe=fund.roe,
        roce=fund.roce,
        debt_to_equity=fund.debt_to_equity,
        core_ebitda=fund.core_ebitda,
        core_ebitda_margin=fund.core_ebitda_margin,
        pat_margin=fund.pat_margin,
        asset_turnover=fund.asset_turnover,
        skip_reason=skip_reason,
    )

    if skip_reason is not None:
        return record

    analysis = outcome.analysis
    decisions = analysis.decisions
    return record.model_copy(
        update=dict(
            analysis.latest,
            rsi_decision=decisions[IndicatorName.RSI],
            ema_decision=decisions[IndicatorName.EMA],
            sma_decision=decisions[IndicatorName.SMA],
            macd_decision=decisions[IndicatorName.MACD],
            adx_decision=decisions[IndicatorName.ADX],
            supertrend_decision=decisions[IndicatorName.SUPERTREND],
            bollinger_decision=decisions[IndicatorName.BOLLINGER_BANDS],
            vwap_decision=decisions[IndicatorName.VWAP],
            williams_r_decision=decisions[IndicatorName.WILLIAMS_R],
            psar_decision=decisions[IndicatorName.PSAR],
            ichimoku_decision=decisions[IndicatorName.ICHIMOKU],
            atr_decision=decisions[IndicatorName.ATR],
            score=analysis.score,
            decision=analysis.decision,
            indicator_decisions=analysis.decision_map(),
            selected_indicators=[name.value for name in analysis.selected],
        )
    )


def merge_fundamentals(
    fundamentals: Iterable[FundamentalsRow],
    price_rows: Iterable[PriceRow],
    selected: Optional[Iterable[IndicatorName]] = None,
    max_workers: int = 1,
) -> list[FundamentalsDecision]:
    """
    One record per fundamentals row, sorted by fincode.

    ``price_rows`` are keyed by fincode. Technicals come from the PARTIAL
    pipeline; a company without price history keeps null technicals and
    ``skipReason`` "insufficient_data".
    """
    selection = ALL_INDICATORS if selected is None else frozenset(selected)
    funds = sorted(fundamentals, key=lambda f: f.fincode)
    identities = {fund.fincode: fund for fund in funds}

    series_by_fincode = {
        series.instrument_id: series
        for series in group_rows(price_rows, identities)
        if series.instrument_id in identities
    }
    priced = [series_by_fincode[f.fincode] for f in funds if f.fincode in series_by_fincode]
    outcomes = {
        outcome.instrument_id: outcome
        for outcome in _analyze_all(priced, selection, ComputationMode.PARTIAL, max_workers)
    }

    records = [_fundamentals_record(fund, outcomes.get(fund.fincode)) for fund in funds]

    emitted = sum(1 for r in records if r.skip_reason is None)
    logger.info(f"Fundamentals merge: {len(records)} rows, {emitted} with technicals")
    return records

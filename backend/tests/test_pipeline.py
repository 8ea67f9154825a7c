"""Tests for the per-instrument pipeline."""

import dataclasses
import logging

import pytest

from stockscan.schemas.indicators import ComputationMode, Decision, IndicatorName, SkipReason
from stockscan.services.base import InsufficientDataError
from stockscan.services.indicators import pipeline
from stockscan.services.indicators.pipeline import InstrumentState, analyze_instrument
from stockscan.services.indicators.registry import CRITICAL_INDICATORS, FULL_MODE_MIN_LENGTH, REGISTRY

from conftest import make_series, rising_closes


def _patched_registry(name, compute):
    return tuple(
        dataclasses.replace(spec, compute=compute) if spec.name is name else spec
        for spec in REGISTRY
    )


class TestEndToEnd:
    """60-point linear rise, all twelve indicators selected."""

    def test_emitted(self, rising_60):
        outcome = analyze_instrument(rising_60)

        assert outcome.state is InstrumentState.EMITTED
        assert outcome.skipped is None

    def test_indicator_decisions(self, rising_60):
        analysis = analyze_instrument(rising_60).analysis
        d = analysis.decisions

        assert analysis.latest["latest_rsi"] == 100.0
        assert d[IndicatorName.RSI] == Decision.STRONG_SELL
        assert d[IndicatorName.EMA] in (Decision.BUY, Decision.STRONG_BUY)
        assert d[IndicatorName.SMA] in (Decision.BUY, Decision.STRONG_BUY)
        assert d[IndicatorName.ADX] == Decision.STRONG_BUY
        assert d[IndicatorName.SUPERTREND] == Decision.BUY
        assert analysis.latest["latest_supertrend_direction"] == 1
        assert d[IndicatorName.BOLLINGER_BANDS] == Decision.BUY
        assert d[IndicatorName.VWAP] == Decision.STRONG_BUY
        assert d[IndicatorName.WILLIAMS_R] == Decision.STRONG_SELL
        assert d[IndicatorName.PSAR] == Decision.BUY
        assert d[IndicatorName.ATR] == Decision.NEUTRAL

    def test_ichimoku_unavailable_below_cloud_history(self, rising_60):
        analysis = analyze_instrument(rising_60).analysis

        assert analysis.decisions[IndicatorName.ICHIMOKU] is None
        assert analysis.unavailable == [IndicatorName.ICHIMOKU]
        assert analysis.latest["latest_senkou_span_b"] is None
        assert analysis.latest["latest_tenkan_sen"] is not None

    def test_overall_decision(self, rising_60):
        analysis = analyze_instrument(rising_60).analysis

        assert analysis.decision in (Decision.BUY, Decision.STRONG_BUY)
        assert analysis.score == pytest.approx(8.0, abs=1.0)

    def test_record_contract(self, rising_60):
        record = analyze_instrument(rising_60).analysis.to_stock_decision(rising_60)
        payload = record.model_dump(by_alias=True, mode="json")

        assert payload["scripcode"] == 500001
        assert payload["s_name"] == "Test"
        assert payload["latestPrice"] == 159.0
        assert payload["latestOpen"] == 159.0
        assert payload["latestSMA20"] == 149.5
        assert payload["indicatorDecisions"]["Ichimoku"] is None
        assert payload["unavailableIndicators"] == ["Ichimoku"]
        assert len(payload["selectedIndicators"]) == 12
        assert len(payload["ema9"]) == 60
        assert payload["ema9"][7] is None
        assert payload["ema9"][8] == 104.0
        assert payload["sma20"][19] == 109.5

    def test_deterministic(self, rising_60):
        first = analyze_instrument(rising_60).analysis
        second = analyze_instrument(rising_60).analysis
        assert first.latest == second.latest
        assert first.score == second.score


class TestSelection:
    """Caller-selected indicators."""

    def test_empty_selection_is_neutral(self, rising_60):
        analysis = analyze_instrument(rising_60, selected=[]).analysis

        assert analysis.decision == Decision.NEUTRAL
        assert analysis.score == 0.0
        assert len(analysis.decisions) == 12

    def test_rsi_only(self, rising_60):
        analysis = analyze_instrument(rising_60, selected=[IndicatorName.RSI]).analysis

        assert analysis.score == -2.0
        assert analysis.decision == Decision.STRONG_SELL
        assert analysis.selected == [IndicatorName.RSI]


class TestSkips:
    """Pending -> Skipped and Validated -> Skipped transitions."""

    def test_full_mode_gate(self):
        series = make_series(rising_closes(10))
        outcome = analyze_instrument(series, mode=ComputationMode.FULL)

        assert outcome.state is InstrumentState.SKIPPED
        assert outcome.skipped.reason is SkipReason.INSUFFICIENT_DATA
        assert FULL_MODE_MIN_LENGTH == 52

    def test_full_mode_gate_is_52(self):
        assert not analyze_instrument(make_series(rising_closes(51))).emitted
        assert analyze_instrument(make_series(rising_closes(52))).emitted

    def test_partial_mode_keeps_short_series(self):
        series = make_series(rising_closes(40))
        outcome = analyze_instrument(series, mode=ComputationMode.PARTIAL)

        assert outcome.emitted
        assert outcome.analysis.decisions[IndicatorName.ICHIMOKU] is None
        assert outcome.analysis.decisions[IndicatorName.RSI] is not None

    def test_partial_mode_critical_shortfall(self):
        series = make_series(rising_closes(20))
        outcome = analyze_instrument(series, mode=ComputationMode.PARTIAL)

        # MACD needs 35 points and is critical
        assert outcome.skipped.reason is SkipReason.INSUFFICIENT_DATA

    def test_missing_identity(self):
        series = make_series(rising_closes(60), symbol=None)
        outcome = analyze_instrument(series)

        assert outcome.skipped.reason is SkipReason.IDENTITY_MISSING

    def test_identity_checked_before_length(self):
        series = make_series(rising_closes(5), company_name="")
        assert analyze_instrument(series).skipped.reason is SkipReason.IDENTITY_MISSING

    def test_length_mismatch(self, rising_60):
        broken = rising_60.model_copy(update={"volumes": rising_60.volumes[:-1]})
        outcome = analyze_instrument(broken)

        assert outcome.skipped.reason is SkipReason.MALFORMED_SERIES

    def test_non_finite_price(self, rising_60):
        closes = list(rising_60.closes)
        closes[30] = float("nan")
        outcome = analyze_instrument(rising_60.model_copy(update={"closes": closes}))

        assert outcome.skipped.reason is SkipReason.MALFORMED_SERIES

    def test_numeric_error_skips(self, rising_60, monkeypatch, caplog):
        def overflow(prices):
            raise FloatingPointError("overflow encountered")

        monkeypatch.setattr(pipeline, "REGISTRY", _patched_registry(IndicatorName.VWAP, overflow))

        with caplog.at_level(logging.WARNING):
            outcome = analyze_instrument(rising_60)

        assert outcome.skipped.reason is SkipReason.COMPUTATION_ERROR
        numeric = [r for r in caplog.records if "Numeric error" in r.getMessage()]
        assert [r.levelname for r in numeric] == ["WARNING"]
        assert numeric[0].exc_info is None
        assert "overflow encountered" in numeric[0].getMessage()

    def test_unexpected_error_skips(self, rising_60, monkeypatch, caplog):
        def broken(prices):
            raise KeyError("boom")

        monkeypatch.setattr(pipeline, "REGISTRY", _patched_registry(IndicatorName.PSAR, broken))

        with caplog.at_level(logging.WARNING):
            outcome = analyze_instrument(rising_60)

        assert outcome.skipped.reason is SkipReason.COMPUTATION_ERROR
        assert outcome.analysis is None
        unexpected = [r for r in caplog.records if "Unexpected error" in r.getMessage()]
        assert [r.levelname for r in unexpected] == ["ERROR"]
        assert unexpected[0].exc_info is not None
        assert not any("Numeric error" in r.getMessage() for r in caplog.records)

    def test_non_critical_shortfall_marks_unavailable(self, rising_60, monkeypatch):
        def short(prices):
            raise InsufficientDataError("EMA", 9, 8)

        monkeypatch.setattr(pipeline, "REGISTRY", _patched_registry(IndicatorName.EMA, short))

        analysis = analyze_instrument(rising_60).analysis

        assert analysis.decisions[IndicatorName.EMA] is None
        # ATR reads EMA(9) for its trend side
        assert analysis.decisions[IndicatorName.ATR] is None
        assert analysis.ema9 == [None] * 60

    def test_skip_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="stockscan.services.indicators.pipeline"):
            analyze_instrument(make_series(rising_closes(10), instrument_id=777))

        assert "Skipping instrument 777: insufficient_data" in caplog.text


class TestRegistry:
    """Static registry entries."""

    def test_one_entry_per_indicator_in_order(self):
        assert [spec.name for spec in REGISTRY] == list(IndicatorName)

    def test_critical_indicators(self):
        assert CRITICAL_INDICATORS == {
            IndicatorName.RSI,
            IndicatorName.MACD,
            IndicatorName.ADX,
            IndicatorName.SUPERTREND,
        }

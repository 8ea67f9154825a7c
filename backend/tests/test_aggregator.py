"""Tests for weighted signal aggregation."""

import itertools

import pytest

from stockscan.schemas.indicators import Decision, IndicatorName
from stockscan.services.indicators.aggregator import (
    ALL_INDICATORS,
    WEIGHTS,
    aggregate,
    overall_decision,
    parse_indicator_selection,
)


class TestSelection:
    """Tests for parsing caller-selected indicator names."""

    def test_none_selects_all(self):
        assert parse_indicator_selection(None) == ALL_INDICATORS
        assert len(ALL_INDICATORS) == 12

    def test_unknown_and_duplicates_dropped(self):
        selection = parse_indicator_selection(["RSI", "RSI", "Bogus", " EMA "])
        assert selection == {IndicatorName.RSI, IndicatorName.EMA}

    def test_blank_names_select_all(self):
        assert parse_indicator_selection([""]) == ALL_INDICATORS
        assert parse_indicator_selection([" ", ""]) == ALL_INDICATORS

    def test_empty_list_selects_nothing(self):
        assert parse_indicator_selection([]) == frozenset()

    def test_only_unknown_names_select_nothing(self):
        assert parse_indicator_selection(["Bogus", ""]) == frozenset()


class TestAggregate:
    """Tests for the weighted score."""

    def test_weights(self):
        assert WEIGHTS[IndicatorName.EMA] == 1.5
        assert WEIGHTS[IndicatorName.ICHIMOKU] == 1.5
        assert WEIGHTS[IndicatorName.RSI] == 1.0
        assert sum(WEIGHTS.values()) == pytest.approx(14.0)

    def test_empty_selection_is_neutral(self):
        decisions = {name: Decision.STRONG_BUY for name in IndicatorName}
        assert aggregate(decisions, []) == (0.0, Decision.NEUTRAL)

    def test_unavailable_counts_zero(self):
        decisions = {IndicatorName.RSI: None, IndicatorName.EMA: Decision.BUY}
        score, decision = aggregate(decisions, [IndicatorName.RSI, IndicatorName.EMA])

        assert score == 1.5
        assert decision == Decision.STRONG_BUY

    def test_only_selected_scored(self):
        decisions = {IndicatorName.RSI: Decision.SELL, IndicatorName.SMA: Decision.STRONG_BUY}
        assert aggregate(decisions, [IndicatorName.RSI]) == (-1.0, Decision.SELL)

    @pytest.mark.parametrize(
        "score,expected",
        [
            (1.5, Decision.STRONG_BUY),
            (1.4, Decision.BUY),
            (0.5, Decision.BUY),
            (0.4, Decision.NEUTRAL),
            (-0.4, Decision.NEUTRAL),
            (-0.5, Decision.SELL),
            (-1.4, Decision.SELL),
            (-1.5, Decision.STRONG_SELL),
        ],
    )
    def test_thresholds(self, score, expected):
        assert overall_decision(score) == expected

    def test_monotonic_in_each_decision(self):
        ordered = [Decision.STRONG_SELL, Decision.SELL, Decision.NEUTRAL, Decision.BUY, Decision.STRONG_BUY]
        base = {name: Decision.NEUTRAL for name in IndicatorName}

        for name in IndicatorName:
            scores = []
            for decision in ordered:
                scores.append(aggregate({**base, name: decision}, ALL_INDICATORS)[0])
            assert scores == sorted(scores)

    def test_order_irrelevant(self):
        decisions = {
            IndicatorName.RSI: Decision.BUY,
            IndicatorName.MACD: Decision.SELL,
            IndicatorName.ICHIMOKU: Decision.STRONG_BUY,
        }
        results = {
            aggregate(decisions, perm)
            for perm in itertools.permutations(decisions)
        }
        assert results == {(3.0, Decision.STRONG_BUY)}

"""
Signal Aggregator

Weighted vote over the caller's selected indicators.
"""

from typing import Iterable, Mapping, Optional

from stockscan.schemas.indicators import Decision, IndicatorName

WEIGHTS: Mapping[IndicatorName, float] = {
    IndicatorName.RSI: 1.0,
    IndicatorName.EMA: 1.5,
    IndicatorName.SMA: 1.5,
    IndicatorName.MACD: 1.0,
    IndicatorName.ADX: 1.0,
    IndicatorName.SUPERTREND: 1.5,
    IndicatorName.BOLLINGER_BANDS: 1.0,
    IndicatorName.VWAP: 1.0,
    IndicatorName.WILLIAMS_R: 1.0,
    IndicatorName.PSAR: 1.0,
    IndicatorName.ICHIMOKU: 1.5,
    IndicatorName.ATR: 1.0,
}

ALL_INDICATORS: frozenset[IndicatorName] = frozenset(IndicatorName)


def parse_indicator_selection(names: Optional[Iterable[str]]) -> frozenset[IndicatorName]:
    """
    Turn caller-supplied names into a selection.

    None, or only blank names, selects all twelve; unrecognized names and
    duplicates are dropped.
    """
    if names is None:
        return ALL_INDICATORS

    names = [name.strip() for name in names]
    if not any(names):
        return ALL_INDICATORS

    selected = set()
    for name in names:
        try:
            selected.add(IndicatorName(name))
        except ValueError:
            continue
    return frozenset(selected)


def overall_decision(score: float) -> Decision:
    if score >= 1.5:
        return Decision.STRONG_BUY
    if score >= 0.5:
        return Decision.BUY
    if score <= -1.5:
        return Decision.STRONG_SELL
    if score <= -0.5:
        return Decision.SELL
    return Decision.NEUTRAL


def aggregate(
    decisions: Mapping[IndicatorName, Optional[Decision]],
    selected: Iterable[IndicatorName],
) -> tuple[float, Decision]:
    """
    Weighted score and overall decision.

    Unavailable decisions contribute zero. An empty selection is Neutral
    regardless of the underlying decisions.

    Returns: (score, decision)
    """
    selection = frozenset(selected)
    if not selection:
        return 0.0, Decision.NEUTRAL

    score = 0.0
    for name in sorted(selection, key=lambda n: list(IndicatorName).index(n)):
        decision = decisions.get(name)
        if decision is not None:
            score += WEIGHTS[name] * decision.score

    return score, overall_decision(score)

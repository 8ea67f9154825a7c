"""
StockScan Schema Contracts

JSON contracts between the data source, the indicator engine and the API.
"""

from stockscan.schemas.market import (
    PriceRow,
    FundamentalsRow,
    InstrumentSeries,
)
from stockscan.schemas.indicators import (
    Decision,
    IndicatorName,
    ComputationMode,
    SkipReason,
    LatestIndicatorValues,
    StockDecision,
    FundamentalsDecision,
    SkippedInstrument,
    ScanReport,
    IndicatorInfo,
    AnalysisRequest,
)

__all__ = [
    "PriceRow",
    "FundamentalsRow",
    "InstrumentSeries",
    "Decision",
    "IndicatorName",
    "ComputationMode",
    "SkipReason",
    "LatestIndicatorValues",
    "StockDecision",
    "FundamentalsDecision",
    "SkippedInstrument",
    "ScanReport",
    "IndicatorInfo",
    "AnalysisRequest",
]

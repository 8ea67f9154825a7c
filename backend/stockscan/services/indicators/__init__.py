"""
Indicator Engine Service

CONTRACT:
    Input:  AnalysisRequest (price rows + indicator selection)
    Output: ScanReport (StockDecision records + skip diagnostics)

RESPONSIBILITIES:
    - Compute twelve technical indicators from OHLCV series
    - Map each indicator's latest value to a five-level decision
    - Combine selected decisions into a weighted overall decision
    - Skip malformed or short instruments without aborting the batch

Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from stockscan.services.indicators.interface import IndicatorServiceInterface
from stockscan.services.indicators.service import IndicatorService, get_indicator_service

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "get_indicator_service",
]

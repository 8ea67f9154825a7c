"""
Indicator Engine Service Interface

Defines the contract for the indicator and decision layer.
"""

from abc import abstractmethod
from typing import Optional

from stockscan.services.base import BaseService
from stockscan.schemas.indicators import (
    AnalysisRequest,
    FundamentalsDecision,
    IndicatorInfo,
    ScanReport,
)
from stockscan.schemas.market import FundamentalsRow, PriceRow


class IndicatorServiceInterface(BaseService[AnalysisRequest, ScanReport]):
    """
    Indicator Engine Service Contract.

    INPUT: AnalysisRequest
        - rows: price rows pre-sorted by (instrument, timestamp)
        - selected_indicators: names to score (default: all twelve)

    OUTPUT: ScanReport
        - results: one StockDecision per emitted instrument
        - skipped: instrument id + reason for every skip
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    async def execute(self, input_data: AnalysisRequest) -> ScanReport:
        """Analyse every instrument in the request."""
        pass

    @abstractmethod
    async def analyze_fundamentals(
        self,
        fundamentals: list[FundamentalsRow],
        price_rows: list[PriceRow],
        selected_indicators: Optional[list[str]] = None,
    ) -> list[FundamentalsDecision]:
        """
        Merge fundamentals rows with their instruments' technical decisions.

        Args:
            fundamentals: One row per company
            price_rows: Price history keyed by fincode
            selected_indicators: Names to score (default: all twelve)

        Returns:
            One record per fundamentals row
        """
        pass

    @abstractmethod
    def list_indicators(self) -> list[IndicatorInfo]:
        """Registry listing: name, weight, critical flag, minimum length."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        pass

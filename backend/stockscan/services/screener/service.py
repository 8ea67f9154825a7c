"""
Screener Service

Fetches rows from the price data source and runs them through the
indicator engine. This is the only place where I/O and computation meet.
"""

import logging
from typing import Optional

from stockscan.schemas.indicators import (
    AnalysisRequest,
    ComputationMode,
    FundamentalsDecision,
    ScanReport,
    StockDecision,
)
from stockscan.services.base import BaseService
from stockscan.services.data_source import PriceDataSource, SqlPriceDataSource
from stockscan.services.indicators import IndicatorService, get_indicator_service

logger = logging.getLogger(__name__)


class ScreenerService(BaseService[AnalysisRequest, ScanReport]):
    """
    Screener over the whole listed universe.

    Data-source failures propagate as DataSourceError; per-instrument
    problems end up in ``ScanReport.skipped``.
    """

    def __init__(
        self,
        data_source: PriceDataSource,
        indicator_service: Optional[IndicatorService] = None,
    ):
        self.data_source = data_source
        self.indicators = indicator_service or get_indicator_service()

    @property
    def name(self) -> str:
        return "ScreenerService"

    async def execute(self, input_data: AnalysisRequest) -> ScanReport:
        """Analyse the rows in ``input_data``, fetching them first if empty."""
        if not input_data.rows:
            rows = await self.data_source.fetch_price_rows()
            input_data = input_data.model_copy(update={"rows": rows})
        return await self.indicators.execute(input_data)

    async def scan(
        self,
        selected_indicators: Optional[list[str]] = None,
        mode: ComputationMode = ComputationMode.FULL,
    ) -> ScanReport:
        return await self.execute(
            AnalysisRequest(selected_indicators=selected_indicators, mode=mode)
        )

    async def stock_decisions(
        self,
        selected_indicators: Optional[list[str]] = None,
        mode: ComputationMode = ComputationMode.FULL,
    ) -> list[StockDecision]:
        report = await self.scan(selected_indicators, mode)
        return report.results

    async def fundamentals(
        self, selected_indicators: Optional[list[str]] = None
    ) -> list[FundamentalsDecision]:
        fundamentals = await self.data_source.fetch_fundamentals()
        price_rows = await self.data_source.fetch_price_rows_for(
            [fund.fincode for fund in fundamentals]
        )
        return await self.indicators.analyze_fundamentals(
            fundamentals, price_rows, selected_indicators
        )

    async def health_check(self) -> bool:
        return await self.data_source.health_check() and await self.indicators.health_check()


# Singleton instance
_screener: Optional[ScreenerService] = None


def get_screener_service() -> ScreenerService:
    """Get the screener singleton backed by the configured database."""
    global _screener
    if _screener is None:
        from stockscan.db.database import AsyncSessionLocal

        _screener = ScreenerService(SqlPriceDataSource(AsyncSessionLocal))
    return _screener

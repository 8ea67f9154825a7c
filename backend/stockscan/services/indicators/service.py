"""
Indicator Engine Service Implementation

Runs the batch driver off the event loop.
NO I/O - pure NumPy computation over rows already fetched.
"""

import asyncio
import logging
from typing import Optional

from stockscan.core.config import settings
from stockscan.schemas.indicators import (
    AnalysisRequest,
    FundamentalsDecision,
    IndicatorInfo,
    ScanReport,
)
from stockscan.schemas.market import FundamentalsRow, PriceRow
from stockscan.services.indicators.aggregator import parse_indicator_selection
from stockscan.services.indicators.batch import merge_fundamentals, run_batch
from stockscan.services.indicators.interface import IndicatorServiceInterface
from stockscan.services.indicators.registry import REGISTRY

logger = logging.getLogger(__name__)


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    Computation is CPU-bound, so each call runs in a worker thread and the
    batch driver spreads instruments over ``max_workers`` threads.
    """

    def __init__(self, max_workers: Optional[int] = None):
        self.max_workers = max_workers if max_workers is not None else settings.analysis_workers

    async def execute(self, input_data: AnalysisRequest) -> ScanReport:
        selected = parse_indicator_selection(input_data.selected_indicators)
        logger.info(
            f"Analysing {len(input_data.rows)} rows, mode={input_data.mode.value}, "
            f"{len(selected)} indicators selected"
        )
        return await asyncio.to_thread(
            run_batch, input_data.rows, selected, input_data.mode, self.max_workers
        )

    async def analyze_fundamentals(
        self,
        fundamentals: list[FundamentalsRow],
        price_rows: list[PriceRow],
        selected_indicators: Optional[list[str]] = None,
    ) -> list[FundamentalsDecision]:
        selected = parse_indicator_selection(selected_indicators)
        return await asyncio.to_thread(
            merge_fundamentals, fundamentals, price_rows, selected, self.max_workers
        )

    def list_indicators(self) -> list[IndicatorInfo]:
        return [
            IndicatorInfo(
                name=spec.name,
                weight=spec.weight,
                critical=spec.critical,
                min_length=spec.min_length,
            )
            for spec in REGISTRY
        ]

    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        return True


# Singleton instance
_service_instance: Optional[IndicatorService] = None


def get_indicator_service() -> IndicatorService:
    """Get or create indicator service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = IndicatorService()
    return _service_instance

"""
Stock Decision API Endpoints

Technical decisions for every instrument in the price database.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from stockscan.schemas.indicators import ComputationMode, ScanReport, StockDecision
from stockscan.services.base import ServiceError
from stockscan.services.screener import ScreenerService, get_screener_service

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_selected(selected_indicators: Optional[str]) -> Optional[list[str]]:
    """Comma-separated names; None when the parameter is absent or blank."""
    if selected_indicators is None or not selected_indicators.strip():
        return None
    return selected_indicators.split(",")


SELECTED_QUERY = Query(
    None,
    alias="selectedIndicators",
    description="Comma-separated indicators to score, e.g. RSI,EMA,MACD (default: all twelve)",
)


@router.get("", response_model=list[StockDecision])
async def get_stock_decisions(
    selected_indicators: Optional[str] = SELECTED_QUERY,
    mode: ComputationMode = Query(ComputationMode.FULL, description="full or partial"),
    screener: ScreenerService = Depends(get_screener_service),
):
    """
    Decision records for all analysable instruments.

    Example:
    - `/stock-decisions` - Score with all twelve indicators
    - `/stock-decisions?selectedIndicators=RSI,MACD` - Score with RSI and MACD only
    """
    try:
        return await screener.stock_decisions(parse_selected(selected_indicators), mode)
    except ServiceError as e:
        logger.error(f"Stock decisions failed: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/report", response_model=ScanReport)
async def get_stock_decision_report(
    selected_indicators: Optional[str] = SELECTED_QUERY,
    mode: ComputationMode = Query(ComputationMode.FULL, description="full or partial"),
    screener: ScreenerService = Depends(get_screener_service),
):
    """Decision records plus the instruments skipped and why."""
    try:
        return await screener.scan(parse_selected(selected_indicators), mode)
    except ServiceError as e:
        logger.error(f"Stock decision report failed: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")

"""
Fundamentals API Endpoints

Latest financials merged with technical decisions.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from stockscan.api.v1.endpoints.decisions import SELECTED_QUERY, parse_selected
from stockscan.schemas.indicators import FundamentalsDecision
from stockscan.services.base import ServiceError
from stockscan.services.screener import ScreenerService, get_screener_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[FundamentalsDecision])
async def get_fundamentals(
    selected_indicators: Optional[str] = SELECTED_QUERY,
    screener: ScreenerService = Depends(get_screener_service),
):
    """
    One record per company with latest annual financials, 52-week range and
    per-indicator decisions. Companies that cannot be analysed keep null
    technicals and carry ``skipReason``.
    """
    try:
        return await screener.fundamentals(parse_selected(selected_indicators))
    except ServiceError as e:
        logger.error(f"Error fetching fundamentals: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch fundamentals data")

"""
Indicator Registry API Endpoints
"""

from fastapi import APIRouter, Depends

from stockscan.schemas.indicators import IndicatorInfo
from stockscan.services.indicators import IndicatorService, get_indicator_service

router = APIRouter()


@router.get("", response_model=list[IndicatorInfo])
async def list_indicators(service: IndicatorService = Depends(get_indicator_service)):
    """Indicators available for selection, with weight and minimum history."""
    return service.list_indicators()

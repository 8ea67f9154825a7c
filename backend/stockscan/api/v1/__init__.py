"""
API v1 Router

All API endpoints for the dashboard.
"""

from fastapi import APIRouter

from stockscan.api.v1.endpoints import decisions, fundamentals, indicators

router = APIRouter()

# Include all endpoint routers
router.include_router(decisions.router, prefix="/stock-decisions", tags=["Stock Decisions"])
router.include_router(fundamentals.router, prefix="/fundamentals", tags=["Fundamentals"])
router.include_router(indicators.router, prefix="/indicators", tags=["Indicators"])

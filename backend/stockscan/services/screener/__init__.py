"""
Screener Service

Data source + indicator engine for the HTTP layer.
"""

from stockscan.services.screener.service import ScreenerService, get_screener_service

__all__ = ["ScreenerService", "get_screener_service"]

"""
Database module for StockScan.

Provides the async engine, sessions and source-table models.
"""

from stockscan.db.database import init_db, close_db, AsyncSessionLocal
from stockscan.db.models import Base, CompanyMaster, StockPriceEOD, CompanyFinancials

__all__ = [
    "init_db",
    "close_db",
    "AsyncSessionLocal",
    "Base",
    "CompanyMaster",
    "StockPriceEOD",
    "CompanyFinancials",
]

"""
Price Data Source Interface

Defines the contract the screener expects from a price database.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from stockscan.schemas.market import FundamentalsRow, PriceRow


class PriceDataSource(ABC):
    """
    Read-only source of price history and fundamentals.

    Price rows are returned sorted by (instrument, timestamp) ascending and
    already carry the identity fields of their company.
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    async def fetch_price_rows(self) -> list[PriceRow]:
        """Daily bars keyed by scripcode, for the full scan."""
        pass

    @abstractmethod
    async def fetch_fundamentals(self, as_of: Optional[datetime] = None) -> list[FundamentalsRow]:
        """
        Latest annual financials per company plus 52-week high/low.

        Args:
            as_of: End of the 52-week window (default: now)
        """
        pass

    @abstractmethod
    async def fetch_price_rows_for(self, fincodes: Sequence[int]) -> list[PriceRow]:
        """Daily bars keyed by fincode for the given companies."""
        pass

    async def health_check(self) -> bool:
        return True

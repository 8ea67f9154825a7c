"""
SQL Price Data Source

Reads company_master, stock_prices_bse_eod and companyfinancials through
async SQLAlchemy sessions.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy import and_, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockscan.core.config import Settings, settings as default_settings
from stockscan.db.models import CompanyFinancials, CompanyMaster, StockPriceEOD
from stockscan.schemas.market import FundamentalsRow, PriceRow
from stockscan.services.base import DataSourceError
from stockscan.services.data_source.interface import PriceDataSource

logger = logging.getLogger(__name__)

ANNUAL = "A"
FIFTY_TWO_WEEKS = timedelta(days=365)


class SqlPriceDataSource(PriceDataSource):
    """PriceDataSource over the BSE end-of-day tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Optional[Settings] = None,
    ):
        self._session_factory = session_factory
        self._settings = settings or default_settings

    # =========================================================================
    # PRICE ROWS
    # =========================================================================

    async def fetch_price_rows(self) -> list[PriceRow]:
        stmt = (
            select(
                StockPriceEOD.scripcode,
                StockPriceEOD.open,
                StockPriceEOD.high,
                StockPriceEOD.low,
                StockPriceEOD.close,
                StockPriceEOD.upd_time.label("upd_time"),
                StockPriceEOD.volume,
                CompanyMaster.industry,
                CompanyMaster.symbol,
                CompanyMaster.s_name,
                CompanyMaster.compname,
            )
            .join(CompanyMaster, StockPriceEOD.scripcode == CompanyMaster.scripcode)
            .where(StockPriceEOD.scripcode > self._settings.min_scripcode)
            .order_by(StockPriceEOD.scripcode, StockPriceEOD.upd_time)
            .limit(self._settings.price_row_limit)
        )
        rows = await self._fetch_all(stmt, "price rows")

        valid = [
            PriceRow(
                instrument_id=row.scripcode,
                timestamp=row.upd_time,
                open=row.open,
                high=row.high,
                low=row.low,
                close=row.close,
                volume=row.volume,
                symbol=row.symbol,
                company_name=row.compname,
                industry=row.industry,
                short_name=row.s_name,
            )
            for row in rows
            if row.symbol and row.compname
        ]
        logger.info(f"Total rows: {len(rows)}, Valid rows: {len(valid)}")
        return valid

    async def fetch_price_rows_for(self, fincodes: Sequence[int]) -> list[PriceRow]:
        if not fincodes:
            return []

        stmt = (
            select(
                StockPriceEOD.fincode,
                StockPriceEOD.open,
                StockPriceEOD.high,
                StockPriceEOD.low,
                StockPriceEOD.close,
                StockPriceEOD.upd_time.label("upd_time"),
                StockPriceEOD.volume,
            )
            .where(
                StockPriceEOD.fincode.in_(list(fincodes)),
                StockPriceEOD.scripcode > self._settings.min_scripcode,
            )
            .order_by(StockPriceEOD.fincode, StockPriceEOD.upd_time)
        )
        rows = await self._fetch_all(stmt, "price rows by fincode")

        return [
            PriceRow(
                instrument_id=row.fincode,
                timestamp=row.upd_time,
                open=row.open,
                high=row.high,
                low=row.low,
                close=row.close,
                volume=row.volume,
            )
            for row in rows
        ]

    # =========================================================================
    # FUNDAMENTALS
    # =========================================================================

    def _price_extreme(self, column, since: datetime):
        """Correlated max/min over one company's bars since ``since``."""
        return (
            select(column)
            .where(
                StockPriceEOD.fincode == CompanyMaster.fincode,
                StockPriceEOD.scripcode > self._settings.min_scripcode,
                StockPriceEOD.upd_time >= since,
            )
            .correlate(CompanyMaster)
            .scalar_subquery()
        )

    async def fetch_fundamentals(self, as_of: Optional[datetime] = None) -> list[FundamentalsRow]:
        since = (as_of or datetime.now()) - FIFTY_TWO_WEEKS

        latest_year = (
            select(
                CompanyFinancials.fincode,
                func.max(CompanyFinancials.year_end).label("year_end"),
            )
            .where(CompanyFinancials.type == ANNUAL)
            .group_by(CompanyFinancials.fincode)
            .subquery()
        )

        stmt = (
            select(
                CompanyMaster.fincode,
                CompanyMaster.scripcode,
                CompanyMaster.symbol,
                CompanyMaster.compname,
                CompanyMaster.industry,
                CompanyMaster.s_name,
                CompanyMaster.mcap,
                CompanyMaster.last_traded_price,
                CompanyFinancials.adjusted_eps,
                CompanyFinancials.eps_growth.label("eps_growth"),
                CompanyFinancials.dividend_yield.label("dividend_yield"),
                CompanyFinancials.price_to_earnings_ratio,
                CompanyFinancials.price_to_book_ratio,
                CompanyFinancials.return_on_equity,
                CompanyFinancials.return_on_assets,
                CompanyFinancials.debt_ratio,
                CompanyFinancials.core_ebitda.label("core_ebitda"),
                CompanyFinancials.core_ebitda_margin.label("core_ebitda_margin"),
                CompanyFinancials.pat_margin,
                CompanyFinancials.asset_turnover,
                self._price_extreme(func.max(StockPriceEOD.high), since).label("high_52w"),
                self._price_extreme(func.min(StockPriceEOD.low), since).label("low_52w"),
            )
            .select_from(CompanyMaster)
            .outerjoin(latest_year, latest_year.c.fincode == CompanyMaster.fincode)
            .outerjoin(
                CompanyFinancials,
                and_(
                    CompanyFinancials.fincode == CompanyMaster.fincode,
                    CompanyFinancials.type == ANNUAL,
                    CompanyFinancials.year_end == latest_year.c.year_end,
                ),
            )
            .where(
                CompanyMaster.symbol.is_not(None),
                CompanyMaster.compname.is_not(None),
                CompanyMaster.scripcode > self._settings.min_scripcode,
            )
            .order_by(CompanyMaster.fincode)
            .limit(self._settings.fundamentals_limit)
        )
        rows = await self._fetch_all(stmt, "fundamentals")
        logger.info(f"Fundamentals rows fetched: {len(rows)}")

        return [
            FundamentalsRow(
                fincode=row.fincode,
                scripcode=row.scripcode,
                symbol=row.symbol,
                company_name=row.compname,
                industry=row.industry,
                short_name=row.s_name,
                market_cap=row.mcap,
                last_traded_price=row.last_traded_price,
                adjusted_eps=row.adjusted_eps,
                eps_growth=row.eps_growth,
                dividend_yield=row.dividend_yield,
                pe_ratio=row.price_to_earnings_ratio,
                pb_ratio=row.price_to_book_ratio,
                roe=row.return_on_equity,
                roce=row.return_on_assets,  # proxy: the source has no ROCE column
                debt_to_equity=row.debt_ratio,
                core_ebitda=row.core_ebitda,
                core_ebitda_margin=row.core_ebitda_margin,
                pat_margin=row.pat_margin,
                asset_turnover=row.asset_turnover,
                high_52w=row.high_52w,
                low_52w=row.low_52w,
            )
            for row in rows
        ]

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _fetch_all(self, stmt, what: str) -> list:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch {what}: {e}")
            raise DataSourceError(self.name, f"Failed to fetch {what}", {"error": str(e)}) from e

    async def health_check(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Price database health check failed: {e}")
            return False

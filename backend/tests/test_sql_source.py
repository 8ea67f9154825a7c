"""Tests for the SQL price data source against an in-memory SQLite database."""

from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockscan.core.config import Settings
from stockscan.db.database import create_engine_for
from stockscan.db.models import Base, CompanyFinancials, CompanyMaster, StockPriceEOD
from stockscan.services.base import DataSourceError
from stockscan.services.data_source import SqlPriceDataSource

MEMORY_URL = "sqlite+aiosqlite:///:memory:"
AS_OF = datetime(2024, 3, 10)


def _bar(scripcode, fincode, day, close, volume=1000):
    return StockPriceEOD(
        scripcode=scripcode,
        fincode=fincode,
        open=close,
        high=close + 2,
        low=close - 2,
        close=close,
        volume=volume,
        upd_time=day,
    )


def _seed():
    return [
        CompanyMaster(
            fincode=1, scripcode=500100, symbol="ALPHA", compname="Alpha Ltd",
            s_name="Alpha", industry="Banks", mcap=1000.0, last_traded_price=52.0,
        ),
        CompanyMaster(
            fincode=2, scripcode=500200, symbol=None, compname="Nameless Ltd",
            s_name="Nameless", industry="Banks",
        ),
        CompanyMaster(
            fincode=3, scripcode=100, symbol="IDX", compname="Index Row",
            s_name="Index", industry="Index",
        ),
        CompanyMaster(
            fincode=4, scripcode=500400, symbol="DELTA", compname="Delta Ltd",
            s_name="Delta", industry="Metals", mcap=500.0, last_traded_price=10.0,
        ),
        # inserted out of date order on purpose
        _bar(500100, 1, datetime(2024, 3, 3), 52.0),
        _bar(500100, 1, datetime(2024, 3, 1), 50.0, volume=0),
        _bar(500100, 1, datetime(2024, 3, 2), 51.0),
        _bar(500100, 1, datetime(2023, 1, 2), 300.0),
        _bar(500200, 2, datetime(2024, 3, 1), 20.0),
        _bar(500200, 2, datetime(2024, 3, 2), 21.0),
        _bar(100, 3, datetime(2024, 3, 1), 9000.0),
        CompanyFinancials(fincode=1, type="A", year_end=202203, adjusted_eps=10.0),
        CompanyFinancials(
            fincode=1, type="A", year_end=202303, adjusted_eps=12.0, eps_growth=20.0,
            dividend_yield=1.5, price_to_earnings_ratio=4.3, return_on_assets=8.0,
            core_ebitda=120.0, core_ebitda_margin=18.0,
        ),
        CompanyFinancials(fincode=1, type="Q", year_end=202312, adjusted_eps=99.0),
    ]


@pytest_asyncio.fixture
async def session_factory():
    engine = create_engine_for(MEMORY_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(_seed())
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
def source(session_factory):
    return SqlPriceDataSource(session_factory, Settings(min_scripcode=267))


class TestPriceRows:
    """Tests for the full-scan price query."""

    @pytest.mark.asyncio
    async def test_filters_identity_and_low_scripcodes(self, source):
        rows = await source.fetch_price_rows()

        assert {row.instrument_id for row in rows} == {500100}
        assert all(row.symbol == "ALPHA" for row in rows)

    @pytest.mark.asyncio
    async def test_sorted_by_time(self, source):
        rows = await source.fetch_price_rows()

        assert [row.close for row in rows] == [300.0, 50.0, 51.0, 52.0]
        assert rows[0].company_name == "Alpha Ltd"
        assert rows[0].short_name == "Alpha"

    @pytest.mark.asyncio
    async def test_zero_volume_defaults_to_one(self, source):
        rows = await source.fetch_price_rows()
        assert rows[1].volume == 1.0
        assert rows[2].volume == 1000.0

    @pytest.mark.asyncio
    async def test_row_limit(self, session_factory):
        source = SqlPriceDataSource(session_factory, Settings(min_scripcode=267, price_row_limit=2))
        rows = await source.fetch_price_rows()
        assert len(rows) == 2


class TestPriceRowsForFincodes:
    """Tests for the fundamentals price query."""

    @pytest.mark.asyncio
    async def test_keyed_by_fincode(self, source):
        rows = await source.fetch_price_rows_for([1, 2, 3])

        assert [row.instrument_id for row in rows] == [1, 1, 1, 1, 2, 2]
        assert rows[0].symbol is None

    @pytest.mark.asyncio
    async def test_empty_request(self, source):
        assert await source.fetch_price_rows_for([]) == []


class TestFundamentals:
    """Tests for the fundamentals query."""

    @pytest.mark.asyncio
    async def test_companies_with_identity_only(self, source):
        rows = await source.fetch_fundamentals(as_of=AS_OF)
        assert [row.fincode for row in rows] == [1, 4]

    @pytest.mark.asyncio
    async def test_latest_annual_row(self, source):
        alpha = (await source.fetch_fundamentals(as_of=AS_OF))[0]

        assert alpha.adjusted_eps == 12.0
        assert alpha.eps_growth == 20.0
        assert alpha.dividend_yield == 1.5
        assert alpha.pe_ratio == 4.3
        assert alpha.roce == 8.0
        assert alpha.core_ebitda == 120.0
        assert alpha.core_ebitda_margin == 18.0
        assert alpha.market_cap == 1000.0
        assert alpha.last_traded_price == 52.0

    @pytest.mark.asyncio
    async def test_52_week_window(self, source):
        alpha = (await source.fetch_fundamentals(as_of=AS_OF))[0]

        assert alpha.high_52w == 54.0
        assert alpha.low_52w == 48.0

    @pytest.mark.asyncio
    async def test_company_without_financials(self, source):
        delta = (await source.fetch_fundamentals(as_of=AS_OF))[1]

        assert delta.symbol == "DELTA"
        assert delta.adjusted_eps is None
        assert delta.high_52w is None


class TestFailures:
    """Tests for error wrapping and health."""

    @pytest.mark.asyncio
    async def test_health_check(self, source):
        assert await source.health_check() is True

    @pytest.mark.asyncio
    async def test_missing_tables_raise_data_source_error(self):
        engine = create_engine_for(MEMORY_URL)
        source = SqlPriceDataSource(async_sessionmaker(engine, class_=AsyncSession))

        with pytest.raises(DataSourceError):
            await source.fetch_price_rows()
        await engine.dispose()

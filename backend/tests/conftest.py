"""Shared fixtures: synthetic price histories and an in-memory data source."""

from datetime import datetime, timedelta
from typing import Optional

import pytest

from stockscan.schemas.market import InstrumentSeries, PriceRow
from stockscan.services.base import DataSourceError
from stockscan.services.data_source import PriceDataSource

BASE_DATE = datetime(2024, 1, 1)


def make_rows(
    closes: list[float],
    instrument_id: int = 500001,
    symbol: Optional[str] = "TESTCO",
    company_name: Optional[str] = "Test Company Ltd.",
    spread: float = 1.0,
    volume: Optional[float] = None,
) -> list[PriceRow]:
    """Daily rows with high/low ``spread`` around each close and open = close."""
    return [
        PriceRow(
            instrument_id=instrument_id,
            timestamp=BASE_DATE + timedelta(days=i),
            open=close,
            high=close + spread,
            low=close - spread,
            close=close,
            volume=volume,
            symbol=symbol,
            company_name=company_name,
            industry="Testing",
            short_name="Test",
        )
        for i, close in enumerate(closes)
    ]


def rising_closes(n: int, start: float = 100.0, step: float = 1.0) -> list[float]:
    return [start + step * i for i in range(n)]


def make_series(closes: list[float], **kwargs) -> InstrumentSeries:
    rows = make_rows(closes, **kwargs)
    return InstrumentSeries.from_rows(rows[0].instrument_id, rows)


@pytest.fixture
def rising_60():
    """60 closes rising linearly from 100 to 159, high/low = close +/- 1."""
    return make_series(rising_closes(60))


@pytest.fixture
def rising_60_arrays():
    closes = rising_closes(60)
    highs = [c + 1 for c in closes]
    lows = [c - 1 for c in closes]
    return highs, lows, closes


class FakeDataSource(PriceDataSource):
    """In-memory data source."""

    def __init__(self, price_rows=None, fundamentals=None, fincode_rows=None, fail=False):
        self.price_rows = price_rows or []
        self.fundamentals = fundamentals or []
        self.fincode_rows = fincode_rows or []
        self.fail = fail
        self.requested_fincodes = None

    async def fetch_price_rows(self):
        if self.fail:
            raise DataSourceError(self.name, "connection refused")
        return self.price_rows

    async def fetch_fundamentals(self, as_of=None):
        if self.fail:
            raise DataSourceError(self.name, "connection refused")
        return self.fundamentals

    async def fetch_price_rows_for(self, fincodes):
        self.requested_fincodes = list(fincodes)
        return [row for row in self.fincode_rows if row.instrument_id in self.requested_fincodes]

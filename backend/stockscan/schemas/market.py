"""
CONTRACT 1: Price and Fundamentals Rows

Input: rows returned by a PriceDataSource
Output: InstrumentSeries (one per instrument)

Rows arrive pre-sorted by (instrument, timestamp). Nothing here computes
indicators; it only reshapes rows into parallel arrays.
"""

from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# INPUT: Rows from the data source
# =============================================================================


class PriceRow(BaseModel):
    """One end-of-day bar for one instrument."""

    instrument_id: int = Field(..., description="scripcode (scan) or fincode (fundamentals)")
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = Field(default=1.0, description="Defaults to 1 when absent or 0")
    symbol: Optional[str] = None
    company_name: Optional[str] = None
    industry: Optional[str] = None
    short_name: Optional[str] = None

    @field_validator("volume", mode="before")
    @classmethod
    def volume_defaults_to_one(cls, v):
        if v is None or v == 0:
            return 1.0
        return v


class FundamentalsRow(BaseModel):
    """Latest annual financials and valuation for one company."""

    fincode: int
    scripcode: Optional[int] = None
    symbol: Optional[str] = None
    company_name: Optional[str] = None
    industry: Optional[str] = None
    short_name: Optional[str] = None
    market_cap: Optional[float] = None
    last_traded_price: Optional[float] = None
    adjusted_eps: Optional[float] = None
    eps_growth: Optional[float] = None
    dividend_yield: Optional[float] = None
    pe_ratio: Optional[float] = None
    pb_ratio: Optional[float] = None
    roe: Optional[float] = None
    roce: Optional[float] = None
    debt_to_equity: Optional[float] = None
    core_ebitda: Optional[float] = None
    core_ebitda_margin: Optional[float] = None
    pat_margin: Optional[float] = None
    asset_turnover: Optional[float] = None
    high_52w: Optional[float] = None
    low_52w: Optional[float] = None


# =============================================================================
# GROUPED: InstrumentSeries
# =============================================================================


class InstrumentSeries(BaseModel):
    """
    Ordered price history for one instrument as parallel arrays.

    Array lengths are not forced to agree here; the pipeline rejects a
    mismatch as a malformed series.
    """

    instrument_id: int
    symbol: Optional[str] = None
    company_name: Optional[str] = None
    industry: Optional[str] = None
    short_name: Optional[str] = None
    dates: list[datetime] = Field(default_factory=list)
    opens: list[float] = Field(default_factory=list)
    highs: list[float] = Field(default_factory=list)
    lows: list[float] = Field(default_factory=list)
    closes: list[float] = Field(default_factory=list)
    volumes: list[float] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.closes)

    @property
    def has_identity(self) -> bool:
        return bool(self.symbol) and bool(self.company_name)

    @classmethod
    def from_rows(
        cls,
        instrument_id: int,
        rows: Iterable[PriceRow],
        identity: Optional[FundamentalsRow] = None,
    ) -> "InstrumentSeries":
        """
        Build a series from rows of one instrument.

        Identity comes from ``identity`` when given (fundamentals rows carry
        it), otherwise from the first price row.
        """
        rows = list(rows)
        source = identity if identity is not None else (rows[0] if rows else None)

        return cls(
            instrument_id=instrument_id,
            symbol=getattr(source, "symbol", None),
            company_name=getattr(source, "company_name", None),
            industry=getattr(source, "industry", None),
            short_name=getattr(source, "short_name", None),
            dates=[r.timestamp for r in rows],
            opens=[r.open for r in rows],
            highs=[r.high for r in rows],
            lows=[r.low for r in rows],
            closes=[r.close for r in rows],
            volumes=[r.volume for r in rows],
        )

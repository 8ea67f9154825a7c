"""
SQLAlchemy models for the StockScan source tables.

The screener only reads these tables:
- company_master (identity and market data per company)
- stock_prices_bse_eod (daily BSE bars)
- companyfinancials (annual and quarterly financial statements)

Column names follow the existing schema; Python attribute names are
snake_case.
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    BigInteger,
    DateTime,
    Index,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class CompanyMaster(Base):
    """
    One row per listed company.
    ``fincode`` links prices and financials; ``scripcode`` is the BSE code.
    """
    __tablename__ = "company_master"

    fincode = Column(Integer, primary_key=True)
    scripcode = Column(Integer, index=True)
    symbol = Column(String(50))
    compname = Column(String(255))
    s_name = Column(String(100))
    industry = Column(String(255))
    mcap = Column(Float)
    last_traded_price = Column(Float)


class StockPriceEOD(Base):
    """Daily end-of-day bar from BSE."""
    __tablename__ = "stock_prices_bse_eod"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scripcode = Column(Integer, nullable=False)
    fincode = Column(Integer, nullable=False)
    open = Column(Float)
    high = Column(Float)
    low = Column(Float)
    close = Column(Float)
    volume = Column(BigInteger)
    upd_time = Column("updTime", DateTime, nullable=False)

    __table_args__ = (
        Index("ix_prices_scripcode_updtime", "scripcode", "updTime"),
        Index("ix_prices_fincode_updtime", "fincode", "updTime"),
    )


class CompanyFinancials(Base):
    """
    Financial statement summary for one company and period.
    ``type`` is "A" for annual rows; ``year_end`` is YYYYMM.
    """
    __tablename__ = "companyfinancials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fincode = Column(Integer, nullable=False, index=True)
    type = Column(String(1), nullable=False)
    year_end = Column(Integer, nullable=False)
    adjusted_eps = Column(Float)
    eps_growth = Column("epsGrowth", Float)
    dividend_yield = Column("yeild", Float)
    price_to_earnings_ratio = Column(Float)
    price_to_book_ratio = Column(Float)
    return_on_equity = Column(Float)
    return_on_assets = Column(Float)
    debt_ratio = Column(Float)
    core_ebitda = Column("core_ebita", Float)
    core_ebitda_margin = Column("core_ebita_margin", Float)
    pat_margin = Column(Float)
    asset_turnover = Column(Float)

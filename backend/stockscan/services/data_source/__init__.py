"""
Price Data Source

CONTRACT:
    Output: PriceRow / FundamentalsRow lists, sorted by (instrument, timestamp)

The engine never queries storage itself; it receives rows from here.
"""

from stockscan.services.data_source.interface import PriceDataSource
from stockscan.services.data_source.sql_source import SqlPriceDataSource

__all__ = [
    "PriceDataSource",
    "SqlPriceDataSource",
]

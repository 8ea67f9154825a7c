"""
StockScan Backend

Technical-indicator screener for listed equities.
"""

__version__ = "0.1.0"

from .price_db import PriceDB, PriceStats, PriceStore, SQLiteLoggingHandler

__all__ = ["PriceDB", "PriceStats", "PriceStore", "SQLiteLoggingHandler"]

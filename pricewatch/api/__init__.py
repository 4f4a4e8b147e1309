"""
API Package
===========

External price feed clients.

Components:
- binance.py: PriceSource interface, BinancePriceSource
"""

from .binance import BinancePriceSource, PriceSource, RESPONSE_FIELDS

__all__ = [
    "BinancePriceSource",
    "PriceSource",
    "RESPONSE_FIELDS",
]

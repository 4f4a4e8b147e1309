"""
Error types shared across the monitor.

Only ConfigError is fatal. The others are raised by a single collaborator
call and contained by the monitor loop for that asset and cycle.
"""


class PriceWatchError(Exception):
    """Base class for all pricewatch errors."""


class ConfigError(PriceWatchError):
    """Malformed or inconsistent startup configuration."""


class FetchError(PriceWatchError):
    """Price feed unreachable, non-2xx, or returned an unusable payload."""

    def __init__(self, symbol: str, message: str):
        self.symbol = symbol
        super().__init__(f"{symbol}: {message}")


class PersistError(PriceWatchError):
    """Write to the price store failed."""


class QueryError(PriceWatchError):
    """Read from the price store failed."""


class DeliveryError(PriceWatchError):
    """Alert channel did not accept the message."""

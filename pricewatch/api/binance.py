"""
Binance Ticker Client

Single responsibility: resolve one symbol to its current price through the
Binance public ticker REST API.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

import requests

from ..config import DEFAULT_FEED_MODE, FEED_URLS, REQUEST_TIMEOUT_SECONDS
from ..errors import FetchError
from ..models import PriceQuote

logger = logging.getLogger(__name__)

# Response field names per feed mode: (price field, variation field)
RESPONSE_FIELDS = {
    "24hr": ("lastPrice", "priceChangePercent"),
    "price": ("price", None),
}


class PriceSource(ABC):
    """Anything that can quote a current price for a symbol."""

    @abstractmethod
    def get_price(self, symbol: str) -> PriceQuote:
        """
        Fetch the current quote for symbol.

        Raises:
            FetchError: On any transport or payload problem
        """


def _parse_number(symbol: str, payload: dict, field: str) -> float:
    if field not in payload:
        raise FetchError(symbol, f"response is missing '{field}'")

    raw = payload[field]
    # Binance sends numbers as strings; bool is an int subclass and never valid
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise FetchError(symbol, f"'{field}' is not numeric: {raw!r}")
    try:
        value = float(raw)
    except ValueError:
        raise FetchError(symbol, f"'{field}' is not numeric: {raw!r}") from None
    if not math.isfinite(value):
        raise FetchError(symbol, f"'{field}' is not finite: {raw!r}")
    return value


class BinancePriceSource(PriceSource):
    """
    Synchronous client for the Binance ticker endpoints.

    Supports the two response shapes:
    - "24hr":  {"symbol", "lastPrice", "priceChangePercent", ...}
    - "price": {"symbol", "price"}

    One request per call. No caching, retries or rate-limit handling.
    """

    def __init__(
        self,
        mode: str = DEFAULT_FEED_MODE,
        base_url: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        if mode not in RESPONSE_FIELDS:
            raise ValueError(f"Unknown feed mode: {mode}")
        self.mode = mode
        self.base_url = base_url or FEED_URLS[mode]
        self.timeout = timeout
        self.session = session or requests.Session()
        self._price_field, self._variation_field = RESPONSE_FIELDS[mode]

    def close(self):
        """Close the HTTP session."""
        self.session.close()

    def get_price(self, symbol: str) -> PriceQuote:
        """
        Get the current price (and 24h variation in "24hr" mode) for symbol.

        Args:
            symbol: Exchange symbol (e.g., "BTCUSDT")

        Returns:
            PriceQuote

        Raises:
            FetchError: On transport failure, timeout, non-2xx status,
                unparseable body or non-numeric fields
        """
        try:
            response = self.session.get(
                self.base_url,
                params={"symbol": symbol},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout:
            raise FetchError(symbol, f"request timed out after {self.timeout}s") from None
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            raise FetchError(symbol, f"HTTP error {status}") from e
        except requests.exceptions.JSONDecodeError as e:
            raise FetchError(symbol, "response body is not valid JSON") from e
        except requests.exceptions.RequestException as e:
            raise FetchError(symbol, f"request failed: {type(e).__name__}") from e
        except ValueError as e:
            raise FetchError(symbol, "response body is not valid JSON") from e

        if not isinstance(payload, dict):
            raise FetchError(symbol, f"unexpected response type {type(payload).__name__}")

        price = _parse_number(symbol, payload, self._price_field)
        variation = None
        if self._variation_field:
            variation = _parse_number(symbol, payload, self._variation_field)

        logger.debug(f"Fetched {symbol}: price={price} variation={variation}")
        return PriceQuote(price=price, variation=variation)

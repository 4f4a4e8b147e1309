"""
Price Models
============

Dataclasses for price observations and threshold breaches.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PriceQuote:
    """A single answer from the price feed."""
    price: float
    variation: Optional[float] = None  # 24h change in percent, if the feed reports it


@dataclass(frozen=True)
class PriceObservation:
    """One persisted price reading for a symbol."""
    symbol: str
    price: float
    variation: Optional[float] = None
    observed_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        """JSON shape served by the query endpoint."""
        data = {"symbol": self.symbol, "price": self.price}
        if self.variation is not None:
            data["variation"] = self.variation
        return data


class Breach(Enum):
    """Outcome of comparing a price against its thresholds."""
    NONE = "none"
    MAX = "max"
    MIN = "min"


@dataclass(frozen=True)
class ThresholdBreach:
    """A price at or beyond one of its asset's thresholds."""
    symbol: str
    price: float
    kind: Breach

    @property
    def message(self) -> str:
        """Human-readable alert text."""
        bound = "maximum" if self.kind is Breach.MAX else "minimum"
        return (
            f"Alert: the price of asset {self.symbol} has reached "
            f"the {bound} value of ${self.price:.2f}"
        )

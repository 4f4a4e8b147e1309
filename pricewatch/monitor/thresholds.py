"""
Threshold Rules
===============

Classify a price against an asset's max/min bounds.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from ..config import AssetConfig
from ..models import Breach, PriceObservation, ThresholdBreach

logger = logging.getLogger(__name__)


def evaluate_threshold(price: float, max_threshold: float, min_threshold: float) -> Breach:
    """
    Compare a price against its bounds.

    price >= max wins over price <= min when both hold (only possible with
    min >= max, which config loading rejects). NaN anywhere is never a breach.

    Args:
        price: Observed price
        max_threshold: Upper bound (inclusive)
        min_threshold: Lower bound (inclusive)

    Returns:
        Breach.MAX, Breach.MIN or Breach.NONE
    """
    if math.isnan(price) or math.isnan(max_threshold) or math.isnan(min_threshold):
        logger.warning(
            f"NaN in threshold evaluation (price={price}, max={max_threshold}, "
            f"min={min_threshold}), treating as no breach"
        )
        return Breach.NONE

    if price >= max_threshold:
        return Breach.MAX
    if price <= min_threshold:
        return Breach.MIN
    return Breach.NONE


@dataclass(frozen=True)
class ThresholdRule:
    """Max/min bounds for one symbol."""
    symbol: str
    max_threshold: float
    min_threshold: float

    @classmethod
    def from_asset(cls, asset: AssetConfig) -> "ThresholdRule":
        return cls(asset.symbol, asset.max_threshold, asset.min_threshold)

    def classify(self, price: float) -> Breach:
        return evaluate_threshold(price, self.max_threshold, self.min_threshold)

    def evaluate(self, observation: PriceObservation) -> Optional[ThresholdBreach]:
        """Return the breach for this observation, or None when in range."""
        kind = self.classify(observation.price)
        if kind is Breach.NONE:
            return None
        return ThresholdBreach(symbol=observation.symbol, price=observation.price, kind=kind)

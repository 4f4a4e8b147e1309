"""
Shared Data Models
==================

This package contains dataclasses used across the project.
"""

from .price import Breach, PriceObservation, PriceQuote, ThresholdBreach, utc_now

__all__ = [
    "Breach",
    "PriceObservation",
    "PriceQuote",
    "ThresholdBreach",
    "utc_now",
]

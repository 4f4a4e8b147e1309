"""
Monitor Package
===============

Periodic price monitoring.

Components:
- service.py: MonitorService polling loop and per-cycle results
- thresholds.py: Max/min threshold evaluation
- ticker.py: Cancellable fixed-interval scheduler
"""

from .service import AssetResult, AssetStatus, CycleSummary, MonitorService
from .thresholds import ThresholdRule, evaluate_threshold
from .ticker import Ticker

__all__ = [
    "AssetResult",
    "AssetStatus",
    "CycleSummary",
    "MonitorService",
    "ThresholdRule",
    "Ticker",
    "evaluate_threshold",
]

"""
pricewatch
==========

Periodic market price monitor: polls a ticker feed, records every
observation, alerts on threshold breaches and serves the latest price.
"""

__version__ = "0.3.0"

#!/usr/bin/env python3
"""
Health check script for the price monitor.

Returns exit code 0 if healthy, non-zero otherwise.
Used by Docker health checks to determine container health.

Checks:
1. Database connectivity
2. Observations written recently (< 3 check intervals)
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pricewatch.config import load_config
from pricewatch.db import PriceDB
from pricewatch.errors import ConfigError, PersistError, QueryError


def check_health() -> bool:
    """
    Perform health checks.

    Returns:
        True if healthy, False otherwise
    """
    try:
        config = load_config(dry_run=True)
    except ConfigError as e:
        print(f"FAIL: Configuration error: {e}")
        return False

    try:
        db = PriceDB(config.database_path)
        stats = db.get_stats()
    except (PersistError, QueryError) as e:
        print(f"FAIL: Database error: {e}")
        return False

    if stats.last_observed_at is None:
        # This is OK during initial startup
        print("WARN: No observations yet (may be initializing)")
        return True

    max_age = config.check_interval_sec * 3
    age = (datetime.now(timezone.utc) - stats.last_observed_at).total_seconds()
    if age > max_age:
        print(f"FAIL: No observations for {age:.0f}s (> {max_age:.0f}s)")
        return False

    print(
        f"OK: {stats.total_records} observations, {stats.symbol_count} symbols, "
        f"last {age:.0f}s ago"
    )
    return True


def main():
    """Run health check and exit with appropriate code."""
    sys.exit(0 if check_health() else 1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
View stored price observations.

Usage:
    python3 scripts/view_prices.py                    # Latest price per configured asset
    python3 scripts/view_prices.py BTCUSDT            # Recent history for one symbol
    python3 scripts/view_prices.py BTCUSDT --limit 50
"""

import argparse
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pricewatch.config import DEFAULT_DATABASE_URL, database_path_from_url, load_env_file, parse_assets
from pricewatch.db import PriceDB
from pricewatch.errors import ConfigError, QueryError


def print_header(title: str):
    print("\n" + "=" * 80)
    print(f"  {title}")
    print("=" * 80)


def format_value(val):
    """Format a value for display."""
    if val is None:
        return "NULL"
    if isinstance(val, float):
        if abs(val) >= 1000:
            return f"${val:,.2f}"
        return f"{val:.4f}"
    return str(val)


def format_variation(val):
    return "-" if val is None else f"{val:+.2f}%"


def view_history(db: PriceDB, symbol: str, limit: int):
    print_header(f"PRICE HISTORY: {symbol}")
    observations = db.history(symbol, limit=limit)
    if not observations:
        print("No records.")
        return

    print(f"{'Observed At (UTC)':<34} {'Price':>18} {'Variation':>12}")
    print("-" * 66)
    for obs in observations:
        print(
            f"{obs.observed_at.isoformat(timespec='seconds'):<34} "
            f"{format_value(obs.price):>18} {format_variation(obs.variation):>12}"
        )


def view_latest(db: PriceDB, symbols):
    print_header("LATEST PRICES")
    stats = db.get_stats()
    print(f"Records: {stats.total_records} across {stats.symbol_count} symbols")
    print()
    print(f"{'Symbol':<14} {'Price':>18} {'Variation':>12}  Observed At (UTC)")
    print("-" * 80)
    for symbol in symbols:
        obs = db.latest(symbol)
        if obs is None:
            print(f"{symbol:<14} {'-':>18} {'-':>12}  never")
            continue
        print(
            f"{symbol:<14} {format_value(obs.price):>18} {format_variation(obs.variation):>12}  "
            f"{obs.observed_at.isoformat(timespec='seconds')}"
        )


def main():
    parser = argparse.ArgumentParser(description="View stored prices")
    parser.add_argument("symbol", nargs="?", help="Symbol to show history for")
    parser.add_argument("--limit", type=int, default=20, help="History rows to show (default: 20)")
    args = parser.parse_args()

    load_env_file()
    try:
        db_path = database_path_from_url(os.environ.get("DATABASE_URL") or DEFAULT_DATABASE_URL)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(2)

    if not db_path.exists():
        print(f"Database not found: {db_path}")
        sys.exit(1)

    db = PriceDB(db_path)
    try:
        if args.symbol:
            view_history(db, args.symbol, args.limit)
        else:
            try:
                assets = parse_assets(
                    os.environ.get("ASSETS"),
                    os.environ.get("MAX_THRESHOLDS"),
                    os.environ.get("MIN_THRESHOLDS"),
                )
            except ConfigError as e:
                print(f"Configuration error: {e}")
                sys.exit(2)
            view_latest(db, [a.symbol for a in assets])
    except QueryError as e:
        print(f"Query failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

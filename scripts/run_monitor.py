#!/usr/bin/env python3
"""
Price Monitor Service - CLI Entry Point
=======================================

Polls the price feed for every configured asset once per interval, stores
each observation, sends a Telegram alert when a price reaches its max or min
threshold, and serves the latest stored price at GET /get-prices?symbol=X.

Configuration comes from the environment or a .env file in the project root
(ASSETS, MAX_THRESHOLDS, MIN_THRESHOLDS, DATABASE_URL, TELEGRAM_TOKEN,
TELEGRAM_CHAT_ID, ...).

Usage:
    # Start monitor
    python scripts/run_monitor.py

    # Dry run (alerts logged, not sent)
    python scripts/run_monitor.py --dry-run

    # One cycle, then exit
    python scripts/run_monitor.py --once --no-server

    # Test Telegram configuration
    python scripts/run_monitor.py --test-telegram
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pricewatch.alerts import AlertConfig, TelegramNotifier, send_test_alert
from pricewatch.api import BinancePriceSource
from pricewatch.config import Config, load_config, load_env_file
from pricewatch.db import PriceDB, SQLiteLoggingHandler
from pricewatch.errors import ConfigError, PersistError
from pricewatch.monitor import MonitorService, Ticker
from pricewatch.server import QueryServer, create_app

EXIT_CONFIG_ERROR = 2


def setup_logging(config: Config, log_level: str = None):
    """Configure logging for the monitor service."""
    level = getattr(logging, (log_level or config.log_level).upper())

    log_path = Path(config.log_file)
    if not log_path.is_absolute():
        log_path = project_root / log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Create date-stamped log file (e.g., logs/pricewatch_2026-01-18.log)
    date_str = datetime.now().strftime("%Y-%m-%d")
    dated_log_file = log_path.parent / f"{log_path.stem}_{date_str}{log_path.suffix}"

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # File handler (date-stamped)
    file_handler = logging.FileHandler(dated_log_file)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # SQLite handler (persists logs next to the price data)
    sqlite_handler = SQLiteLoggingHandler(db_path=config.database_path, level=level)
    sqlite_handler.setFormatter(formatter)
    root_logger.addHandler(sqlite_handler)

    # Reduce noise from HTTP libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    root_logger.info(f"Logging to: {dated_log_file}")


def main():
    parser = argparse.ArgumentParser(
        description='Price Monitor Service',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_monitor.py                  # Start monitor
  python scripts/run_monitor.py --dry-run        # Log alerts only
  python scripts/run_monitor.py --once           # Single cycle
  python scripts/run_monitor.py --test-telegram  # Test Telegram setup
        """
    )

    parser.add_argument(
        '--interval',
        type=float,
        default=None,
        help='Seconds between cycles (default: CHECK_INTERVAL_SECONDS or 60)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log alerts instead of sending them to Telegram'
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single cycle and exit'
    )

    parser.add_argument(
        '--no-server',
        action='store_true',
        help='Do not start the /get-prices query endpoint'
    )

    parser.add_argument(
        '--test-telegram',
        action='store_true',
        help='Send a test alert to verify Telegram configuration'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Log level (default: LOG_LEVEL or INFO)'
    )

    args = parser.parse_args()

    # Test Telegram mode
    if args.test_telegram:
        load_env_file()
        logging.basicConfig(level=logging.INFO)
        print("Testing Telegram configuration...")
        if send_test_alert(dry_run=args.dry_run):
            print("Test alert sent successfully!")
            sys.exit(0)
        print("Failed to send test alert. Check your TELEGRAM_TOKEN and TELEGRAM_CHAT_ID.")
        sys.exit(1)

    # Configuration errors are fatal before anything touches the network
    try:
        config = load_config(dry_run=args.dry_run)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    interval = args.interval if args.interval is not None else config.check_interval_sec
    if interval <= config.request_timeout_sec:
        print(
            f"Configuration error: interval ({interval}s) must be longer than "
            f"the request timeout ({config.request_timeout_sec}s)",
            file=sys.stderr,
        )
        sys.exit(EXIT_CONFIG_ERROR)

    setup_logging(config, args.log_level)
    logger = logging.getLogger(__name__)

    print("\n" + "=" * 60)
    print("PRICE MONITOR SERVICE")
    print("=" * 60)
    print(f"Assets:         {', '.join(config.symbols)}")
    print(f"Feed:           {config.feed_mode} ({config.feed_url})")
    print(f"Database:       {config.database_path}")
    print(f"Interval:       {interval} seconds")
    print(f"Dry run:        {args.dry_run}")
    print("=" * 60)

    try:
        store = PriceDB(config.database_path)
    except PersistError as e:
        logger.error(f"Error connecting to the database: {e}")
        sys.exit(1)

    price_source = BinancePriceSource(
        mode=config.feed_mode,
        base_url=config.feed_url,
        timeout=config.request_timeout_sec,
    )
    notifier = TelegramNotifier(AlertConfig(
        bot_token=config.telegram_token,
        chat_id=config.telegram_chat_id,
        dry_run=args.dry_run,
        timeout=config.request_timeout_sec,
    ))

    service = MonitorService(
        assets=config.assets,
        price_source=price_source,
        store=store,
        notifier=notifier,
        ticker=Ticker(interval),
    )

    server = None
    if not args.no_server:
        try:
            server = QueryServer(create_app(store), host=config.http_host, port=config.http_port)
        except OSError as e:
            logger.error(f"Error at starting server: {e}")
            sys.exit(1)
        server.start()

    service.install_signal_handlers()
    print("\nStarting monitor service...")
    print("Press Ctrl+C to stop\n")

    try:
        service.run(max_cycles=1 if args.once else None)
    except Exception as e:
        logger.exception(f"Monitor service error: {e}")
        sys.exit(1)
    finally:
        if server is not None:
            server.shutdown()
        price_source.close()
        logging.shutdown()


if __name__ == "__main__":
    main()

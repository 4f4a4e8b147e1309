"""
Price Database

Append-only SQLite log of price observations, plus persisted service logs.

- WAL mode so the query endpoint can read while the monitor writes
- One connection per operation; SQLite's own locking does the rest
- Timestamps are ISO-8601 UTC text with microseconds, so text order is time order
"""

import logging
import sqlite3
import sys
import threading
import time
import traceback
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from queue import Empty, Queue
from typing import List, Optional

from ..errors import PersistError, QueryError
from ..models import PriceObservation

logger = logging.getLogger(__name__)

# Database connection settings
DB_TIMEOUT = 10.0  # seconds

# Server-side default for created_at, same shape as datetime.isoformat(timespec="microseconds")
_SQL_UTC_NOW = "(strftime('%Y-%m-%dT%H:%M:%f', 'now') || '000+00:00')"

PRICES_SCHEMA = f"""
    CREATE TABLE IF NOT EXISTS asset_prices (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        symbol TEXT NOT NULL,
        price REAL NOT NULL,
        variation REAL,
        created_at TEXT NOT NULL DEFAULT {_SQL_UTC_NOW}
    )
"""

PRICES_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_asset_prices_symbol_time
    ON asset_prices(symbol, created_at)
"""

SERVICE_LOGS_SCHEMA = """
    CREATE TABLE IF NOT EXISTS service_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        level TEXT NOT NULL,
        logger_name TEXT NOT NULL,
        message TEXT NOT NULL,
        exc_info TEXT
    )
"""


def format_timestamp(dt: datetime) -> str:
    """Serialize a datetime as sortable UTC text."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class PriceStats:
    """Statistics about the price log."""
    total_records: int
    symbol_count: int
    last_observed_at: Optional[datetime]


class PriceStore(ABC):
    """Append-only observation log with a latest-per-symbol lookup."""

    @abstractmethod
    def append(self, observation: PriceObservation) -> int:
        """Insert one observation; raises PersistError on failure."""

    @abstractmethod
    def latest(self, symbol: str) -> Optional[PriceObservation]:
        """Newest observation for symbol or None; raises QueryError on failure."""


class PriceDB(PriceStore):
    """
    SQLite store for price observations.

    Tracks:
    - Every observation the monitor makes (never updated or deleted)
    - Latest observation per symbol for the query endpoint
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.initialize()

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(str(self.db_path), timeout=DB_TIMEOUT)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self):
        """
        Create the schema if it does not exist. Safe to call on every startup.

        Raises:
            PersistError: If the directory or schema cannot be created
        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._get_connection() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute(PRICES_SCHEMA)
                conn.execute(PRICES_INDEX)
                conn.execute(SERVICE_LOGS_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise PersistError(f"Error creating schema in {self.db_path}: {e}") from e
        logger.info(f"Table asset_prices is ready ({self.db_path})")

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def append(self, observation: PriceObservation) -> int:
        """
        Insert one observation. Duplicates are kept.

        Returns:
            Row id of the new record

        Raises:
            PersistError: On any database failure
        """
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO asset_prices (symbol, price, variation, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        observation.symbol,
                        observation.price,
                        observation.variation,
                        format_timestamp(observation.observed_at),
                    ),
                )
                return cursor.lastrowid
        except sqlite3.Error as e:
            raise PersistError(f"Error saving price for {observation.symbol}: {e}") from e

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def latest(self, symbol: str) -> Optional[PriceObservation]:
        """
        Most recent observation for symbol.

        Returns:
            PriceObservation, or None if the symbol has never been recorded

        Raises:
            QueryError: On any database failure
        """
        rows = self._select(symbol, limit=1)
        return rows[0] if rows else None

    def history(self, symbol: str, limit: int = 20) -> List[PriceObservation]:
        """Most recent observations for symbol, newest first."""
        return self._select(symbol, limit=limit)

    def _select(self, symbol: str, limit: int) -> List[PriceObservation]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT symbol, price, variation, created_at
                    FROM asset_prices
                    WHERE symbol = ?
                    ORDER BY created_at DESC, id DESC
                    LIMIT ?
                    """,
                    (symbol, limit),
                ).fetchall()
        except sqlite3.Error as e:
            raise QueryError(f"Error fetching prices for {symbol}: {e}") from e
        return [self._row_to_observation(row) for row in rows]

    def get_stats(self) -> PriceStats:
        """
        Get summary statistics for the price log.

        Raises:
            QueryError: On any database failure
        """
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    """
                    SELECT COUNT(*) AS total,
                           COUNT(DISTINCT symbol) AS symbols,
                           MAX(created_at) AS last_created
                    FROM asset_prices
                    """
                ).fetchone()
        except sqlite3.Error as e:
            raise QueryError(f"Error reading price stats: {e}") from e

        return PriceStats(
            total_records=row["total"],
            symbol_count=row["symbols"],
            last_observed_at=parse_timestamp(row["last_created"]) if row["last_created"] else None,
        )

    def _row_to_observation(self, row: sqlite3.Row) -> PriceObservation:
        return PriceObservation(
            symbol=row["symbol"],
            price=row["price"],
            variation=row["variation"],
            observed_at=parse_timestamp(row["created_at"]),
        )


class SQLiteLoggingHandler(logging.Handler):
    """
    Logging handler that persists records to the service_logs table.

    emit() only enqueues a row; a writer thread inserts rows in batches so
    the monitor loop never waits on the database. flush() blocks until every
    enqueued row has been committed (or the timeout passes), and close()
    writes whatever is still queued before returning.
    """

    _STOP = None

    def __init__(
        self,
        db_path: Path,
        batch_size: int = 50,
        flush_interval: float = 5.0,
        level: int = logging.INFO
    ):
        super().__init__(level)
        self.db_path = Path(db_path)
        self.batch_size = batch_size
        self.flush_interval = flush_interval

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._rows: Queue = Queue()
        self._closed = False
        self._writer = threading.Thread(target=self._run, daemon=True, name="SQLiteLogWriter")
        self._writer.start()

    def emit(self, record: logging.LogRecord):
        if self._closed:
            return
        try:
            exc_text = None
            if record.exc_info:
                exc_text = ''.join(traceback.format_exception(*record.exc_info))
            self._rows.put((
                format_timestamp(datetime.now(timezone.utc)),
                record.levelname,
                record.name,
                self.format(record),
                exc_text,
            ))
        except Exception:
            self.handleError(record)

    def _next_batch(self) -> Optional[List[tuple]]:
        """Block for the first row, then take what is already queued. None means stop."""
        try:
            first = self._rows.get(timeout=self.flush_interval)
        except Empty:
            return []
        if first is self._STOP:
            return None

        batch = [first]
        while len(batch) < self.batch_size:
            try:
                row = self._rows.get_nowait()
            except Empty:
                break
            if row is self._STOP:
                # Put the marker back so the next call ends the loop
                self._rows.task_done()
                self._rows.put(self._STOP)
                break
            batch.append(row)
        return batch

    def _run(self):
        while True:
            batch = self._next_batch()
            if batch is None:
                self._rows.task_done()
                return
            if not batch:
                continue
            try:
                self._insert(batch)
            finally:
                for _ in batch:
                    self._rows.task_done()

    def _insert(self, batch: List[tuple]):
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=DB_TIMEOUT)
            try:
                conn.execute(SERVICE_LOGS_SCHEMA)
                conn.executemany(
                    "INSERT INTO service_logs (timestamp, level, logger_name, message, exc_info) "
                    "VALUES (?, ?, ?, ?, ?)",
                    batch,
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error:
            # Logging must not log through itself; report on stderr
            traceback.print_exc(file=sys.stderr)

    def flush(self, timeout: Optional[float] = None):
        """Wait until every queued row is committed, or timeout seconds pass."""
        deadline = time.monotonic() + (self.flush_interval * 2 if timeout is None else timeout)
        done = self._rows.all_tasks_done
        with done:
            while self._rows.unfinished_tasks:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return
                done.wait(remaining)

    def close(self):
        if not self._closed:
            self._closed = True
            self._rows.put(self._STOP)
            self._writer.join(timeout=10)
        super().close()

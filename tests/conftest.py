"""Pytest configuration and fixtures for pricewatch tests."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from pricewatch.alerts import Notifier
from pricewatch.api import PriceSource
from pricewatch.config import AssetConfig
from pricewatch.db import PriceDB, PriceStore
from pricewatch.errors import DeliveryError, PersistError
from pricewatch.models import PriceObservation, PriceQuote
from pricewatch.monitor import Ticker


class FakePriceSource(PriceSource):
    """Replays scripted quotes per symbol; exceptions in the script are raised."""

    def __init__(self, script: Dict[str, list]):
        self.script = {symbol: list(items) for symbol, items in script.items()}
        self.calls: List[str] = []

    def get_price(self, symbol: str) -> PriceQuote:
        self.calls.append(symbol)
        item = self.script[symbol].pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, PriceQuote):
            return item
        return PriceQuote(price=float(item))


class InMemoryPriceStore(PriceStore):
    """List-backed store; set fail=True to make appends raise PersistError."""

    def __init__(self):
        self.records: List[PriceObservation] = []
        self.fail = False

    def append(self, observation: PriceObservation) -> int:
        if self.fail:
            raise PersistError("disk full")
        self.records.append(observation)
        return len(self.records)

    def latest(self, symbol: str) -> Optional[PriceObservation]:
        matches = [r for r in self.records if r.symbol == symbol]
        return max(matches, key=lambda r: r.observed_at) if matches else None


class RecordingNotifier(Notifier):
    """Keeps every message; set fail=True to raise DeliveryError after recording."""

    def __init__(self):
        self.messages: List[str] = []
        self.fail = False

    def send(self, message: str):
        self.messages.append(message)
        if self.fail:
            raise DeliveryError("Telegram HTTP error: 502")


class FakeClock:
    """Advances one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def assets() -> List[AssetConfig]:
    return [
        AssetConfig("BTCUSDT", max_threshold=60000.0, min_threshold=50000.0),
        AssetConfig("ETHUSDT", max_threshold=4000.0, min_threshold=3000.0),
    ]


@pytest.fixture
def memory_store() -> InMemoryPriceStore:
    return InMemoryPriceStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def instant_ticker() -> Ticker:
    """Ticker whose wait returns immediately."""
    return Ticker(60, wait=lambda timeout: False)


@pytest.fixture
def price_db(tmp_path) -> PriceDB:
    return PriceDB(tmp_path / "prices.db")


@pytest.fixture
def base_env() -> Dict[str, str]:
    return {
        "ASSETS": "BTCUSDT,ETHUSDT",
        "MAX_THRESHOLDS": "70000,4000",
        "MIN_THRESHOLDS": "50000,3000",
        "DATABASE_URL": "sqlite:///data/test.db",
        "TELEGRAM_TOKEN": "test-token",
        "TELEGRAM_CHAT_ID": "12345",
    }

"""
Monitor Service
===============

The polling loop: every cycle, for each configured asset in order,

    fetch price -> persist observation -> evaluate thresholds -> alert on breach

Failures are contained per asset and per cycle. A failed fetch skips the
rest of that asset; a failed write still evaluates and alerts; a failed
alert is logged and dropped. The next cycle is the only retry.
"""

import logging
import signal
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Sequence

from ..alerts.telegram import Notifier
from ..api.binance import PriceSource
from ..config import CHECK_INTERVAL_SECONDS, AssetConfig
from ..db.price_db import PriceStore
from ..errors import DeliveryError, FetchError, PersistError
from ..models import Breach, PriceObservation, utc_now
from .thresholds import ThresholdRule
from .ticker import Ticker

logger = logging.getLogger(__name__)


class AssetStatus(Enum):
    """Outcome of processing one asset in one cycle."""
    OK = "ok"
    FETCH_FAILED = "fetch_failed"
    PERSIST_FAILED = "persist_failed"


@dataclass
class AssetResult:
    """What happened to one asset during a cycle."""
    symbol: str
    status: AssetStatus
    observation: Optional[PriceObservation] = None
    breach: Breach = Breach.NONE
    alert_sent: bool = False
    error: Optional[str] = None


@dataclass
class CycleSummary:
    """Per-asset results of one cycle, in configured order."""
    cycle: int
    started_at: datetime
    results: List[AssetResult] = field(default_factory=list)

    @property
    def ok_count(self) -> int:
        return sum(1 for r in self.results if r.status is AssetStatus.OK)

    @property
    def fetch_failures(self) -> int:
        return sum(1 for r in self.results if r.status is AssetStatus.FETCH_FAILED)

    @property
    def persist_failures(self) -> int:
        return sum(1 for r in self.results if r.status is AssetStatus.PERSIST_FAILED)

    @property
    def breaches(self) -> int:
        return sum(1 for r in self.results if r.breach is not Breach.NONE)

    @property
    def alerts_sent(self) -> int:
        return sum(1 for r in self.results if r.alert_sent)

    def describe(self) -> str:
        return (
            f"Cycle {self.cycle} complete: {self.ok_count}/{len(self.results)} ok, "
            f"{self.fetch_failures} fetch failed, {self.persist_failures} persist failed, "
            f"{self.breaches} breaches, {self.alerts_sent} alerts sent"
        )


class MonitorService:
    """
    Periodic price monitor.

    All collaborators are passed in, so tests can swap in a fake price
    source, an in-memory store, a recording notifier and a non-sleeping
    ticker.
    """

    def __init__(
        self,
        assets: Sequence[AssetConfig],
        price_source: PriceSource,
        store: PriceStore,
        notifier: Notifier,
        interval: float = CHECK_INTERVAL_SECONDS,
        ticker: Optional[Ticker] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the monitor service.

        Args:
            assets: Assets to poll, in processing order
            price_source: Quote provider
            store: Observation log
            notifier: Alert channel
            interval: Seconds between cycles (ignored when ticker is given)
            ticker: Cycle scheduler (default: Ticker(interval))
            clock: Returns the current UTC time; stamps observations
        """
        self.assets = tuple(assets)
        self.rules = [ThresholdRule.from_asset(asset) for asset in self.assets]
        self.price_source = price_source
        self.store = store
        self.notifier = notifier
        self.ticker = ticker or Ticker(interval)
        self.clock = clock

        self.last_summary: Optional[CycleSummary] = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def install_signal_handlers(self):
        """Stop the loop on SIGINT/SIGTERM. Call from the main thread."""
        signal.signal(signal.SIGINT, self._handle_shutdown)
        signal.signal(signal.SIGTERM, self._handle_shutdown)

    def _handle_shutdown(self, signum, frame):
        """Handle shutdown signals gracefully."""
        logger.info("Shutdown signal received, stopping monitor...")
        self.stop()

    def stop(self):
        self.ticker.stop()

    def run(self, max_cycles: Optional[int] = None):
        """
        Run cycles until stopped.

        Args:
            max_cycles: Stop after this many cycles (None = until stop())
        """
        logger.info("=" * 60)
        logger.info("PRICE MONITOR STARTING")
        logger.info(f"Assets: {', '.join(a.symbol for a in self.assets)}")
        logger.info(f"Interval: {self.ticker.interval}s")
        logger.info("=" * 60)

        for cycle in self.ticker:
            self.run_cycle(cycle)
            if max_cycles is not None and cycle >= max_cycles:
                break

        logger.info("PRICE MONITOR STOPPED")

    # -------------------------------------------------------------------------
    # Cycle
    # -------------------------------------------------------------------------

    def run_cycle(self, cycle: int = 1) -> CycleSummary:
        """Process every asset once, in order."""
        summary = CycleSummary(cycle=cycle, started_at=self.clock())

        for asset, rule in zip(self.assets, self.rules):
            summary.results.append(self._process_asset(asset, rule, summary.started_at))

        logger.info(summary.describe())
        self.last_summary = summary
        return summary

    def _process_asset(self, asset: AssetConfig, rule: ThresholdRule, cycle_time: datetime) -> AssetResult:
        symbol = asset.symbol
        cycle_stamp = cycle_time.isoformat(timespec="seconds")

        # Step 1: fetch
        try:
            quote = self.price_source.get_price(symbol)
        except FetchError as e:
            logger.error(f"Error getting asset price {symbol} (cycle {cycle_stamp}): {e}")
            return AssetResult(symbol, AssetStatus.FETCH_FAILED, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error getting asset price {symbol} (cycle {cycle_stamp})")
            return AssetResult(symbol, AssetStatus.FETCH_FAILED, error=f"{type(e).__name__}: {e}")

        observation = PriceObservation(
            symbol=symbol,
            price=quote.price,
            variation=quote.variation,
            observed_at=self.clock(),
        )
        if observation.variation is not None:
            logger.info(
                f"Current price of {symbol}: ${observation.price:.2f} "
                f"(Variation: {observation.variation:.2f}%)"
            )
        else:
            logger.info(f"Current price of {symbol}: ${observation.price:.2f}")

        result = AssetResult(symbol, AssetStatus.OK, observation=observation)

        # Step 2: persist (failure does not block alerting)
        try:
            self.store.append(observation)
        except PersistError as e:
            logger.error(f"Error saving price to database for {symbol} (cycle {cycle_stamp}): {e}")
            result.status = AssetStatus.PERSIST_FAILED
            result.error = str(e)
        except Exception as e:
            logger.exception(f"Unexpected error saving price for {symbol} (cycle {cycle_stamp})")
            result.status = AssetStatus.PERSIST_FAILED
            result.error = f"{type(e).__name__}: {e}"

        # Step 3: evaluate
        breach = rule.evaluate(observation)
        if breach is None:
            return result
        result.breach = breach.kind

        # Step 4: notify
        try:
            self.notifier.send(breach.message)
            result.alert_sent = True
        except DeliveryError as e:
            logger.error(f"Error sending message to Telegram for {symbol} (cycle {cycle_stamp}): {e}")
        except Exception:
            logger.exception(f"Unexpected error sending alert for {symbol} (cycle {cycle_stamp})")

        return result

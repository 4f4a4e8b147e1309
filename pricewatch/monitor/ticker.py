"""
Fixed-interval scheduler for the monitor loop.

Yields once per cycle and waits the interval in between. stop() interrupts
the wait immediately. The wait function is injectable so tests can run
cycles back to back.
"""

import logging
import threading
from typing import Callable, Iterator, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """
    Iterate cycle numbers (1, 2, 3, ...) until stopped.

    Args:
        interval: Seconds to wait after each cycle
        wait: Callable taking a timeout and returning True if the ticker was
            stopped during the wait (default: the stop event's wait)
    """

    def __init__(
        self,
        interval: float,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self._stop_event = threading.Event()
        self._wait = wait or self._stop_event.wait

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self):
        """Stop iteration; wakes a pending wait."""
        self._stop_event.set()

    def __iter__(self) -> Iterator[int]:
        tick = 0
        while not self.stopped:
            tick += 1
            yield tick

            if self.stopped:
                return
            logger.debug(f"Tick {tick} done, next in {self.interval}s")
            if self._wait(self.interval) or self.stopped:
                return

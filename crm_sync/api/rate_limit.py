"""
Minimum-interval rate limiter for sink writes.

A leaky bucket with a capacity of one: each acquire() reserves the next
free slot and blocks the calling thread until that slot opens. The first
call never waits; every later call starts at least ``interval`` seconds
after the previous one.
"""

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Minimum spacing between HubSpot create/update calls
DEFAULT_WRITE_INTERVAL = 0.2  # seconds


class RateLimiter:
    """
    Blocking minimum-interval limiter.

    Attributes:
        interval: Minimum number of seconds between two acquisitions

    Usage:
        limiter = RateLimiter(interval=0.2)
        for contact in contacts:
            limiter.acquire()
            api.create(contact)

        # Deterministic tests inject a fake clock
        limiter = RateLimiter(0.2, clock=fake.now, sleep=fake.sleep)
    """

    def __init__(
        self,
        interval: float = DEFAULT_WRITE_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the limiter.

        Args:
            interval: Minimum seconds between calls (0 disables pacing)
            clock: Monotonic time source
            sleep: Blocking sleep function
        """
        if interval < 0:
            raise ValueError("interval must be non-negative")

        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._next_slot: float | None = None
        self._lock = threading.Lock()

    def acquire(self) -> float:
        """
        Block until the next call is allowed.

        Returns:
            Seconds spent waiting
        """
        with self._lock:
            now = self._clock()
            wait = 0.0
            if self._next_slot is not None and self._next_slot > now:
                wait = self._next_slot - now

            if wait > 0:
                logger.debug(f"Rate limit: waiting {wait:.3f}s")
                self._sleep(wait)

            self._next_slot = max(now + wait, self._clock()) + self.interval
            return wait

    def reset(self) -> None:
        """Forget the previous call so the next acquire() does not wait."""
        with self._lock:
            self._next_slot = None

    def __repr__(self) -> str:
        """Return a readable string representation."""
        return f"RateLimiter(interval={self.interval})"

"""Token bucket shared across every supplier API call.

The supplier throttles aggressively, so all calls from one process draw
from a single bucket. The default allows one request every three seconds
with no burst. ``clock`` and ``sleep`` are injectable for tests.
"""

import threading
import time
from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


class TokenBucket:
    def __init__(
        self,
        rate_per_second: float,
        capacity: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive")
        self.rate = rate_per_second
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._updated = clock()
        self._lock = threading.Lock()

    @classmethod
    def every(cls, interval_seconds: float, **kwargs) -> "TokenBucket":
        """Bucket that admits one call per ``interval_seconds``."""
        return cls(rate_per_second=1.0 / interval_seconds, capacity=1.0, **kwargs)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated = now

    def acquire(self, tokens: float = 1.0) -> float:
        """Block until ``tokens`` are available. Returns the seconds waited."""
        waited = 0.0
        with self._lock:
            self._refill()
            while self._tokens < tokens:
                delay = (tokens - self._tokens) / self.rate
                logger.debug("Supplier rate limit reached, waiting", delay_seconds=round(delay, 3))
                self._sleep(delay)
                waited += delay
                self._refill()
            self._tokens -= tokens
        return waited

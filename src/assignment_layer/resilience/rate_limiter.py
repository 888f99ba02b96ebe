"""
Token bucket rate limiter for outbound provider calls.
"""

import asyncio
import time
from typing import Awaitable, Callable

import structlog

from assignment_layer.exceptions import ConfigurationError
from assignment_layer.monitoring.metrics import rate_limiter_wait_seconds

logger = structlog.get_logger(__name__)


class TokenBucketRateLimiter:
    """
    Token bucket gate bounding the outbound call rate.

    The bucket holds at most ``capacity`` tokens and is refilled in one step
    once ``refill_interval_ms`` has elapsed since the last refill. acquire()
    never fails; when the bucket is empty it sleeps until the next refill
    and checks again.

    Invariant: 0 <= tokens <= capacity.
    """

    def __init__(
        self,
        capacity: int,
        refill_interval_ms: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            capacity: Maximum tokens (calls) per refill interval
            refill_interval_ms: Refill period in milliseconds
            clock: Monotonic clock in seconds
            sleep: Coroutine used to suspend the caller
        """
        if capacity < 1:
            raise ConfigurationError(
                "Rate limiter capacity must be at least 1", details={"capacity": capacity}
            )
        if refill_interval_ms < 1:
            raise ConfigurationError(
                "Rate limiter refill interval must be at least 1 ms",
                details={"refill_interval_ms": refill_interval_ms},
            )

        self.capacity = capacity
        self.refill_interval_ms = refill_interval_ms
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._last_refill = clock()

    @property
    def tokens(self) -> int:
        """Tokens currently available (refill is applied lazily on acquire)."""
        return self._tokens

    def _elapsed_ms(self) -> float:
        return (self._clock() - self._last_refill) * 1000

    def _refill_if_due(self) -> float:
        """Refill when the interval has elapsed; return ms since last refill."""
        elapsed_ms = self._elapsed_ms()
        if elapsed_ms >= self.refill_interval_ms:
            self._tokens = min(self.capacity, self._tokens + self.capacity)
            self._last_refill = self._clock()
            elapsed_ms = 0.0
        return elapsed_ms

    async def acquire(self) -> None:
        """Suspend until a token is available, then consume it."""
        waited_s = 0.0
        while True:
            elapsed_ms = self._refill_if_due()
            if self._tokens > 0:
                self._tokens -= 1
                if waited_s:
                    rate_limiter_wait_seconds.observe(waited_s)
                return

            wait_ms = max(self.refill_interval_ms - elapsed_ms, 0.0)
            logger.debug("Rate limit reached, waiting for refill", wait_ms=round(wait_ms))
            await self._sleep(wait_ms / 1000)
            waited_s += wait_ms / 1000

"""
Circuit breaker guarding the LLM provider.

State machine (evaluated lazily on every call attempt and completion):

    CLOSED    --(failures >= threshold, at next attempt)-->  OPEN
    OPEN      --(reset timeout elapsed, at next attempt)-->  HALF_OPEN
    HALF_OPEN --(success)-->                                  CLOSED
    HALF_OPEN --(half-open timeout elapsed without failure)-> CLOSED

The half-open timeout runs from the moment the breaker entered HALF_OPEN.
    HALF_OPEN --(failure)-->                                  OPEN
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from assignment_layer.exceptions import ConfigurationError
from assignment_layer.models.enums import CircuitState
from assignment_layer.monitoring.metrics import (
    circuit_breaker_rejections_total,
    circuit_breaker_state,
)
from assignment_layer.resilience.exceptions import CircuitOpenError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CircuitBreakerSnapshot:
    """Read-only view of the breaker, for health reporting and tests."""

    state: CircuitState
    consecutive_failures: int
    last_failure_at: Optional[float]
    failure_threshold: int
    reset_timeout_ms: int
    half_open_timeout_ms: int


class CircuitBreaker:
    """
    Failure-aware gate that stops calls to a degraded upstream.

    Only the owning ResilientClient calls into it, on a single event loop,
    so no locking is needed.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout_ms: int = 60000,
        half_open_timeout_ms: int = 30000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1:
            raise ConfigurationError(
                "Circuit breaker failure threshold must be at least 1",
                details={"failure_threshold": failure_threshold},
            )

        self.failure_threshold = failure_threshold
        self.reset_timeout_ms = reset_timeout_ms
        self.half_open_timeout_ms = half_open_timeout_ms
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._last_failure_at: Optional[float] = None
        self._half_open_at = 0.0
        circuit_breaker_state.set(CircuitState.get_ordinal(self._state))

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def snapshot(self) -> CircuitBreakerSnapshot:
        return CircuitBreakerSnapshot(
            state=self._state,
            consecutive_failures=self._consecutive_failures,
            last_failure_at=self._last_failure_at,
            failure_threshold=self.failure_threshold,
            reset_timeout_ms=self.reset_timeout_ms,
            half_open_timeout_ms=self.half_open_timeout_ms,
        )

    def _ms_since_last_failure(self, now: float) -> float:
        if self._last_failure_at is None:
            return float("inf")
        return (now - self._last_failure_at) * 1000

    def _transition(self, new_state: CircuitState) -> None:
        if new_state is self._state:
            return
        logger.info(
            "Circuit breaker state change",
            from_state=self._state.value,
            to_state=new_state.value,
            consecutive_failures=self._consecutive_failures,
        )
        self._state = new_state
        circuit_breaker_state.set(CircuitState.get_ordinal(new_state))

    def _reject(self, elapsed_ms: float) -> CircuitOpenError:
        circuit_breaker_rejections_total.inc()
        return CircuitOpenError(
            retry_after_ms=self.reset_timeout_ms - elapsed_ms,
            consecutive_failures=self._consecutive_failures,
        )

    def check_admit(self) -> None:
        """
        Admit the call or raise CircuitOpenError.

        Raises:
            CircuitOpenError: The circuit is (or has just become) OPEN
        """
        now = self._clock()

        if self._state is CircuitState.CLOSED and self._consecutive_failures >= self.failure_threshold:
            self._last_failure_at = now
            self._transition(CircuitState.OPEN)
            logger.warning(
                "Circuit breaker opened",
                consecutive_failures=self._consecutive_failures,
                failure_threshold=self.failure_threshold,
            )
            raise self._reject(0.0)

        if self._state is CircuitState.OPEN:
            elapsed_ms = self._ms_since_last_failure(now)
            if elapsed_ms <= self.reset_timeout_ms:
                raise self._reject(elapsed_ms)
            self._half_open_at = now
            self._transition(CircuitState.HALF_OPEN)

        elif self._state is CircuitState.HALF_OPEN:
            if (now - self._half_open_at) * 1000 > self.half_open_timeout_ms:
                self._consecutive_failures = 0
                self._transition(CircuitState.CLOSED)

    def on_success(self) -> None:
        """Record a successful call."""
        if self._state is CircuitState.HALF_OPEN:
            self._transition(CircuitState.CLOSED)
        self._consecutive_failures = 0

    def on_failure(self) -> None:
        """Record a failed call."""
        self._consecutive_failures += 1
        self._last_failure_at = self._clock()

        if self._state is CircuitState.HALF_OPEN:
            # Probe failed; wait a full reset timeout before probing again
            self._transition(CircuitState.OPEN)

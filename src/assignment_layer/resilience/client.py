"""
Resilient client wrapping a provider client with rate limiting, circuit
breaking, bounded concurrency, retry with exponential backoff and batching.

One ResilientClient is created per process and shared by both assignment
services, so the limiter, the breaker and the in-flight set protect the
upstream across label spaces.

Usage:
    client = ResilientClient.from_settings(AnthropicClient(...), settings)
    labels_json = await client.classify([[ChatMessage(role="user", content=...)]])
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Callable, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from assignment_layer.config import Settings
from assignment_layer.exceptions import ConfigurationError, is_fatal
from assignment_layer.llm.base_client import BaseLLMClient
from assignment_layer.models.llm_models import (
    CallConfig,
    ChatMessage,
    LLMGenerationRequest,
)
from assignment_layer.monitoring.metrics import retries_total
from assignment_layer.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerSnapshot
from assignment_layer.resilience.rate_limiter import TokenBucketRateLimiter

logger = structlog.get_logger(__name__)


def calculate_backoff_delay(
    attempt: int,
    base_delay_ms: float,
    max_delay_ms: float,
    rand: Callable[[], float] = random.random,
) -> float:
    """
    Exponential backoff with jitter, in milliseconds.

    delay = min(base * 2^(attempt - 1) + jitter, max), jitter in [0, 0.1 * base)

    Args:
        attempt: Number of the attempt that just failed (1-indexed)
        base_delay_ms: Base delay
        max_delay_ms: Upper bound on the delay
        rand: Source of uniform values in [0, 1)
    """
    jitter = rand() * 0.1 * base_delay_ms
    return min(base_delay_ms * 2 ** (attempt - 1) + jitter, max_delay_ms)


class ResilientClient:
    """
    Resilience wrapper around a BaseLLMClient.

    Per request unit (one message list):
    1. Circuit breaker admission (CircuitOpenError propagates, never retried)
    2. Up to max_retries attempts, each one:
       rate limiter token -> in-flight slot -> provider call
    3. Backoff between failed attempts; the last error is re-raised

    Errors are not classified here: fatal and recoverable failures go through
    the same retry loop. Callers decide what to do with them based on the
    typed ``fatal`` attribute.
    """

    def __init__(
        self,
        llm_client: BaseLLMClient,
        defaults: CallConfig,
        rate_limit_capacity: int = 50000,
        rate_limit_refill_interval_ms: int = 60000,
        circuit_failure_threshold: int = 5,
        circuit_reset_timeout_ms: int = 60000,
        circuit_half_open_timeout_ms: int = 30000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ):
        """
        Initialize the resilient client.

        Args:
            llm_client: Provider client performing single HTTP calls
            defaults: Default call configuration (overridable per call)
            rate_limit_capacity: Token bucket capacity
            rate_limit_refill_interval_ms: Token bucket refill period
            circuit_failure_threshold: Consecutive failures before opening
            circuit_reset_timeout_ms: OPEN -> HALF_OPEN delay
            circuit_half_open_timeout_ms: HALF_OPEN -> CLOSED delay without failures
            clock: Monotonic clock in seconds (shared by limiter and breaker)
            sleep: Coroutine used for limiter waits and backoff
            rand: Jitter source
        """
        self._llm_client = llm_client
        self._defaults = defaults
        self._sleep = sleep
        self._rand = rand

        self._rate_limiter = TokenBucketRateLimiter(
            capacity=rate_limit_capacity,
            refill_interval_ms=rate_limit_refill_interval_ms,
            clock=clock,
            sleep=sleep,
        )
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=circuit_failure_threshold,
            reset_timeout_ms=circuit_reset_timeout_ms,
            half_open_timeout_ms=circuit_half_open_timeout_ms,
            clock=clock,
        )
        self._in_flight: set[asyncio.Future] = set()

        logger.info(
            "ResilientClient initialized",
            llm_client=repr(llm_client),
            model=defaults.model,
            batch_size=defaults.batch_size,
            max_concurrent=defaults.max_concurrent,
            max_retries=defaults.max_retries,
            rate_limit_capacity=rate_limit_capacity,
            circuit_failure_threshold=circuit_failure_threshold,
        )

    @classmethod
    def from_settings(cls, llm_client: BaseLLMClient, settings: Settings, **kwargs) -> "ResilientClient":
        """Build a client with tunables taken from application settings."""
        defaults = CallConfig(
            model=settings.LLM_MODEL,
            max_tokens=settings.LLM_MAX_TOKENS,
            temperature=settings.LLM_TEMPERATURE,
            top_p=settings.LLM_TOP_P,
            top_k=settings.LLM_TOP_K,
            batch_size=settings.BATCH_SIZE,
            max_concurrent=settings.MAX_CONCURRENT,
            max_retries=settings.MAX_RETRIES,
            retry_delay_ms=settings.RETRY_DELAY_MS,
            max_retry_delay_ms=settings.MAX_RETRY_DELAY_MS,
        )
        return cls(
            llm_client,
            defaults,
            rate_limit_capacity=settings.RATE_LIMIT_CAPACITY,
            rate_limit_refill_interval_ms=settings.RATE_LIMIT_REFILL_INTERVAL_MS,
            circuit_failure_threshold=settings.CIRCUIT_FAILURE_THRESHOLD,
            circuit_reset_timeout_ms=settings.CIRCUIT_RESET_TIMEOUT_MS,
            circuit_half_open_timeout_ms=settings.CIRCUIT_HALF_OPEN_TIMEOUT_MS,
            **kwargs,
        )

    # === Read-only state ===

    @property
    def available_tokens(self) -> int:
        return self._rate_limiter.tokens

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def breaker_snapshot(self) -> CircuitBreakerSnapshot:
        return self._circuit_breaker.snapshot()

    def get_config(self) -> dict[str, Any]:
        """Effective defaults plus limiter/breaker settings. Holds no credentials."""
        config = self._defaults.model_dump(exclude={"system_prompt", "tools", "tool_choice"})
        config.update(
            rate_limit_capacity=self._rate_limiter.capacity,
            rate_limit_refill_interval_ms=self._rate_limiter.refill_interval_ms,
            circuit_failure_threshold=self._circuit_breaker.failure_threshold,
            circuit_reset_timeout_ms=self._circuit_breaker.reset_timeout_ms,
            circuit_half_open_timeout_ms=self._circuit_breaker.half_open_timeout_ms,
        )
        return config

    def update_config(self, **changes: Any) -> None:
        """Replace default call settings (validated like per-call overrides)."""
        self._defaults = self._merge(changes)
        logger.info("ResilientClient defaults updated", changed=sorted(changes))

    def _merge(self, overrides: Optional[dict[str, Any]]) -> CallConfig:
        if not overrides:
            return self._defaults
        try:
            return CallConfig.model_validate({**self._defaults.model_dump(), **overrides})
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid call configuration",
                details={"overrides": sorted(overrides), "errors": e.errors(include_url=False)},
            ) from e

    # === Calls ===

    async def chat(self, messages: list[ChatMessage], overrides: Optional[dict[str, Any]] = None) -> str:
        """Send a single request unit and return the response text."""
        config = self._merge(overrides)
        return await self._execute(messages, config)

    async def classify(
        self,
        message_batches: list[list[ChatMessage]],
        overrides: Optional[dict[str, Any]] = None,
    ) -> list[str]:
        """
        Send many request units; return one response text per unit, in order.

        Units are processed in groups of ``batch_size``; groups run one after
        the other, units of a group run concurrently within ``max_concurrent``.

        Raises:
            CircuitOpenError: The breaker rejected a unit
            LLMClientError: A unit still failed after max_retries attempts
            ConfigurationError: Invalid overrides or an empty message list
        """
        config = self._merge(overrides)
        if not message_batches:
            return []

        results: list[str] = []
        for start in range(0, len(message_batches), config.batch_size):
            group = message_batches[start:start + config.batch_size]
            outcomes = await asyncio.gather(
                *(self._execute(messages, config) for messages in group),
                return_exceptions=True,
            )

            errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
            if errors:
                logger.warning(
                    "Request group failed",
                    group_start=start,
                    group_size=len(group),
                    failed=len(errors),
                    first_error=type(errors[0]).__name__,
                )
                raise next((error for error in errors if is_fatal(error)), errors[0])

            results.extend(outcomes)

        return results

    def _build_request(self, messages: list[ChatMessage], config: CallConfig) -> LLMGenerationRequest:
        if not messages:
            raise ConfigurationError("A request unit needs at least one message")
        return LLMGenerationRequest(
            messages=messages,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            top_p=config.top_p,
            top_k=config.top_k,
            stop_sequences=config.stop_sequences,
            system=config.system_prompt or None,
            metadata=config.metadata,
            tools=config.tools,
            tool_choice=config.tool_choice,
        )

    async def _acquire_slot(self, max_concurrent: int) -> None:
        while len(self._in_flight) >= max_concurrent:
            await asyncio.wait(set(self._in_flight), return_when=asyncio.FIRST_COMPLETED)

    async def _execute(self, messages: list[ChatMessage], config: CallConfig) -> str:
        request = self._build_request(messages, config)
        self._circuit_breaker.check_admit()

        for attempt in range(1, config.max_retries + 1):
            await self._rate_limiter.acquire()
            await self._acquire_slot(config.max_concurrent)

            task = asyncio.ensure_future(self._llm_client.generate(request))
            self._in_flight.add(task)
            try:
                response = await task
            except Exception as e:
                self._circuit_breaker.on_failure()

                if attempt >= config.max_retries:
                    retries_total.labels(outcome="exhausted").inc()
                    logger.error(
                        "Provider call failed, retries exhausted",
                        attempts=attempt,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    raise

                delay_ms = calculate_backoff_delay(
                    attempt, config.retry_delay_ms, config.max_retry_delay_ms, self._rand
                )
                retries_total.labels(outcome="scheduled").inc()
                logger.warning(
                    "Provider call failed, retrying",
                    attempt=attempt,
                    max_retries=config.max_retries,
                    delay_ms=round(delay_ms),
                    error_type=type(e).__name__,
                    error=str(e),
                )
                await self._sleep(delay_ms / 1000)
                continue
            finally:
                self._in_flight.discard(task)

            self._circuit_breaker.on_success()
            return response.content

        # Unreachable: max_retries >= 1 and the last attempt returns or raises
        raise AssertionError("retry loop exited without a result")

    # === Lifecycle ===

    async def health_check(self) -> bool:
        return await self._llm_client.health_check()

    async def close(self) -> None:
        await self._llm_client.close()

"""
Resilience layer protecting the LLM provider.

Components:
- TokenBucketRateLimiter: Bounds the outbound call rate (delays, never rejects)
- CircuitBreaker: Stops calling a degraded upstream
- ResilientClient: Batching, bounded concurrency and retry with backoff
"""

from assignment_layer.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerSnapshot
from assignment_layer.resilience.client import ResilientClient, calculate_backoff_delay
from assignment_layer.resilience.exceptions import CircuitOpenError
from assignment_layer.resilience.rate_limiter import TokenBucketRateLimiter

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerSnapshot",
    "CircuitOpenError",
    "ResilientClient",
    "TokenBucketRateLimiter",
    "calculate_backoff_delay",
]

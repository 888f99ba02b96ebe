"""Monitoring and metrics instrumentation for the LLM Assignment Layer.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from assignment_layer.monitoring.metrics import (
    assignment_fallbacks_total,
    circuit_breaker_rejections_total,
    circuit_breaker_state,
    fuzzy_matches_total,
    labels_assigned_total,
    llm_latency_seconds,
    llm_requests_total,
    llm_tokens_total,
    rate_limiter_wait_seconds,
    retries_total,
    validation_failures_total,
)

__all__ = [
    "llm_requests_total",
    "llm_latency_seconds",
    "llm_tokens_total",
    "retries_total",
    "circuit_breaker_state",
    "circuit_breaker_rejections_total",
    "rate_limiter_wait_seconds",
    "validation_failures_total",
    "fuzzy_matches_total",
    "assignment_fallbacks_total",
    "labels_assigned_total",
]

"""Custom Prometheus metrics for the LLM Assignment Layer.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- circuit_breaker_state (circuit not closed means the upstream is degraded)
- assignment_fallbacks_total (labels replaced by the no-match default)
- retries_total (high retry rate indicates upstream instability)
"""

from prometheus_client import Counter, Gauge, Histogram

# === LLM Call Metrics ===

llm_requests_total = Counter(
    "llm_requests_total",
    "Total provider calls by outcome",
    ["outcome"],
)
"""
Provider calls counter.

Labels:
- outcome: success, error, auth_error, rate_limited, timeout
"""

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "LLM generation latency in seconds",
    ["model", "success"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)
"""
LLM generation latency histogram.

Alert thresholds:
- WARN: p95 > 10s
- CRITICAL: p95 > 30s
"""

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens consumed by model and type",
    ["model", "token_type"],
)
"""
Token consumption counter (token_type: prompt, completion).

Used for cost estimation and capacity planning.
"""

# === Resilience Metrics ===

retries_total = Counter(
    "retries_total",
    "Retry attempts after a failed provider call",
    ["outcome"],
)
"""
Retry counter.

Labels:
- outcome: scheduled (another attempt follows), exhausted (error re-raised)
"""

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
)

circuit_breaker_rejections_total = Counter(
    "circuit_breaker_rejections_total",
    "Calls rejected without a network attempt because the circuit is open",
)

rate_limiter_wait_seconds = Histogram(
    "rate_limiter_wait_seconds",
    "Time spent waiting for a rate limiter token",
    buckets=[0.01, 0.1, 1.0, 5.0, 15.0, 30.0, 60.0],
)

# === Validation Metrics ===

validation_failures_total = Counter(
    "validation_failures_total",
    "Total validation failures by stage and error type",
    ["stage", "error_type"],
)
"""
Validation failures counter.

Labels:
- stage: parse (tool JSON), schema (response shape), label (vocabulary check)
- error_type: json_decode_error, count_mismatch, invalid_label, empty_label, ...
"""

fuzzy_matches_total = Counter(
    "fuzzy_matches_total",
    "Labels accepted through fuzzy matching instead of an exact match",
)
"""
A rising rate means the model drifts from the offered vocabulary.
"""

# === Assignment Metrics ===

assignment_fallbacks_total = Counter(
    "assignment_fallbacks_total",
    "Assignment runs degraded to the no-match default",
    ["label_space", "reason"],
)
"""
Fallback counter.

Labels:
- label_space: category, budget
- reason: exception class name of the recoverable error
"""

labels_assigned_total = Counter(
    "labels_assigned_total",
    "Labels assigned by label space and result",
    ["label_space", "result"],
)
"""
Labels counter (result: matched, no_match).
"""

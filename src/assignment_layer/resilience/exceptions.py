"""
Resilience-layer exceptions.
"""

from assignment_layer.exceptions import AssignmentLayerError


class CircuitOpenError(AssignmentLayerError):
    """
    Raised when the circuit breaker rejects a call without a network attempt.

    Not retried by the ResilientClient (retrying cannot succeed before the
    reset timeout). Recoverable for the assignment services, which degrade
    to default labels.

    Attributes:
        retry_after_ms: Time left until the breaker will probe again
    """

    def __init__(self, retry_after_ms: float, consecutive_failures: int):
        self.retry_after_ms = max(0.0, retry_after_ms)
        self.consecutive_failures = consecutive_failures
        super().__init__(
            f"Circuit breaker is OPEN. Will probe again in {self.retry_after_ms / 1000:.1f} seconds",
            details={
                "retry_after_ms": round(self.retry_after_ms),
                "consecutive_failures": consecutive_failures,
            },
        )

"""
Custom exceptions for the LLM client layer.

The provider client maps transport and HTTP failures onto these types at the
point where they happen. Only LLMAuthenticationError is fatal; the rest are
transient from the caller's point of view.
"""

from assignment_layer.exceptions import AssignmentLayerError


class LLMClientError(AssignmentLayerError):
    """
    Base exception for all LLM client errors.

    Retried by the ResilientClient, then degraded by the assignment services.
    """
    pass


class LLMConnectionError(LLMClientError):
    """
    Raised when unable to reach the provider (DNS, refused connection, reset).
    """
    pass


class LLMTimeoutError(LLMConnectionError):
    """
    Raised when a request exceeds the client timeout.

    The network timeout is the only hard bound on an in-flight call.
    """
    pass


class LLMGenerationError(LLMClientError):
    """
    Raised when the provider answers but generation failed: 5xx/overloaded,
    malformed body, or a response without any usable content.
    """
    pass


class LLMModelNotAvailableError(LLMGenerationError):
    """Raised when the configured model does not exist (HTTP 404)."""
    pass


class LLMRateLimitError(LLMClientError):
    """
    Raised when the provider rate-limits the request (HTTP 429).

    ``retry_after`` holds the provider's hint in seconds, when sent.
    """

    def __init__(self, message: str, details: dict | None = None, retry_after: float | None = None):
        super().__init__(message, details)
        self.retry_after = retry_after


class LLMAuthenticationError(LLMClientError):
    """
    Raised for missing or rejected credentials (HTTP 401/403).

    Fatal: retrying or defaulting labels cannot fix a credential problem, so
    this propagates to the caller of the orchestrator.
    """

    fatal = True

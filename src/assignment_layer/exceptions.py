"""
Root of the exception hierarchy for the assignment layer.

Every error raised by this package derives from AssignmentLayerError and
carries a class-level ``fatal`` flag. Fatal errors (bad credentials, bad
configuration) cannot be fixed by retrying or by falling back to default
labels, so the assignment services let them propagate. Everything else is
recoverable and may be replaced by a safe default.
"""

from typing import Any


class AssignmentLayerError(Exception):
    """
    Base exception for all assignment layer errors.

    Attributes:
        message: Human-readable error description
        details: Structured error data for logging/metrics
        fatal: Whether the error must abort the whole run
    """

    fatal: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(AssignmentLayerError):
    """
    Raised synchronously, before any network call, for invalid inputs or
    tunables: mismatched context length, duplicate record ids, non-positive
    limiter capacity, etc.
    """

    fatal = True


def is_fatal(error: BaseException) -> bool:
    """Return True if the error must propagate instead of being degraded."""
    return isinstance(error, AssignmentLayerError) and error.fatal

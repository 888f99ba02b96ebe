"""
Validation-specific exceptions.

All validation errors are recoverable: the assignment services catch them,
log the offending value and fall back to the no-match label.
"""

from typing import Any, Sequence

from assignment_layer.exceptions import AssignmentLayerError


class ValidationError(AssignmentLayerError):
    """Base exception for all validation errors."""


class ResponseParseError(ValidationError):
    """
    The tool response could not be turned into a list of labels.

    Raised for malformed JSON and for label counts that do not match the
    number of transactions in the request.
    """

    def __init__(self, message: str, raw_content: str | None = None, parse_error: str | None = None):
        """
        Args:
            message: Error description
            raw_content: Malformed content (first 500 chars are kept)
            parse_error: Original json.JSONDecodeError message
        """
        details = {}
        if raw_content:
            details["content_snippet"] = raw_content[:500]
        if parse_error:
            details["parse_error"] = parse_error

        super().__init__(message, details)


class SchemaValidationError(ValidationError):
    """Parsed JSON does not have the shape of the assignment tool input."""

    def __init__(self, message: str, validation_errors: list[str] | None = None):
        details = {}
        if validation_errors:
            details["validation_errors"] = validation_errors

        super().__init__(message, details)


class InvalidLabelError(ValidationError):
    """
    A model output is neither a vocabulary member nor close enough to one.

    Attributes:
        value: The rejected output
        vocabulary: The allowed labels
    """

    def __init__(self, message: str, value: str, vocabulary: Sequence[str]):
        self.value = value
        self.vocabulary = list(vocabulary)
        super().__init__(
            message,
            details={
                "invalid_value": value,
                "expected_values": self.vocabulary[:20],
            },
        )


class BatchValidationError(ValidationError):
    """
    One element of a batch failed validation.

    The original error is chained as ``__cause__``.

    Attributes:
        index: Position of the failing element in the batch
    """

    def __init__(self, index: int, cause: ValidationError):
        self.index = index
        details: dict[str, Any] = {"index": index, "error_type": type(cause).__name__}
        details.update(cause.details)
        super().__init__(f"Validation failed at index {index}: {cause.message}", details)

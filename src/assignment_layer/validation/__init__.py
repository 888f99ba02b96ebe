"""
Validation of model outputs.

- parse_assignment_response: tool JSON -> raw labels (shape and count checks)
- ResponseValidator: raw label -> vocabulary member or "" (exact, then fuzzy)
"""

from assignment_layer.validation.exceptions import (
    BatchValidationError,
    InvalidLabelError,
    ResponseParseError,
    SchemaValidationError,
    ValidationError,
)
from assignment_layer.validation.response_parser import parse_assignment_response
from assignment_layer.validation.response_validator import (
    ResponseValidator,
    normalize_label,
    similarity,
)

__all__ = [
    "BatchValidationError",
    "InvalidLabelError",
    "ResponseParseError",
    "ResponseValidator",
    "SchemaValidationError",
    "ValidationError",
    "normalize_label",
    "parse_assignment_response",
    "similarity",
]

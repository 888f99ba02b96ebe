"""
Parse assignment tool responses into raw label lists.

The model answers through the assignment tool, whose input arrives as JSON:
{"categories": ["Food", "Medical"]} or {"budgets": ["Groceries", ""]}.
Shape is checked with a Draft 7 JSON Schema; vocabulary membership is left
to the ResponseValidator.
"""

import json
import logging
from typing import Any

from jsonschema import Draft7Validator

from assignment_layer.models.enums import LabelSpace
from assignment_layer.monitoring.metrics import validation_failures_total
from assignment_layer.validation.exceptions import ResponseParseError, SchemaValidationError

logger = logging.getLogger(__name__)

_validators: dict[LabelSpace, Draft7Validator] = {}


def tool_response_schema(label_space: LabelSpace) -> dict[str, Any]:
    """
    Relaxed schema of the tool input.

    Items may be null (treated as no match); the enum is enforced by the
    provider and re-checked label by label afterwards.
    """
    return {
        "type": "object",
        "properties": {
            label_space.field_name: {
                "type": "array",
                "items": {"type": ["string", "null"]},
            }
        },
        "required": [label_space.field_name],
    }


def _get_validator(label_space: LabelSpace) -> Draft7Validator:
    if label_space not in _validators:
        _validators[label_space] = Draft7Validator(tool_response_schema(label_space))
    return _validators[label_space]


def _load_json(content: str) -> Any:
    """
    Parse the response JSON.

    Text blocks may precede the serialised tool input (one line per block),
    so the last line that looks like a JSON object is tried as a fallback.
    """
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        for line in reversed(content.splitlines()):
            line = line.strip()
            if line.startswith("{"):
                try:
                    return json.loads(line)
                except json.JSONDecodeError:
                    continue
        raise ResponseParseError(
            f"Failed to parse tool response as JSON: {e.msg}",
            raw_content=content,
            parse_error=f"{e.msg} at line {e.lineno} col {e.colno}",
        ) from e


def parse_assignment_response(raw: str, label_space: LabelSpace, expected_count: int) -> list[str]:
    """
    Turn one raw response into exactly ``expected_count`` raw labels.

    Args:
        raw: Response text of one request
        label_space: Category or budget (selects the tool field)
        expected_count: Number of transactions listed in the request

    Returns:
        Raw labels in request order, null items mapped to ""

    Raises:
        ResponseParseError: Malformed JSON or label count mismatch
        SchemaValidationError: JSON does not have the tool input shape
    """
    content = (raw or "").strip()
    if not content:
        validation_failures_total.labels(stage="parse", error_type="empty_content").inc()
        raise ResponseParseError("Tool response is empty", raw_content=raw)

    try:
        data = _load_json(content)
    except ResponseParseError:
        if expected_count == 1:
            # Single transaction answered in plain text
            logger.info(
                "Treating non-JSON response as a free-text label",
                extra={"label_space": label_space.value, "content_snippet": content[:100]},
            )
            return [content]
        validation_failures_total.labels(stage="parse", error_type="json_decode_error").inc()
        raise

    errors = sorted(_get_validator(label_space).iter_errors(data), key=lambda e: list(e.path))
    if errors:
        messages = [
            f"{'.'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
            for error in errors
        ]
        validation_failures_total.labels(stage="schema", error_type="schema_violation").inc()
        logger.warning(
            "Tool response failed schema validation",
            extra={"label_space": label_space.value, "error_count": len(errors), "errors": messages[:5]},
        )
        raise SchemaValidationError(
            f"Tool response does not match the {label_space.tool_name} schema ({len(errors)} errors)",
            validation_errors=messages[:10],
        )

    labels = data[label_space.field_name]
    if len(labels) != expected_count:
        validation_failures_total.labels(stage="parse", error_type="count_mismatch").inc()
        raise ResponseParseError(
            f"Expected {expected_count} {label_space.field_name}, got {len(labels)}",
            raw_content=content,
        )

    return ["" if label is None else label for label in labels]

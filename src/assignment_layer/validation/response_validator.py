"""
Closed-vocabulary validation of model outputs.

Every label leaving the assignment layer passes through validate_one(), so
the output is always a vocabulary member or the no-match sentinel "".

Matching order:
1. Empty output (allowed or rejected, depending on the label space)
2. Exact match after trimming
3. Fuzzy match on normalised text (lowercase, alphanumerics only)
4. InvalidLabelError
"""

import re
from typing import Callable, Sequence

import Levenshtein
import structlog

from assignment_layer.monitoring.metrics import fuzzy_matches_total, validation_failures_total
from assignment_layer.validation.exceptions import (
    BatchValidationError,
    InvalidLabelError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")

# Jaro-Winkler only counts once the edit distance says the words are close
EDIT_SIMILARITY_FLOOR = 0.5


def normalize_label(value: str) -> str:
    """Lowercase and drop everything except ASCII letters and digits."""
    return _NON_ALPHANUMERIC.sub("", value.lower())


def similarity(a: str, b: str) -> float:
    """
    Similarity score in [0, 1] between two normalised strings.

    Normalised Levenshtein similarity (1 - distance / max length). When that
    clears EDIT_SIMILARITY_FLOOR the Jaro-Winkler similarity may raise it,
    so dropped letters in long words ("grocry" vs "groceries") still score
    high, while words that merely share a prefix ("transportation" vs
    "transfer") keep their low edit score.
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0

    edit_similarity = 1 - Levenshtein.distance(a, b) / max(len(a), len(b))
    if edit_similarity < EDIT_SIMILARITY_FLOOR:
        return edit_similarity
    return max(edit_similarity, Levenshtein.jaro_winkler(a, b))


class ResponseValidator:
    """
    Validate raw model outputs against a closed vocabulary.

    Stateless apart from the fuzzy threshold; safe to share across services.
    """

    def __init__(self, threshold: float = 0.7):
        self.threshold = threshold

    def validate_one(self, raw: str, vocabulary: Sequence[str], allow_empty: bool = True) -> str:
        """
        Validate one raw output.

        Args:
            raw: Model output for one transaction
            vocabulary: Allowed labels
            allow_empty: Whether "" is an acceptable answer (explicit no match)

        Returns:
            A member of ``vocabulary`` or ""

        Raises:
            InvalidLabelError: Empty output where not allowed, or no match
        """
        trimmed = (raw or "").strip()

        if not trimmed:
            if allow_empty:
                return ""
            validation_failures_total.labels(stage="label", error_type="empty_label").inc()
            raise InvalidLabelError("Empty response", value=raw or "", vocabulary=vocabulary)

        if trimmed in vocabulary:
            return trimmed

        normalized = normalize_label(trimmed)
        if normalized:
            for member in vocabulary:
                if normalize_label(member) == normalized:
                    fuzzy_matches_total.inc()
                    return member

            for member in vocabulary:
                score = similarity(normalized, normalize_label(member))
                if score >= self.threshold:
                    fuzzy_matches_total.inc()
                    logger.info(
                        "Fuzzy matched label",
                        raw=trimmed,
                        matched=member,
                        score=round(score, 3),
                    )
                    return member

        validation_failures_total.labels(stage="label", error_type="invalid_label").inc()
        raise InvalidLabelError(
            f"Invalid label '{trimmed}'. Allowed values: {', '.join(vocabulary)}",
            value=trimmed,
            vocabulary=vocabulary,
        )

    def validate_batch(
        self,
        raws: Sequence[str],
        validate_one: Callable[[str], str],
    ) -> list[str]:
        """
        Validate every output of a batch, in order.

        Args:
            raws: Raw outputs
            validate_one: Single-item validator (typically a partial of
                self.validate_one bound to a vocabulary)

        Raises:
            BatchValidationError: First failing element, with its index;
                the original error is chained as __cause__
        """
        validated = []
        for index, raw in enumerate(raws):
            try:
                validated.append(validate_one(raw))
            except ValidationError as e:
                raise BatchValidationError(index, e) from e
        return validated

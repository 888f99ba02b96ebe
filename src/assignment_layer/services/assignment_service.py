"""
Assignment service: label one group of transactions within one label space.

Flow:
    records -> chunks of RECORDS_PER_REQUEST -> prompt + tool per chunk
            -> ResilientClient.classify -> parse each response
            -> validate every label against the vocabulary

Any recoverable failure degrades the whole call to the no-match label "";
fatal errors (bad credentials, bad configuration) propagate.
"""

from functools import partial
from typing import Optional, Sequence

import structlog

from assignment_layer.exceptions import ConfigurationError, is_fatal
from assignment_layer.llm.prompt_builder import PromptBuilder
from assignment_layer.logging_config import assignment_context
from assignment_layer.models.enums import LabelSpace
from assignment_layer.models.input_models import ClassificationRecord
from assignment_layer.monitoring.metrics import assignment_fallbacks_total, labels_assigned_total
from assignment_layer.resilience.client import ResilientClient
from assignment_layer.validation.exceptions import InvalidLabelError
from assignment_layer.validation.response_parser import parse_assignment_response
from assignment_layer.validation.response_validator import ResponseValidator

logger = structlog.get_logger(__name__)


class AssignmentService:
    """
    Assigns labels of one label space (category or budget) to transactions.

    One instance per label space; both instances share the ResilientClient.

    Attributes:
        label_space: Category or budget
        client: Shared resilient client
        prompt_builder: Prompt and tool schema builder
        validator: Closed-vocabulary validator
        records_per_request: Transactions listed in one prompt
    """

    def __init__(
        self,
        label_space: LabelSpace,
        client: ResilientClient,
        prompt_builder: PromptBuilder,
        validator: Optional[ResponseValidator] = None,
        records_per_request: int = 10,
    ):
        if records_per_request < 1:
            raise ConfigurationError(
                "records_per_request must be at least 1",
                details={"records_per_request": records_per_request},
            )

        self.label_space = label_space
        self.client = client
        self.prompt_builder = prompt_builder
        self.validator = validator or ResponseValidator()
        self.records_per_request = records_per_request

    def _check_inputs(
        self,
        records: Sequence[ClassificationRecord],
        context: Optional[Sequence[Optional[str]]],
    ) -> None:
        seen: set[str] = set()
        duplicates: set[str] = set()
        for record in records:
            if record.id in seen:
                duplicates.add(record.id)
            seen.add(record.id)

        if duplicates:
            raise ConfigurationError(
                "Record ids must be unique within a call",
                details={"duplicate_ids": sorted(duplicates)[:20]},
            )

        if context is not None and len(context) != len(records):
            raise ConfigurationError(
                "Context length does not match the number of records",
                details={"records": len(records), "context": len(context)},
            )

    async def assign(
        self,
        records: Sequence[ClassificationRecord],
        vocabulary: Sequence[str],
        context: Optional[Sequence[Optional[str]]] = None,
    ) -> list[str]:
        """
        Assign one label per record.

        Args:
            records: Transactions, in order
            vocabulary: Allowed labels for this label space
            context: Optional per-record extra information for the prompt
                (budgets may receive the category already assigned)

        Returns:
            One label per record, in input order; each label is a member of
            ``vocabulary`` or "" (no match / degraded)

        Raises:
            ConfigurationError: Duplicate ids or mismatched context length
            AssignmentLayerError: Any other fatal error (e.g. authentication)
        """
        if not records:
            return []

        self._check_inputs(records, context)

        if not vocabulary:
            logger.info(
                "Empty vocabulary, skipping assignment",
                label_space=self.label_space.value,
                record_count=len(records),
            )
            return [""] * len(records)

        with assignment_context(self.label_space.value, [record.id for record in records]):
            return await self._assign_or_degrade(records, vocabulary, context)

    async def _assign_or_degrade(
        self,
        records: Sequence[ClassificationRecord],
        vocabulary: Sequence[str],
        context: Optional[Sequence[Optional[str]]],
    ) -> list[str]:
        try:
            labels = await self._assign(records, vocabulary, context)
        except Exception as e:
            if is_fatal(e):
                logger.error("Fatal error during assignment", error_type=type(e).__name__, error=str(e))
                raise

            cause = e.__cause__ if isinstance(e.__cause__, InvalidLabelError) else e
            assignment_fallbacks_total.labels(
                label_space=self.label_space.value, reason=type(e).__name__
            ).inc()
            logger.warning(
                "Assignment degraded to no-match labels",
                error_type=type(e).__name__,
                error=str(e),
                attempted_value=getattr(cause, "value", None),
                vocabulary=list(vocabulary)[:50],
            )
            labels_assigned_total.labels(label_space=self.label_space.value, result="no_match").inc(
                len(records)
            )
            return [""] * len(records)

        matched = sum(1 for label in labels if label)
        labels_assigned_total.labels(label_space=self.label_space.value, result="matched").inc(matched)
        labels_assigned_total.labels(label_space=self.label_space.value, result="no_match").inc(
            len(labels) - matched
        )
        logger.info(
            "Assignment completed",
            matched=matched,
            success_rate=round(matched / len(labels), 3),
        )
        return labels

    async def _assign(
        self,
        records: Sequence[ClassificationRecord],
        vocabulary: Sequence[str],
        context: Optional[Sequence[Optional[str]]],
    ) -> list[str]:
        size = self.records_per_request
        chunks = [records[start:start + size] for start in range(0, len(records), size)]
        chunk_contexts = [
            context[start:start + size] if context is not None else None
            for start in range(0, len(records), size)
        ]

        message_batches = [
            self.prompt_builder.build_messages(self.label_space, chunk, vocabulary, chunk_context)
            for chunk, chunk_context in zip(chunks, chunk_contexts)
        ]
        tool = self.prompt_builder.build_tool(self.label_space, vocabulary)
        overrides = {
            "system_prompt": self.prompt_builder.build_system_prompt(self.label_space),
            "tools": [tool],
            "tool_choice": tool.name,
        }

        responses = await self.client.classify(message_batches, overrides)

        raw_labels: list[str] = []
        for chunk, response in zip(chunks, responses):
            raw_labels.extend(parse_assignment_response(response, self.label_space, len(chunk)))

        return self.validator.validate_batch(
            raw_labels,
            partial(
                self.validator.validate_one,
                vocabulary=vocabulary,
                allow_empty=self.label_space.allows_empty,
            ),
        )

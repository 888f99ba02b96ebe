"""
Orchestrator running both label spaces over a set of transactions and
merging the results into one sparse AssignmentMap.
"""

import asyncio
from typing import Optional, Sequence

import structlog

from assignment_layer.exceptions import is_fatal
from assignment_layer.llm.prompt_builder import PromptBuilder
from assignment_layer.models.enums import LabelSpace
from assignment_layer.models.input_models import ClassificationRecord
from assignment_layer.models.output_models import AssignmentMap, RecordAssignment
from assignment_layer.resilience.client import ResilientClient
from assignment_layer.services.assignment_service import AssignmentService
from assignment_layer.validation.response_validator import ResponseValidator

logger = structlog.get_logger(__name__)


class AssignmentOrchestrator:
    """
    Runs the category and budget services and merges their labels.

    The two label spaces are independent: one may degrade to "" while the
    other succeeds. Fatal errors from either abort the run once both have
    settled.
    """

    def __init__(
        self,
        category_service: AssignmentService,
        budget_service: AssignmentService,
        budget_uses_category_context: bool = False,
    ):
        """
        Args:
            category_service: Service for LabelSpace.CATEGORY
            budget_service: Service for LabelSpace.BUDGET
            budget_uses_category_context: Run categories first and show the
                assigned category in the budget prompt
        """
        self.category_service = category_service
        self.budget_service = budget_service
        self.budget_uses_category_context = budget_uses_category_context

    @classmethod
    def from_client(
        cls,
        client: ResilientClient,
        prompt_builder: PromptBuilder,
        validator: Optional[ResponseValidator] = None,
        records_per_request: int = 10,
        budget_uses_category_context: bool = False,
    ) -> "AssignmentOrchestrator":
        """Build both services around one shared client."""
        validator = validator or ResponseValidator()
        return cls(
            category_service=AssignmentService(
                LabelSpace.CATEGORY, client, prompt_builder, validator, records_per_request
            ),
            budget_service=AssignmentService(
                LabelSpace.BUDGET, client, prompt_builder, validator, records_per_request
            ),
            budget_uses_category_context=budget_uses_category_context,
        )

    async def assign_categories(
        self, records: Sequence[ClassificationRecord], vocabulary: Sequence[str]
    ) -> list[str]:
        return await self.category_service.assign(records, vocabulary)

    async def assign_budgets(
        self,
        records: Sequence[ClassificationRecord],
        vocabulary: Sequence[str],
        categories: Optional[Sequence[str]] = None,
    ) -> list[str]:
        context = [category or None for category in categories] if categories is not None else None
        return await self.budget_service.assign(records, vocabulary, context)

    async def process_records(
        self,
        records: Sequence[ClassificationRecord],
        category_vocabulary: Optional[Sequence[str]] = None,
        budget_vocabulary: Optional[Sequence[str]] = None,
        budget_uses_category_context: Optional[bool] = None,
    ) -> AssignmentMap:
        """
        Assign categories and/or budgets to every record.

        A label space runs only when its vocabulary is non-empty.

        Args:
            records: Transactions to label
            category_vocabulary: Allowed categories (None/empty: skip)
            budget_vocabulary: Allowed budgets (None/empty: skip)
            budget_uses_category_context: Overrides the instance default

        Returns:
            Sparse AssignmentMap: record ids with at least one non-empty label

        Raises:
            AssignmentLayerError: A fatal error from either label space
        """
        if not records:
            return {}

        use_context = (
            self.budget_uses_category_context
            if budget_uses_category_context is None
            else budget_uses_category_context
        )
        run_categories = bool(category_vocabulary)
        run_budgets = bool(budget_vocabulary)

        logger.info(
            "Processing records",
            record_count=len(records),
            categories=run_categories,
            budgets=run_budgets,
            sequential=run_categories and run_budgets and use_context,
        )

        categories: Optional[list[str]] = None
        budgets: Optional[list[str]] = None

        if run_categories and run_budgets and use_context:
            categories = await self.assign_categories(records, category_vocabulary)
            budgets = await self.assign_budgets(records, budget_vocabulary, categories)
        else:
            jobs = {}
            if run_categories:
                jobs[LabelSpace.CATEGORY] = self.assign_categories(records, category_vocabulary)
            if run_budgets:
                jobs[LabelSpace.BUDGET] = self.assign_budgets(records, budget_vocabulary)

            outcomes = dict(zip(jobs, await asyncio.gather(*jobs.values(), return_exceptions=True)))

            errors = [outcome for outcome in outcomes.values() if isinstance(outcome, BaseException)]
            if errors:
                raise next((error for error in errors if is_fatal(error)), errors[0])

            categories = outcomes.get(LabelSpace.CATEGORY)
            budgets = outcomes.get(LabelSpace.BUDGET)

        assignments = merge_assignments(records, categories, budgets)
        logger.info(
            "Records processed",
            record_count=len(records),
            assigned_count=len(assignments),
        )
        return assignments


def merge_assignments(
    records: Sequence[ClassificationRecord],
    categories: Optional[Sequence[str]],
    budgets: Optional[Sequence[str]],
) -> AssignmentMap:
    """Merge per-label-space results, keeping only non-empty labels."""
    assignments: AssignmentMap = {}
    for index, record in enumerate(records):
        entry: RecordAssignment = {}
        if categories is not None and categories[index]:
            entry["category"] = categories[index]
        if budgets is not None and budgets[index]:
            entry["budget"] = budgets[index]
        if entry:
            assignments[record.id] = entry
    return assignments

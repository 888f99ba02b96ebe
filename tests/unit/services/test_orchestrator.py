"""Unit tests for AssignmentOrchestrator."""

import pytest

from assignment_layer.exceptions import ConfigurationError
from assignment_layer.llm.exceptions import LLMAuthenticationError, LLMConnectionError
from assignment_layer.models.enums import LabelSpace
from assignment_layer.services.orchestrator import AssignmentOrchestrator, merge_assignments

CATEGORIES = ["Food", "Medical", "Shopping"]
BUDGETS = ["Eating Out", "Health"]


@pytest.fixture
def make_orchestrator(scripted_client, make_resilient_client, prompt_builder, make_tool_response):
    """Build (orchestrator, provider) answering per tool.

    ``answers`` maps a label space to a label list or an exception instance.
    """

    def _make(answers: dict, max_retries: int = 1, **options):
        def handler(request):
            if request.tool_choice == "assign_categories":
                label_space = LabelSpace.CATEGORY
            else:
                label_space = LabelSpace.BUDGET
            answer = answers[label_space]
            if isinstance(answer, BaseException):
                return answer
            return make_tool_response(label_space, answer)

        llm = scripted_client(handler=handler)
        client = make_resilient_client(llm, max_retries=max_retries)
        orchestrator = AssignmentOrchestrator.from_client(client, prompt_builder, **options)
        return orchestrator, llm

    return _make


# ============================================================================
# process_records()
# ============================================================================


@pytest.mark.asyncio
async def test_no_records_returns_empty_map(make_orchestrator):
    orchestrator, llm = make_orchestrator({})

    assert await orchestrator.process_records([], CATEGORIES, BUDGETS) == {}
    assert llm.call_count == 0


@pytest.mark.asyncio
async def test_merges_both_label_spaces(make_orchestrator, sample_records):
    orchestrator, llm = make_orchestrator(
        {
            LabelSpace.CATEGORY: ["Food", "Medical", "Shopping"],
            LabelSpace.BUDGET: ["Eating Out", "Health", ""],
        }
    )

    assignments = await orchestrator.process_records(sample_records, CATEGORIES, BUDGETS)

    assert assignments == {
        "tx-1": {"category": "Food", "budget": "Eating Out"},
        "tx-2": {"category": "Medical", "budget": "Health"},
        "tx-3": {"category": "Shopping"},
    }
    assert llm.call_count == 2


@pytest.mark.asyncio
async def test_only_requested_label_spaces_run(make_orchestrator, sample_records):
    orchestrator, llm = make_orchestrator({LabelSpace.CATEGORY: ["Food", "Medical", "Shopping"]})

    assignments = await orchestrator.process_records(sample_records, category_vocabulary=CATEGORIES)

    assert all(set(entry) == {"category"} for entry in assignments.values())
    assert [r.tool_choice for r in llm.requests] == ["assign_categories"]


@pytest.mark.asyncio
async def test_no_vocabularies_no_calls(make_orchestrator, sample_records):
    orchestrator, llm = make_orchestrator({})

    assert await orchestrator.process_records(sample_records, [], None) == {}
    assert llm.call_count == 0


@pytest.mark.asyncio
async def test_degraded_label_space_does_not_affect_the_other(make_orchestrator, sample_records):
    orchestrator, _ = make_orchestrator(
        {
            LabelSpace.CATEGORY: ["Food", "Medical", "Shopping"],
            LabelSpace.BUDGET: LLMConnectionError("down"),
        }
    )

    assignments = await orchestrator.process_records(sample_records, CATEGORIES, BUDGETS)

    assert assignments == {
        "tx-1": {"category": "Food"},
        "tx-2": {"category": "Medical"},
        "tx-3": {"category": "Shopping"},
    }


@pytest.mark.asyncio
async def test_records_without_labels_are_omitted(make_orchestrator, sample_records):
    orchestrator, _ = make_orchestrator(
        {
            LabelSpace.CATEGORY: LLMConnectionError("down"),
            LabelSpace.BUDGET: ["", "Health", ""],
        }
    )

    assignments = await orchestrator.process_records(sample_records, CATEGORIES, BUDGETS)

    assert assignments == {"tx-2": {"budget": "Health"}}


@pytest.mark.asyncio
async def test_authentication_error_aborts_run(make_orchestrator, sample_records):
    orchestrator, _ = make_orchestrator(
        {
            LabelSpace.CATEGORY: ["Food", "Medical", "Shopping"],
            LabelSpace.BUDGET: LLMAuthenticationError("bad key"),
        }
    )

    with pytest.raises(LLMAuthenticationError):
        await orchestrator.process_records(sample_records, CATEGORIES, BUDGETS)


@pytest.mark.asyncio
async def test_configuration_error_propagates(make_orchestrator, sample_records):
    orchestrator, llm = make_orchestrator({})

    with pytest.raises(ConfigurationError):
        await orchestrator.process_records(sample_records * 2, CATEGORIES, BUDGETS)
    assert llm.call_count == 0


@pytest.mark.asyncio
async def test_budget_prompt_can_use_assigned_categories(make_orchestrator, sample_records):
    orchestrator, llm = make_orchestrator(
        {
            LabelSpace.CATEGORY: ["Food", "Medical", "Shopping"],
            LabelSpace.BUDGET: ["Eating Out", "Health", ""],
        },
        budget_uses_category_context=True,
    )

    await orchestrator.process_records(sample_records, CATEGORIES, BUDGETS)

    assert [r.tool_choice for r in llm.requests] == ["assign_categories", "assign_budgets"]
    budget_prompt = llm.requests[1].messages[0].content
    assert "Assigned category: Food" in budget_prompt
    assert "Assigned category: Shopping" in budget_prompt


# ============================================================================
# merge_assignments()
# ============================================================================


def test_merge_keeps_only_non_empty_labels(sample_records):
    assignments = merge_assignments(sample_records, ["Food", "", ""], None)

    assert assignments == {"tx-1": {"category": "Food"}}

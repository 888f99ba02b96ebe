"""Unit tests for ResilientClient (retry, breaker, batching, concurrency)."""

import pytest

from assignment_layer.exceptions import ConfigurationError
from assignment_layer.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMGenerationError,
)
from assignment_layer.models.enums import CircuitState
from assignment_layer.models.llm_models import ChatMessage, ToolDefinition
from assignment_layer.resilience.client import ResilientClient, calculate_backoff_delay
from assignment_layer.resilience.exceptions import CircuitOpenError


def unit(text: str) -> list[ChatMessage]:
    return [ChatMessage(role="user", content=text)]


def echo(request):
    """Answer every request with its own prompt text."""
    return request.messages[0].content


# ============================================================================
# Backoff
# ============================================================================


def test_backoff_doubles_per_attempt():
    assert calculate_backoff_delay(1, 1500, 32000, rand=lambda: 0.0) == 1500
    assert calculate_backoff_delay(2, 1500, 32000, rand=lambda: 0.0) == 3000
    assert calculate_backoff_delay(3, 1500, 32000, rand=lambda: 0.0) == 6000


def test_backoff_jitter_bounded_by_ten_percent_of_base():
    assert calculate_backoff_delay(1, 1000, 32000, rand=lambda: 0.5) == pytest.approx(1050)
    assert calculate_backoff_delay(1, 1000, 32000, rand=lambda: 0.999) < 1100


def test_backoff_capped_at_max_delay():
    assert calculate_backoff_delay(10, 1500, 32000, rand=lambda: 0.9) == 32000


# ============================================================================
# classify(): happy path and ordering
# ============================================================================


@pytest.mark.asyncio
async def test_classify_returns_outputs_in_order(scripted_client, make_resilient_client):
    llm = scripted_client(handler=echo)
    client = make_resilient_client(llm)

    result = await client.classify([unit("Food"), unit("Medical"), unit("Shopping")])

    assert result == ["Food", "Medical", "Shopping"]
    assert llm.call_count == 3


@pytest.mark.asyncio
async def test_classify_empty_input_makes_no_calls(scripted_client, make_resilient_client):
    llm = scripted_client(handler=echo)
    client = make_resilient_client(llm)

    assert await client.classify([]) == []
    assert llm.call_count == 0


@pytest.mark.asyncio
async def test_classify_spans_several_batches(scripted_client, make_resilient_client):
    llm = scripted_client(handler=echo)
    client = make_resilient_client(llm, batch_size=2)

    texts = [f"unit-{i}" for i in range(5)]
    result = await client.classify([unit(t) for t in texts])

    assert result == texts


@pytest.mark.asyncio
async def test_concurrency_never_exceeds_max_concurrent(scripted_client, make_resilient_client):
    llm = scripted_client(handler=echo, delay=0.01)
    client = make_resilient_client(llm, batch_size=10, max_concurrent=2)

    texts = [f"unit-{i}" for i in range(8)]
    result = await client.classify([unit(t) for t in texts])

    assert result == texts
    assert llm.max_in_flight == 2
    assert client.in_flight_count == 0


@pytest.mark.asyncio
async def test_order_follows_input_when_later_units_finish_first(
    scripted_client, make_resilient_client
):
    texts = [str(i) for i in range(5)]
    finished = []

    def slower_for_earlier(request):
        return 0.01 * (len(texts) - int(request.messages[0].content))

    def record_finish(request):
        finished.append(request.messages[0].content)
        return echo(request)

    llm = scripted_client(handler=record_finish, delay=slower_for_earlier)
    client = make_resilient_client(llm, batch_size=5, max_concurrent=5)

    result = await client.classify([unit(t) for t in texts])

    assert finished == list(reversed(texts))
    assert result == texts
    assert llm.max_in_flight == 5


# ============================================================================
# classify(): retry
# ============================================================================


@pytest.mark.asyncio
async def test_fails_twice_then_succeeds(scripted_client, make_resilient_client, fake_clock):
    llm = scripted_client(
        outcomes=[LLMConnectionError("reset"), LLMGenerationError("overloaded"), "ok"]
    )
    client = make_resilient_client(llm, max_retries=3)

    result = await client.classify([unit("x")])

    assert result == ["ok"]
    assert llm.call_count == 3
    assert client.breaker_snapshot().consecutive_failures == 0
    # Backoff between attempts: 1.5s then 3s (no jitter)
    assert fake_clock.sleeps == [pytest.approx(1.5), pytest.approx(3.0)]


@pytest.mark.asyncio
async def test_exhausted_retries_raise_last_error(scripted_client, make_resilient_client):
    errors = [LLMConnectionError(f"failure {i}") for i in range(4)]
    llm = scripted_client(outcomes=list(errors))
    client = make_resilient_client(llm, max_retries=3)

    with pytest.raises(LLMConnectionError) as exc_info:
        await client.classify([unit("x")])

    assert exc_info.value is errors[2]
    assert llm.call_count == 3


@pytest.mark.asyncio
async def test_fatal_error_preferred_when_group_fails(scripted_client, make_resilient_client):
    def handler(request):
        if request.messages[0].content == "auth":
            return LLMAuthenticationError("rejected")
        return LLMConnectionError("down")

    client = make_resilient_client(scripted_client(handler=handler), max_retries=1)

    with pytest.raises(LLMAuthenticationError):
        await client.classify([unit("net"), unit("auth")])


# ============================================================================
# classify(): circuit breaker
# ============================================================================


@pytest.mark.asyncio
async def test_open_circuit_rejects_without_network_call(scripted_client, make_resilient_client):
    llm = scripted_client(handler=lambda request: LLMConnectionError("down"))
    client = make_resilient_client(llm, max_retries=1, circuit_failure_threshold=2)

    for _ in range(2):
        with pytest.raises(LLMConnectionError):
            await client.classify([unit("x")])
    calls_before = llm.call_count

    with pytest.raises(CircuitOpenError):
        await client.classify([unit("x")])

    assert llm.call_count == calls_before
    assert client.breaker_snapshot().state is CircuitState.OPEN


@pytest.mark.asyncio
async def test_circuit_recovers_after_reset_timeout(scripted_client, make_resilient_client, fake_clock):
    llm = scripted_client(outcomes=[LLMConnectionError("down"), LLMConnectionError("down"), "back"])
    client = make_resilient_client(
        llm, max_retries=1, circuit_failure_threshold=2, circuit_reset_timeout_ms=60000
    )

    for _ in range(2):
        with pytest.raises(LLMConnectionError):
            await client.classify([unit("x")])
    with pytest.raises(CircuitOpenError):
        await client.classify([unit("x")])

    fake_clock.advance(61)
    result = await client.classify([unit("x")])

    assert result == ["back"]
    snapshot = client.breaker_snapshot()
    assert snapshot.state is CircuitState.CLOSED
    assert snapshot.consecutive_failures == 0


# ============================================================================
# Configuration
# ============================================================================


@pytest.mark.asyncio
async def test_overrides_reach_the_request(scripted_client, make_resilient_client):
    llm = scripted_client(handler=echo)
    client = make_resilient_client(llm)
    tool = ToolDefinition(name="assign_budgets", description="d", input_schema={"type": "object"})

    await client.classify(
        [unit("x")],
        {"system_prompt": "You assign budgets", "tools": [tool], "tool_choice": "assign_budgets"},
    )

    request = llm.requests[0]
    assert request.system == "You assign budgets"
    assert request.tools[0].name == "assign_budgets"
    assert request.tool_choice == "assign_budgets"
    # Defaults are untouched by per-call overrides
    assert client.get_config()["max_retries"] == 3


@pytest.mark.asyncio
async def test_invalid_override_is_configuration_error(scripted_client, make_resilient_client):
    llm = scripted_client(handler=echo)
    client = make_resilient_client(llm)

    with pytest.raises(ConfigurationError):
        await client.classify([unit("x")], {"max_retries": 0})
    assert llm.call_count == 0


@pytest.mark.asyncio
async def test_chat_sends_single_unit(scripted_client, make_resilient_client):
    client = make_resilient_client(scripted_client(outcomes=["hello"]))

    assert await client.chat(unit("hi")) == "hello"


def test_get_and_update_config(scripted_client, make_resilient_client):
    client = make_resilient_client(scripted_client(), rate_limit_capacity=100)

    client.update_config(max_concurrent=5, temperature=0.0)
    config = client.get_config()

    assert config["max_concurrent"] == 5
    assert config["temperature"] == 0.0
    assert config["rate_limit_capacity"] == 100
    assert not any("key" in name for name in config)


def test_from_settings(scripted_client, test_settings):
    client = ResilientClient.from_settings(scripted_client(), test_settings)

    config = client.get_config()
    assert config["model"] == test_settings.LLM_MODEL
    assert config["batch_size"] == test_settings.BATCH_SIZE
    assert config["circuit_failure_threshold"] == test_settings.CIRCUIT_FAILURE_THRESHOLD
    assert client.available_tokens == test_settings.RATE_LIMIT_CAPACITY

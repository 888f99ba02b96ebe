"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import json
from decimal import Decimal

import pytest

from assignment_layer.config import Settings
from assignment_layer.models.enums import LabelSpace
from assignment_layer.models.input_models import ClassificationRecord


class FakeClock:
    """Manually advanced monotonic clock with a matching async sleep.

    sleep() advances the clock instead of waiting, and remembers every delay
    so tests can assert on backoff and limiter waits.
    """

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def tool_response(label_space: LabelSpace, labels: list) -> str:
    """Response text as produced by AnthropicClient for a tool_use block."""
    return json.dumps({label_space.field_name: labels})


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing."""
    return Settings(
        # === Application ===
        APP_NAME="LLM Assignment Layer (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Anthropic ===
        ANTHROPIC_API_KEY="test-key",
        ANTHROPIC_BASE_URL="https://api.anthropic.test",
        LLM_MODEL="claude-3-5-haiku-latest",
        LLM_TIMEOUT=5,

        # === Dispatch / retry ===
        BATCH_SIZE=10,
        MAX_CONCURRENT=3,
        RECORDS_PER_REQUEST=10,
        MAX_RETRIES=3,
        RETRY_DELAY_MS=1500,
        MAX_RETRY_DELAY_MS=32000,

        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_records() -> list[ClassificationRecord]:
    """Three transactions: a restaurant, a pharmacy and a department store."""
    return [
        ClassificationRecord(
            id="tx-1",
            description="Chipotle Mexican Grill",
            amount=Decimal("12.45"),
            date="2024-03-01",
            source_account="Checking",
            destination_account="Chipotle",
            transaction_type="withdrawal",
        ),
        ClassificationRecord(
            id="tx-2",
            description="CVS Pharmacy #1234",
            amount="23.10",
            date="2024-03-02",
            source_account="Checking",
            destination_account="CVS",
            notes="Prescription refill",
            transaction_type="withdrawal",
        ),
        ClassificationRecord(
            id="tx-3",
            description="Target",
            amount=54,
            date="2024-03-03",
            source_account="Credit Card",
            destination_account="Target",
            transaction_type="withdrawal",
        ),
    ]


@pytest.fixture
def make_tool_response():
    """Factory for tool response texts: make_tool_response(LabelSpace.BUDGET, ["Groceries"])."""
    return tool_response

"""Integration test fixtures (service checks and prerequisites).

Integration tests call the real Anthropic API and are skipped unless
ANTHROPIC_API_KEY is set in the environment.
"""

import os

import pytest
import pytest_asyncio

from assignment_layer.llm.anthropic_client import AnthropicClient


@pytest.fixture(scope="session")
def anthropic_api_key() -> str:
    """API key for real calls; skips the test when it is not configured."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        pytest.skip("ANTHROPIC_API_KEY not set")
    return api_key


@pytest_asyncio.fixture
async def real_anthropic_client(anthropic_api_key):
    """Real AnthropicClient instance for integration tests."""
    client = AnthropicClient(
        api_key=anthropic_api_key,
        base_url=os.environ.get("ANTHROPIC_BASE_URL", "https://api.anthropic.com"),
        timeout=60,
    )
    yield client
    await client.close()

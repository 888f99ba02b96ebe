"""
FastAPI dependency injection for the assignment layer.

Provides singleton instances of the stateful resources (provider client,
resilient client with its limiter and breaker, prompt builder) and a factory
for the orchestrator.
"""

from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from assignment_layer.config import Settings, settings
from assignment_layer.llm.anthropic_client import AnthropicClient
from assignment_layer.llm.base_client import BaseLLMClient
from assignment_layer.llm.prompt_builder import PromptBuilder
from assignment_layer.resilience.client import ResilientClient
from assignment_layer.services.orchestrator import AssignmentOrchestrator
from assignment_layer.validation.response_validator import ResponseValidator


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.

    Returns:
        Settings instance
    """
    return settings


@lru_cache()
def get_llm_client() -> BaseLLMClient:
    """
    Get singleton Anthropic client with connection pooling.

    Raises:
        LLMAuthenticationError: ANTHROPIC_API_KEY is not set
    """
    app_settings = get_settings()
    return AnthropicClient(
        api_key=app_settings.ANTHROPIC_API_KEY,
        base_url=app_settings.ANTHROPIC_BASE_URL,
        api_version=app_settings.ANTHROPIC_VERSION,
        timeout=app_settings.LLM_TIMEOUT,
    )


@lru_cache()
def get_resilient_client() -> ResilientClient:
    """
    Get the process-wide resilient client.

    Must be a singleton: the rate limiter, circuit breaker and in-flight set
    it owns only protect the upstream if every request shares them.
    """
    return ResilientClient.from_settings(get_llm_client(), get_settings())


@lru_cache()
def get_prompt_builder() -> PromptBuilder:
    """
    Get singleton prompt builder.

    Loads Jinja2 templates once and reuses them across requests.
    """
    templates_dir = get_settings().PROMPT_TEMPLATES_DIR
    return PromptBuilder(templates_dir=Path(templates_dir) if templates_dir else None)


def get_orchestrator(
    client: ResilientClient = Depends(get_resilient_client),
    prompt_builder: PromptBuilder = Depends(get_prompt_builder),
    app_settings: Settings = Depends(get_settings),
) -> AssignmentOrchestrator:
    """
    Create the orchestrator around the shared client.

    Not cached: it is lightweight and holds no state of its own.
    """
    return AssignmentOrchestrator.from_client(
        client,
        prompt_builder,
        validator=ResponseValidator(threshold=app_settings.FUZZY_MATCH_THRESHOLD),
        records_per_request=app_settings.RECORDS_PER_REQUEST,
    )

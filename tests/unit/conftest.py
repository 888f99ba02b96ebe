"""Unit test fixtures (mocks and stubs).

Provides a scripted provider client and resilient client factories for
testing without network access.
"""

import asyncio
from typing import Callable, Optional, Union

import pytest

from assignment_layer.llm.base_client import BaseLLMClient
from assignment_layer.llm.prompt_builder import PromptBuilder
from assignment_layer.models.llm_models import (
    CallConfig,
    LLMGenerationRequest,
    LLMGenerationResponse,
)
from assignment_layer.resilience.client import ResilientClient

Outcome = Union[str, BaseException]


class ScriptedLLMClient(BaseLLMClient):
    """Provider stub returning scripted outcomes.

    Outcomes are consumed in call order; an exception instance is raised
    instead of returned. A handler, when given, computes the outcome from
    the request instead. ``delay`` is seconds, or a function of the request.
    """

    def __init__(
        self,
        outcomes: Optional[list[Outcome]] = None,
        handler: Optional[Callable[[LLMGenerationRequest], Outcome]] = None,
        delay: Union[float, Callable[[LLMGenerationRequest], float]] = 0.0,
        healthy: bool = True,
    ):
        super().__init__("https://provider.test", timeout=5)
        self.outcomes = list(outcomes or [])
        self.handler = handler
        self.delay = delay
        self.healthy = healthy
        self.requests: list[LLMGenerationRequest] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delay(request) if callable(self.delay) else self.delay
            await asyncio.sleep(delay)
            outcome = self.handler(request) if self.handler else self.outcomes.pop(0)
        finally:
            self.in_flight -= 1

        if isinstance(outcome, BaseException):
            raise outcome
        return LLMGenerationResponse(content=outcome, model_version=request.model, latency_ms=1)

    async def health_check(self) -> bool:
        return self.healthy

    async def close(self):
        self.closed = True

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def scripted_client():
    """Factory: scripted_client(outcomes=[...]) or scripted_client(handler=fn)."""
    return ScriptedLLMClient


@pytest.fixture
def make_resilient_client(fake_clock):
    """Factory for a ResilientClient driven by the fake clock, with zero jitter.

    Keyword arguments named like CallConfig fields go to the defaults, the
    rest to the ResilientClient constructor.
    """

    def _make(llm_client: BaseLLMClient, **kwargs) -> ResilientClient:
        config_fields = set(CallConfig.model_fields)
        config = {k: v for k, v in kwargs.items() if k in config_fields}
        options = {k: v for k, v in kwargs.items() if k not in config_fields}
        config.setdefault("model", "claude-test")
        options.setdefault("clock", fake_clock)
        options.setdefault("sleep", fake_clock.sleep)
        options.setdefault("rand", lambda: 0.0)
        return ResilientClient(llm_client, CallConfig(**config), **options)

    return _make


@pytest.fixture
def prompt_builder() -> PromptBuilder:
    """Prompt builder with the bundled templates."""
    return PromptBuilder()

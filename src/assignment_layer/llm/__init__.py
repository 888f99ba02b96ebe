"""
LLM client abstraction and implementations.

Components:
- BaseLLMClient: Abstract base class for LLM clients
- AnthropicClient: Implementation for the Anthropic Messages API
- PromptBuilder: Builds prompts and tool schemas per label space
- exceptions: LLM-specific exceptions
"""

from assignment_layer.llm.base_client import BaseLLMClient
from assignment_layer.llm.anthropic_client import AnthropicClient
from assignment_layer.llm.prompt_builder import PromptBuilder
from assignment_layer.llm.exceptions import (
    LLMAuthenticationError,
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMRateLimitError,
    LLMTimeoutError,
)

__all__ = [
    "BaseLLMClient",
    "AnthropicClient",
    "PromptBuilder",
    "LLMClientError",
    "LLMAuthenticationError",
    "LLMConnectionError",
    "LLMGenerationError",
    "LLMModelNotAvailableError",
    "LLMRateLimitError",
    "LLMTimeoutError",
]

"""
LLM-specific data models for the request/response cycle.

These models are internal to the LLM layer and keep the provider wire format
(Anthropic Messages API) out of the assignment services.
"""

from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict


class ChatMessage(BaseModel):
    """One role-tagged message of a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ToolDefinition(BaseModel):
    """
    Function (tool) definition offered to the model.

    ``input_schema`` is a JSON Schema object; the closed vocabulary is
    expressed there as an ``enum`` so the provider steers towards valid labels.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    input_schema: Dict[str, Any]


class CallConfig(BaseModel):
    """
    Effective configuration for one ResilientClient call.

    The client keeps a default instance; per-call overrides are merged over it
    and re-validated.
    """

    model_config = ConfigDict(extra="forbid")

    # Generation
    model: str = Field(..., description="Model identifier")
    max_tokens: int = Field(default=1024, ge=1, le=8192)
    temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, ge=1)
    stop_sequences: list[str] = Field(default_factory=list)
    system_prompt: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)
    tools: Optional[list[ToolDefinition]] = None
    tool_choice: Optional[str] = Field(
        default=None, description="Name of the tool the model is forced to call"
    )

    # Dispatch
    batch_size: int = Field(default=10, ge=1)
    max_concurrent: int = Field(default=3, ge=1)

    # Retry
    max_retries: int = Field(default=3, ge=1, description="Total attempts per request unit")
    retry_delay_ms: int = Field(default=1500, ge=0)
    max_retry_delay_ms: int = Field(default=32000, ge=0)


class LLMGenerationRequest(BaseModel):
    """
    Provider-neutral generation request, built by the ResilientClient from a
    message list and the effective CallConfig.
    """

    model_config = ConfigDict(frozen=True)

    messages: list[ChatMessage] = Field(..., min_length=1)
    model: str
    max_tokens: int = Field(default=1024, ge=1, le=8192)
    temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_k: Optional[int] = Field(default=None, ge=1)
    stop_sequences: list[str] = Field(default_factory=list)
    system: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    tools: Optional[list[ToolDefinition]] = None
    tool_choice: Optional[str] = None


class LLMGenerationResponse(BaseModel):
    """
    Provider-neutral generation response.

    ``content`` is the joined text of the response, with tool inputs
    serialised as JSON. Validation happens in the validation layer.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Text content (tool input as JSON)")
    model_version: str = Field(..., description="Model that actually answered")
    stop_reason: Optional[str] = Field(default=None, description="end_turn, tool_use, max_tokens...")
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    latency_ms: int = Field(..., ge=0)
    raw_metadata: Dict[str, Any] = Field(default_factory=dict)

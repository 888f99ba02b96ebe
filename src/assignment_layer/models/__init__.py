"""
Data models for the LLM Assignment Layer.

Includes:
- Enums (LabelSpace, CircuitState)
- Input models (ClassificationRecord)
- Output models (RecordAssignment, AssignmentMap)
- LLM models (ChatMessage, ToolDefinition, CallConfig, LLMGenerationRequest, LLMGenerationResponse)
"""

from assignment_layer.models.enums import CircuitState, LabelSpace
from assignment_layer.models.input_models import ClassificationRecord
from assignment_layer.models.output_models import AssignmentMap, RecordAssignment
from assignment_layer.models.llm_models import (
    CallConfig,
    ChatMessage,
    LLMGenerationRequest,
    LLMGenerationResponse,
    ToolDefinition,
)

__all__ = [
    # Enums
    "LabelSpace",
    "CircuitState",
    # Input models
    "ClassificationRecord",
    # Output models
    "RecordAssignment",
    "AssignmentMap",
    # LLM models
    "ChatMessage",
    "ToolDefinition",
    "CallConfig",
    "LLMGenerationRequest",
    "LLMGenerationResponse",
]

"""
API-specific request and response models for FastAPI endpoints.

These models wrap the core domain models (ClassificationRecord,
AssignmentMap) with API-specific metadata.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from assignment_layer.models.input_models import ClassificationRecord


class AssignRequest(BaseModel):
    """Request for the assignment endpoint."""

    records: list[ClassificationRecord] = Field(
        description="Transactions to label (ids unique within the request)",
        max_length=1000,
    )
    categories: Optional[list[str]] = Field(
        default=None,
        description="Allowed categories; omitted or empty skips category assignment",
    )
    budgets: Optional[list[str]] = Field(
        default=None,
        description="Allowed budgets; omitted or empty skips budget assignment",
    )
    budget_uses_category_context: bool = Field(
        default=False,
        description="Assign categories first and show them in the budget prompt",
    )


class AssignResponse(BaseModel):
    """Response for the assignment endpoint."""

    assignments: dict[str, dict[str, str]] = Field(
        description="Record id -> {category?, budget?}; records without labels are omitted"
    )
    record_count: int = Field(ge=0, description="Number of records received")
    assigned_count: int = Field(ge=0, description="Number of records with at least one label")
    duration_ms: int = Field(ge=0, description="Processing time in milliseconds")


class HealthResponse(BaseModel):
    """Response for the health check endpoint."""

    status: str = Field(
        description="healthy, degraded (circuit not closed) or unhealthy (upstream unreachable)",
        examples=["healthy", "degraded", "unhealthy"],
    )
    circuit_state: str = Field(description="closed, open or half_open")
    consecutive_failures: int = Field(ge=0)
    available_tokens: int = Field(ge=0, description="Rate limiter tokens left in this interval")
    upstream_reachable: bool


class ConfigResponse(BaseModel):
    """Effective client configuration (no credentials)."""

    service: str
    version: str
    config: dict[str, Any]

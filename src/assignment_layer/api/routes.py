"""
API routes: label assignment, health and configuration.
"""

import logging
import time

from fastapi import APIRouter, Depends, status

from assignment_layer.api.dependencies import (
    get_orchestrator,
    get_resilient_client,
    get_settings,
)
from assignment_layer.api.models import (
    AssignRequest,
    AssignResponse,
    ConfigResponse,
    HealthResponse,
)
from assignment_layer.config import Settings
from assignment_layer.models.enums import CircuitState
from assignment_layer.resilience.client import ResilientClient
from assignment_layer.services.orchestrator import AssignmentOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/assign",
    response_model=AssignResponse,
    status_code=status.HTTP_200_OK,
    summary="Assign categories and/or budgets to transactions",
    description="""
    Label every transaction with a category and/or a budget taken from the
    supplied vocabularies.

    Labels are always members of the supplied vocabularies. Transactions the
    model could not label (or whose label space degraded after upstream
    failures) are left out of the response.
    """,
    responses={
        200: {"description": "Assignment completed (possibly partially)"},
        400: {"description": "Invalid input (e.g. duplicate record ids)"},
        422: {"description": "Malformed request body"},
        502: {"description": "LLM provider rejected the credentials"},
    },
)
async def assign(
    request: AssignRequest,
    orchestrator: AssignmentOrchestrator = Depends(get_orchestrator),
) -> AssignResponse:
    start_time = time.time()

    logger.info(
        "Assignment request received",
        extra={
            "record_count": len(request.records),
            "category_count": len(request.categories or []),
            "budget_count": len(request.budgets or []),
        },
    )

    assignments = await orchestrator.process_records(
        request.records,
        category_vocabulary=request.categories,
        budget_vocabulary=request.budgets,
        budget_uses_category_context=request.budget_uses_category_context,
    )

    duration_ms = int((time.time() - start_time) * 1000)
    logger.info(
        "Assignment request completed",
        extra={
            "record_count": len(request.records),
            "assigned_count": len(assignments),
            "duration_ms": duration_ms,
        },
    )

    return AssignResponse(
        assignments=assignments,
        record_count=len(request.records),
        assigned_count=len(assignments),
        duration_ms=duration_ms,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(client: ResilientClient = Depends(get_resilient_client)) -> HealthResponse:
    """
    Report circuit breaker and rate limiter state plus upstream reachability.

    - degraded: circuit open or half-open
    - unhealthy: circuit closed but provider unreachable
    - healthy: otherwise
    """
    snapshot = client.breaker_snapshot()
    upstream_reachable = await client.health_check()

    if snapshot.state is not CircuitState.CLOSED:
        health_status = "degraded"
    elif not upstream_reachable:
        health_status = "unhealthy"
    else:
        health_status = "healthy"

    return HealthResponse(
        status=health_status,
        circuit_state=snapshot.state.value,
        consecutive_failures=snapshot.consecutive_failures,
        available_tokens=client.available_tokens,
        upstream_reachable=upstream_reachable,
    )


@router.get(
    "/config",
    response_model=ConfigResponse,
    summary="Effective client configuration",
)
async def config(
    client: ResilientClient = Depends(get_resilient_client),
    settings: Settings = Depends(get_settings),
) -> ConfigResponse:
    return ConfigResponse(
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        config=client.get_config(),
    )

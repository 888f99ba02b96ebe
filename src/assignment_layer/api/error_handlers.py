"""
FastAPI exception handlers for structured error responses.

Only fatal errors reach these handlers: recoverable failures are degraded to
no-match labels inside the assignment services.
"""

import logging
from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.responses import JSONResponse

from assignment_layer.exceptions import AssignmentLayerError, ConfigurationError
from assignment_layer.llm.exceptions import LLMAuthenticationError

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def authentication_error_handler(request: Request, exc: LLMAuthenticationError) -> JSONResponse:
    """
    Handle rejected or missing provider credentials.

    Maps to 502 Bad Gateway: the caller's request is fine, our upstream
    credentials are not.
    """
    logger.error(
        "Upstream authentication failed",
        extra={"error": exc.message, "path": request.url.path},
    )

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "error": "upstream_authentication_failed",
            "message": "The LLM provider rejected the configured credentials",
            "timestamp": _timestamp(),
        },
    )


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """
    Handle invalid inputs (duplicate record ids, bad overrides, ...).

    Maps to 400 Bad Request.
    """
    logger.warning(
        "Invalid configuration",
        extra={"error": exc.message, "details": exc.details},
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "invalid_configuration",
            "message": exc.message,
            "details": exc.details,
            "timestamp": _timestamp(),
        },
    )


async def assignment_error_handler(request: Request, exc: AssignmentLayerError) -> JSONResponse:
    """
    Handle any other fatal assignment layer error.

    Maps to 500 Internal Server Error.
    """
    logger.error(
        "Assignment failed",
        extra={"error_type": type(exc).__name__, "error": exc.message},
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "assignment_failed",
            "message": exc.message,
            "timestamp": _timestamp(),
        },
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    LLMAuthenticationError: authentication_error_handler,
    ConfigurationError: configuration_error_handler,
    AssignmentLayerError: assignment_error_handler,
}

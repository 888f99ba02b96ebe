"""
FastAPI application entry point for the LLM Assignment Layer.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from assignment_layer.api.dependencies import get_resilient_client
from assignment_layer.api.error_handlers import EXCEPTION_HANDLERS
from assignment_layer.api.routes import router
from assignment_layer.config import settings
from assignment_layer.exceptions import AssignmentLayerError
from assignment_layer.logging_config import configure_logging

# Configure structured logging before the app is created
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Verify the upstream on startup, release connections on shutdown."""
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        anthropic_base_url=settings.ANTHROPIC_BASE_URL,
        model=settings.LLM_MODEL,
    )

    try:
        client = get_resilient_client()
        if await client.health_check():
            logger.info("Anthropic API reachable")
        else:
            logger.warning("Anthropic API not reachable")
    except AssignmentLayerError as e:
        # Missing credentials: requests will fail with 502 until fixed
        logger.error("LLM client could not be created", error=str(e))

    logger.info("Application startup complete")
    yield

    logger.info("Application shutdown")
    if get_resilient_client.cache_info().currsize:
        await get_resilient_client().close()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    description="Assigns categories and budgets to financial transactions with an LLM",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Register exception handlers
for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router, tags=["assignment"])

# Prometheus metrics instrumentation
if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "config": "/config",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "assignment_layer.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )

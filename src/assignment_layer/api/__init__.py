"""
FastAPI API routes and endpoints.

- routes.py: POST /assign, GET /health, GET /config
- dependencies.py: Dependency injection for the clients and the orchestrator
- models.py: API-specific request/response models
- error_handlers.py: Exception handlers for structured error responses
"""

from assignment_layer.api import dependencies, error_handlers, models
from assignment_layer.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]

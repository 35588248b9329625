"""
FastAPI API routes and endpoints.

- routes.py: POST /analyze, GET /health, GET /schema/{facet}, DELETE /sessions/{id}
- dependencies.py: Accessors for components held on app.state
- models.py: API-specific request/response models
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request id binding for structured logs
"""

from analysis_layer.api import dependencies, error_handlers, models
from analysis_layer.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]

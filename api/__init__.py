# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for plugin creation jobs
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the plugin creation service.
"""

from .routes import router, set_services
from .health import health_router
from .schemas import (
    JobCreate,
    JobAccepted,
    JobSummary,
    ErrorResponse,
)

__all__ = [
    "router",
    "set_services",
    "health_router",
    "JobCreate",
    "JobAccepted",
    "JobSummary",
    "ErrorResponse",
]

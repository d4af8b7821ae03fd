# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Liveness probe and service status
# CREATED: 18 OCT 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /livez   - Liveness probe (is the process alive?)
    GET /health  - Service stats plus the package managers found on PATH

Response Codes:
    200 - Healthy
    206 - Degraded (no package manager found, or no generation provider)
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from __version__ import __version__, BUILD_DATE
from .routes import get_creation_service

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])


@health_router.get("/livez")
async def liveness_probe():
    """
    Liveness probe.

    No external checks - just confirms the process is responsive.
    """
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


@health_router.get("/health")
async def health_status():
    """Full status of the creation service."""
    service = get_creation_service()
    tools = service.harness.resolver.available_tools()
    stats = service.stats

    issues = []
    if not tools:
        issues.append("No package manager found on PATH")
    if not stats["provider_configured"]:
        issues.append("No generation provider configured")

    status = "degraded" if issues else "healthy"
    if issues:
        logger.debug(f"Health degraded: {issues}")

    return JSONResponse(
        status_code=206 if issues else 200,
        content={
            "status": status,
            "version": __version__,
            "package_managers": tools,
            "issues": issues,
            "service": stats,
        },
    )

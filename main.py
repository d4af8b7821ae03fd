# ============================================================================
# PLUGIN FORGE - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - FastAPI application entry point
# PURPOSE: Main application hosting the plugin creation service
# CREATED: 18 OCT 2026
# ============================================================================
"""
Plugin Forge Main Application

FastAPI application that:
1. Provides HTTP API for plugin creation jobs
2. Runs each job's iteration loop in the background
3. Sweeps finished jobs after the retention window

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, CODENAME, EPOCH
from api.health import health_router
from api.routes import router, set_services
from core.config import get_defaults
from core.logging import ComponentType, configure_logging, get_logger
from services.creation_service import PluginCreationService
from services.generation import AnthropicGenerationProvider

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__, ComponentType.API)


def build_service() -> PluginCreationService:
    """Create the creation service from environment configuration."""
    defaults = get_defaults()

    provider = None
    if defaults.generation.enabled:
        provider = AnthropicGenerationProvider.from_defaults(defaults.generation)
        logger.info(f"Generation provider configured (model {defaults.generation.model.value})")
    else:
        logger.warning("ANTHROPIC_API_KEY not set; jobs need an api_key until one is configured")

    defaults.orchestrator.data_root.mkdir(parents=True, exist_ok=True)
    return PluginCreationService(defaults, provider=provider)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes the service on startup, cancels outstanding jobs on shutdown.
    """
    logger.info(f"Starting Plugin Forge v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    service = build_service()
    set_services(service)
    service.start()
    logger.info(f"Data root: {service.governor.data_root}")

    yield

    logger.info("Shutting down Plugin Forge...")
    await service.stop()
    set_services(None)
    logger.info("Plugin Forge stopped")


# Create FastAPI app
app = FastAPI(
    title="Plugin Forge",
    description=f"Epoch {EPOCH} iterative plugin creation service",
    version=__version__,
    lifespan=lifespan,
)

# Include health check routes (no prefix - /livez, /health)
app.include_router(health_router)

# Include API routes
app.include_router(router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Plugin Forge",
        "codename": CODENAME,
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )

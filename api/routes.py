# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for plugin creation jobs
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Routes

FastAPI routes over the plugin creation service.

Admission failures map to HTTP status codes:
    duplicate_artifact  -> 409
    invalid_name        -> 400
    unsafe_output_path  -> 400
    rate_limited        -> 429
    capacity_exceeded   -> 503
Unknown jobs return 404. Error bodies are {"error": code, "message": text}.
"""

import logging

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from core.errors import AdmissionError, JobNotFoundError
from core.models import CreationJob
from .schemas import (
    CancelResponse,
    CleanupResponse,
    ErrorResponse,
    JobAccepted,
    JobCreate,
    JobListResponse,
    JobSummary,
    ModelResponse,
    ModelUpdate,
    PluginExistsResponse,
    PluginListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ADMISSION_STATUS_CODES = {
    "duplicate_artifact": 409,
    "invalid_name": 400,
    "unsafe_output_path": 400,
    "rate_limited": 429,
    "capacity_exceeded": 503,
}


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# Set by the main app at startup

_creation_service = None


def set_services(creation_service):
    """Set service instances for dependency injection."""
    global _creation_service
    _creation_service = creation_service


def get_creation_service():
    if _creation_service is None:
        raise HTTPException(500, "Services not initialized")
    return _creation_service


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=code, message=message).model_dump(),
    )


def _not_found(e: JobNotFoundError) -> JSONResponse:
    return _error_response(404, "job_not_found", str(e))


# ============================================================================
# JOBS
# ============================================================================

@router.post(
    "/jobs",
    response_model=JobAccepted,
    status_code=202,
    tags=["Jobs"],
    responses={
        202: {"description": "Job accepted"},
        400: {"model": ErrorResponse, "description": "Invalid plugin name"},
        409: {"model": ErrorResponse, "description": "Plugin already created"},
        429: {"model": ErrorResponse, "description": "Rate limited"},
        503: {"model": ErrorResponse, "description": "Too many tracked jobs"},
    },
)
async def create_job(request: JobCreate):
    """
    Create a plugin creation job.

    Returns immediately with the job ID while iterations run in the
    background. Poll GET /jobs/{job_id} to monitor progress.
    """
    service = get_creation_service()

    try:
        job_id = await service.create_plugin(
            request.specification,
            api_key=request.api_key,
            use_template=request.use_template,
            model=request.model,
        )
    except AdmissionError as e:
        return _error_response(ADMISSION_STATUS_CODES.get(e.code, 400), e.code, str(e))

    logger.info(f"Accepted job {job_id} for plugin {request.specification.name}")
    return JobAccepted(job_id=job_id, status_url=f"/api/v1/jobs/{job_id}")


@router.get("/jobs", response_model=JobListResponse, tags=["Jobs"])
async def list_jobs():
    """List every tracked job."""
    jobs = get_creation_service().list_jobs()
    return JobListResponse(
        jobs=[JobSummary.from_job(j) for j in jobs],
        total=len(jobs),
    )


@router.get(
    "/jobs/{job_id}",
    response_model=CreationJob,
    tags=["Jobs"],
    responses={404: {"model": ErrorResponse}},
)
async def get_job(job_id: str):
    """Full job snapshot including logs and the error ledger."""
    try:
        return get_creation_service().get_job_or_raise(job_id)
    except JobNotFoundError as e:
        return _not_found(e)


@router.post(
    "/jobs/{job_id}/cancel",
    response_model=CancelResponse,
    tags=["Jobs"],
    responses={404: {"model": ErrorResponse}},
)
async def cancel_job(job_id: str):
    """
    Cancel a pending or running job.

    Cancelling a finished job is a no-op and reports cancelled=false.
    """
    service = get_creation_service()
    try:
        cancelled = service.cancel_job(job_id)
    except JobNotFoundError as e:
        return _not_found(e)

    job = service.get_job(job_id)
    return CancelResponse(job_id=job_id, cancelled=cancelled, status=job.status)


# ============================================================================
# PLUGINS
# ============================================================================

@router.get("/plugins", response_model=PluginListResponse, tags=["Plugins"])
async def list_created_plugins():
    """Plugin names created since the service started."""
    plugins = get_creation_service().get_created_plugins()
    return PluginListResponse(plugins=plugins, total=len(plugins))


@router.get("/plugins/exists", response_model=PluginExistsResponse, tags=["Plugins"])
async def plugin_exists(name: str = Query(..., min_length=1, max_length=214)):
    return PluginExistsResponse(
        name=name,
        exists=get_creation_service().is_plugin_created(name),
    )


# ============================================================================
# SETTINGS & MAINTENANCE
# ============================================================================

@router.put("/settings/model", response_model=ModelResponse, tags=["Settings"])
async def set_model(request: ModelUpdate):
    """Select the generation model for jobs created from now on."""
    model = get_creation_service().set_model(request.model)
    return ModelResponse(model=model)


@router.post("/maintenance/cleanup", response_model=CleanupResponse, tags=["Maintenance"])
async def cleanup_jobs():
    """Run the retention sweep now."""
    service = get_creation_service()
    removed = await service.cleanup_old_jobs()
    return CleanupResponse(removed=removed, remaining=len(service.list_jobs()))

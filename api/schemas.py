# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for API validation
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API. Job details are returned as the
CreationJob model itself; everything else is defined here.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from core.contracts import GenerationModel, JobStatus
from core.models import CreationJob, PluginSpecification


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class JobCreate(BaseModel):
    """Request to create a plugin."""
    specification: PluginSpecification
    api_key: Optional[str] = Field(
        None,
        description="Configures the generation provider if none is set yet",
        repr=False,
    )
    use_template: bool = Field(True, description="Copy the plugin-starter template if available")
    model: Optional[GenerationModel] = Field(None, description="Per-job model override")

    model_config = {
        "protected_namespaces": (),
        "json_schema_extra": {
            "examples": [
                {
                    "specification": {
                        "name": "@acme/plugin-weather",
                        "description": "Current weather for a city",
                        "version": "1.0.0",
                        "actions": [
                            {"name": "getWeather", "description": "Look up the weather"}
                        ],
                    },
                    "use_template": True,
                }
            ]
        },
    }


class ModelUpdate(BaseModel):
    """Request to change the default generation model."""
    model: GenerationModel

    model_config = {"protected_namespaces": ()}


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class JobAccepted(BaseModel):
    """Response to an accepted creation request."""
    job_id: str
    status: JobStatus = JobStatus.PENDING
    status_url: str


class JobSummary(BaseModel):
    """Compact job listing entry."""
    job_id: str
    name: str
    status: JobStatus
    current_phase: str
    progress: float
    current_iteration: int
    max_iterations: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @classmethod
    def from_job(cls, job: CreationJob) -> "JobSummary":
        return cls(
            job_id=job.job_id,
            name=job.specification.name,
            status=job.status,
            current_phase=job.current_phase,
            progress=job.progress,
            current_iteration=job.current_iteration,
            max_iterations=job.max_iterations,
            started_at=job.started_at,
            completed_at=job.completed_at,
            error=job.error,
        )


class JobListResponse(BaseModel):
    """Response for job listing."""
    jobs: List[JobSummary]
    total: int


class CancelResponse(BaseModel):
    """Response to a cancellation request."""
    job_id: str
    cancelled: bool
    status: JobStatus


class PluginListResponse(BaseModel):
    """Names created in this process lifetime."""
    plugins: List[str]
    total: int


class PluginExistsResponse(BaseModel):
    name: str
    exists: bool


class ModelResponse(BaseModel):
    model: GenerationModel

    model_config = {"protected_namespaces": ()}


class CleanupResponse(BaseModel):
    """Result of a manual retention sweep."""
    removed: int
    remaining: int


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    message: str

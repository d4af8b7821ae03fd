# ============================================================================
# CLAUDE CONTEXT - ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Foundation - Exceptions raised across layers
# PURPOSE: Admission errors surfaced to callers of job creation
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================
"""
Error taxonomy.

Admission errors are raised synchronously by job creation; no job exists
when one of them is raised. Phase errors never use exceptions: they are
recorded on the job's error ledger by the pipeline.
"""


class AdmissionError(Exception):
    """Base exception for rejected job creation requests."""
    code = "admission_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DuplicateArtifactError(AdmissionError):
    """Raised when an artifact name was already created in this process."""
    code = "duplicate_artifact"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Plugin {name} has already been created in this session")


class InvalidNameError(AdmissionError):
    """Raised when an artifact name fails format or traversal checks."""
    code = "invalid_name"

    def __init__(self, name: str):
        self.name = name
        super().__init__("Invalid plugin name. Must follow format: @scope/plugin-name")


class RateLimitedError(AdmissionError):
    """Raised when the rolling job-creation budget is spent."""
    code = "rate_limited"

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds
        super().__init__(
            "Rate limit exceeded. Please wait before creating another plugin."
        )


class CapacityExceededError(AdmissionError):
    """Raised when too many jobs are tracked in memory."""
    code = "capacity_exceeded"

    def __init__(self, max_jobs: int):
        self.max_jobs = max_jobs
        super().__init__(
            "Maximum number of concurrent jobs reached. "
            "Please wait for existing jobs to complete."
        )


class UnsafeOutputPathError(AdmissionError):
    """Raised when a computed output path escapes the data root."""
    code = "unsafe_output_path"

    def __init__(self, path: str):
        self.path = path
        super().__init__("Invalid output path")


class JobNotFoundError(Exception):
    """Raised when a job ID is not tracked."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


__all__ = [
    "AdmissionError",
    "DuplicateArtifactError",
    "InvalidNameError",
    "RateLimitedError",
    "CapacityExceededError",
    "UnsafeOutputPathError",
    "JobNotFoundError",
]

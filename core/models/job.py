# ============================================================================
# CLAUDE CONTEXT - CREATION JOB MODEL
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core model - One end-to-end attempt to build a plugin
# PURPOSE: Track status, iteration progress, logs and the error ledger
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: CreationJob, IterationError, SuiteResult, SuiteFailure
# DEPENDENCIES: pydantic
# ============================================================================
"""
Creation Job Model

A CreationJob represents one attempt to produce a plugin from a
specification. It is created PENDING by the creation service, driven
through iterations by the pipeline, and finalized exactly once.

All mutation goes through the methods below. Each method is synchronous
and never awaits, so on a single event loop a pipeline step and a
cancellation/timeout callback can never interleave inside one mutation.
Logs and the error ledger are append-only.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field, PrivateAttr, computed_field

from core.contracts import GenerationModel, INITIALIZING_PHASE, JobStatus
from core.logging import get_logger
from core.models.specification import PluginSpecification

logger = get_logger(__name__)

# Ledger entries and job.error keep the tail of long tool output
MAX_ERROR_CHARS = 10_000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _tail(text: str, limit: int = MAX_ERROR_CHARS) -> str:
    if len(text) <= limit:
        return text
    return "[...truncated]\n" + text[-limit:]


# ============================================================================
# RESULT MODELS
# ============================================================================

class SuiteFailure(BaseModel):
    """A single failing test extracted from runner output."""
    test: str
    error: str = "See full output for details"


class SuiteResult(BaseModel):
    """Pass/fail/skip counts and duration parsed from a test run."""
    passed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    duration: float = Field(default=0.0, ge=0, description="Seconds")
    failures: List[SuiteFailure] = Field(default_factory=list)


class IterationError(BaseModel):
    """One error ledger entry: a failed phase within an iteration."""
    iteration: int = Field(..., ge=0)
    phase: str
    error: str
    timestamp: datetime = Field(default_factory=_utcnow)


# ============================================================================
# JOB
# ============================================================================

class CreationJob(BaseModel):
    """
    A plugin creation job.

    Lifecycle:
        1. Created with status=PENDING when admission succeeds
        2. Transitions to RUNNING when the first iteration begins
        3. Transitions to COMPLETED when an iteration passes every phase
        4. Transitions to FAILED when the budget runs out, a fatal error
           escapes a phase, or the absolute job timeout fires
        5. Transitions to CANCELLED on request or service shutdown
    """

    job_id: str = Field(..., max_length=64)
    specification: PluginSpecification

    # Status
    status: JobStatus = Field(default=JobStatus.PENDING)
    current_phase: str = Field(default=INITIALIZING_PHASE)
    progress: float = Field(default=0.0, ge=0, le=100)
    logs: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    result: Optional[str] = None

    # Output location (inside the data root, fixed at creation)
    output_path: str

    # Timestamps
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = Field(
        default=None,
        description="Set exactly once, on the terminal transition"
    )

    # Iterations
    current_iteration: int = Field(default=0, ge=0)
    max_iterations: int = Field(default=5, ge=1)
    errors: List[IterationError] = Field(default_factory=list)

    # Phase results
    test_results: Optional[SuiteResult] = None
    validation_score: Optional[float] = Field(default=None, ge=0, le=100)

    model_used: Optional[GenerationModel] = None

    # Live child process, used only to signal cancellation
    _process: Any = PrivateAttr(default=None)

    model_config = {"protected_namespaces": ()}

    @computed_field
    @property
    def is_terminal(self) -> bool:
        """Check if job is in a terminal state."""
        return self.status.is_terminal()

    @computed_field
    @property
    def duration_seconds(self) -> float:
        """Seconds since creation, frozen once terminal."""
        end_time = self.completed_at or _utcnow()
        return (end_time - self.started_at).total_seconds()

    # =========================================================================
    # STATE TRANSITIONS
    # =========================================================================

    def can_transition_to(self, new_status: JobStatus) -> bool:
        """
        Validate if a status transition is allowed.

        Valid transitions:
            PENDING -> RUNNING, FAILED, CANCELLED
            RUNNING -> RUNNING, COMPLETED, FAILED, CANCELLED
            COMPLETED, FAILED, CANCELLED -> (none, terminal)
        """
        allowed = {
            JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.FAILED, JobStatus.CANCELLED},
            JobStatus.RUNNING: {
                JobStatus.RUNNING,
                JobStatus.COMPLETED,
                JobStatus.FAILED,
                JobStatus.CANCELLED,
            },
            JobStatus.COMPLETED: set(),
            JobStatus.FAILED: set(),
            JobStatus.CANCELLED: set(),
        }
        return new_status in allowed.get(self.status, set())

    def begin_iteration(self) -> int:
        """Advance to the next iteration and return its number."""
        if self.current_iteration >= self.max_iterations:
            raise ValueError(
                f"Iteration budget exhausted ({self.max_iterations})"
            )
        if not self.can_transition_to(JobStatus.RUNNING):
            raise ValueError(f"Cannot start iteration from {self.status.value}")

        self.status = JobStatus.RUNNING
        self.current_iteration += 1
        self.progress = (self.current_iteration / self.max_iterations) * 100
        self.current_phase = f"iteration {self.current_iteration}/{self.max_iterations}"
        return self.current_iteration

    def mark_completed(self, result: Optional[str] = None) -> None:
        """Mark job as successfully completed."""
        if not self.can_transition_to(JobStatus.COMPLETED):
            raise ValueError(f"Cannot transition from {self.status.value} to completed")
        self.status = JobStatus.COMPLETED
        self.completed_at = _utcnow()
        self.error = None
        if result:
            self.result = result

    def mark_failed(self, error_message: str) -> None:
        """Mark job as failed."""
        if not self.can_transition_to(JobStatus.FAILED):
            raise ValueError(f"Cannot transition from {self.status.value} to failed")
        self.status = JobStatus.FAILED
        self.error = _tail(error_message)
        self.completed_at = _utcnow()

    def mark_cancelled(self) -> None:
        """Mark job as cancelled."""
        if not self.can_transition_to(JobStatus.CANCELLED):
            raise ValueError(f"Cannot transition from {self.status.value} to cancelled")
        self.status = JobStatus.CANCELLED
        self.completed_at = _utcnow()

    # =========================================================================
    # LOGS & LEDGER
    # =========================================================================

    def log(self, message: str) -> None:
        """Append a timestamped line to the job log and mirror it."""
        self.logs.append(f"[{_utcnow().isoformat()}] {message}")
        logger.info(f"[Job {self.job_id}] {message}")

    def record_error(self, phase: str, error: str) -> IterationError:
        """Append an entry to the error ledger for the current iteration."""
        entry = IterationError(
            iteration=self.current_iteration,
            phase=phase,
            error=_tail(error),
        )
        self.errors.append(entry)
        return entry

    def set_phase_error(self, error: str) -> None:
        """Store the detail of the latest phase failure."""
        self.error = _tail(error)

    def errors_for(self, iteration: int) -> List[IterationError]:
        """Ledger entries recorded during one iteration."""
        return [e for e in self.errors if e.iteration == iteration]

    # =========================================================================
    # CHILD PROCESS
    # =========================================================================

    @property
    def process(self) -> Any:
        """The child process currently running for this job, if any."""
        return self._process

    def attach_process(self, process: Any) -> None:
        self._process = process

    def detach_process(self, process: Any = None) -> None:
        if process is None or self._process is process:
            self._process = None

    def terminate_process(self) -> bool:
        """
        Send a graceful termination signal to the live child process.

        Returns:
            True if a signal was sent.
        """
        process = self._process
        if process is None or process.returncode is not None:
            return False
        try:
            process.terminate()
        except ProcessLookupError:
            return False
        return True

    def snapshot(self) -> "CreationJob":
        """Detached copy for callers; carries no process handle."""
        return CreationJob.model_validate(
            self.model_dump(exclude={"is_terminal", "duration_seconds"})
        )


__all__ = [
    "CreationJob",
    "IterationError",
    "SuiteResult",
    "SuiteFailure",
    "MAX_ERROR_CHARS",
]

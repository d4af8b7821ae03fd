# ============================================================================
# CLAUDE CONTEXT - BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Foundation - Core enums
# PURPOSE: Status, phase and model enums shared by every layer
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: JobStatus, PipelinePhase, GenerationModel
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the plugin creation orchestrator.

These enums cross every boundary:
- Python (pipeline, service)
- HTTP (API responses)
- Job logs and the error ledger
"""

from enum import Enum
from typing import Tuple


# ============================================================================
# STATUS ENUMS
# ============================================================================

class JobStatus(str, Enum):
    """
    Creation job lifecycle states.

    State transitions:
        PENDING -> RUNNING -> RUNNING (retryable iteration failure)
                           -> COMPLETED
                           -> FAILED
                           -> CANCELLED
        PENDING -> FAILED | CANCELLED
    """
    PENDING = "pending"          # Admitted, not yet iterating
    RUNNING = "running"          # An iteration is in progress or about to start
    COMPLETED = "completed"      # An iteration passed every phase
    FAILED = "failed"            # Budget exhausted, fatal error or job timeout
    CANCELLED = "cancelled"      # Cancelled by request or shutdown

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


class PipelinePhase(str, Enum):
    """
    Phases of a single iteration, in execution order.

    The values double as the job's ``current_phase`` label and the
    ``phase`` field of error ledger entries.
    """
    GENERATING = "generating"
    BUILDING = "building"
    LINTING = "linting"
    TESTING = "testing"
    VALIDATING = "validating"

    @classmethod
    def ordered(cls) -> Tuple["PipelinePhase", ...]:
        """Phases in the order an iteration runs them."""
        return (cls.GENERATING, cls.BUILDING, cls.LINTING, cls.TESTING, cls.VALIDATING)


# Label used before the first iteration starts
INITIALIZING_PHASE = "initializing"


class GenerationModel(str, Enum):
    """Code generation models the provider may be asked to use."""
    SONNET_3_5 = "claude-3-5-sonnet-20241022"
    OPUS_3 = "claude-3-opus-20240229"

    @classmethod
    def parse(cls, value: str) -> "GenerationModel":
        """Parse a model identifier, raising ValueError if unknown."""
        try:
            return cls(value)
        except ValueError:
            known = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown model '{value}'. Known models: {known}")


__all__ = [
    "JobStatus",
    "PipelinePhase",
    "INITIALIZING_PHASE",
    "GenerationModel",
]

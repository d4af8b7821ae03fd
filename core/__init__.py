# ============================================================================
# CLAUDE CONTEXT - CORE MODULE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core module initialization
# PURPOSE: Export core contracts and models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================

from core.contracts import JobStatus, PipelinePhase, GenerationModel
from core.models import (
    CreationJob,
    IterationError,
    PluginSpecification,
    SuiteResult,
)

__all__ = [
    # Enums
    "JobStatus",
    "PipelinePhase",
    "GenerationModel",
    # Models
    "CreationJob",
    "IterationError",
    "PluginSpecification",
    "SuiteResult",
]

# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Admission and iteration loop
# PURPOSE: Gate job creation and drive jobs through the phase pipeline
# CREATED: 18 OCT 2026
# ============================================================================
"""
Orchestrator Module

Usage:
    from orchestrator import AdmissionGovernor, IterationPipeline

    output_path = governor.admit(spec.name, job_id, tracked_jobs)
    await pipeline.run(job)  # Drives the job to a terminal state
"""

from .governor import AdmissionGovernor, RateLimiter, is_valid_plugin_name, sanitize_plugin_name
from .pipeline import IterationPipeline, PhaseOutcome

__all__ = [
    "AdmissionGovernor",
    "RateLimiter",
    "is_valid_plugin_name",
    "sanitize_plugin_name",
    "IterationPipeline",
    "PhaseOutcome",
]

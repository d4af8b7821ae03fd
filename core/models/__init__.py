# ============================================================================
# CLAUDE CONTEXT - MODELS MODULE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point
"""

from core.models.specification import (
    PluginSpecification,
    ActionSpec,
    ProviderSpec,
    ServiceSpec,
    EvaluatorSpec,
    EnvironmentVariableSpec,
)
from core.models.job import CreationJob, IterationError, SuiteResult, SuiteFailure

__all__ = [
    # Specification
    "PluginSpecification",
    "ActionSpec",
    "ProviderSpec",
    "ServiceSpec",
    "EvaluatorSpec",
    "EnvironmentVariableSpec",
    # Job
    "CreationJob",
    "IterationError",
    "SuiteResult",
    "SuiteFailure",
]

# ============================================================================
# CLAUDE CONTEXT - PLUGIN SPECIFICATION MODEL
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core model - Immutable description of the artifact to build
# PURPOSE: Validate and freeze the specification a job is created from
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: PluginSpecification, ActionSpec, ProviderSpec, ServiceSpec,
#          EvaluatorSpec, EnvironmentVariableSpec
# DEPENDENCIES: pydantic
# ============================================================================
"""
Plugin Specification

The read-only input of a creation job. Field aliases accept the camelCase
keys used by existing specification files (``environmentVariables``,
``dataStructure``) while Python code uses snake_case.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


_FROZEN = {"frozen": True, "populate_by_name": True}


class ActionSpec(BaseModel):
    """An action the plugin exposes."""
    name: str = Field(..., min_length=1, max_length=128)
    description: str = ""
    parameters: Optional[Dict[str, Any]] = None

    model_config = _FROZEN


class ProviderSpec(BaseModel):
    """A context provider the plugin exposes."""
    name: str = Field(..., min_length=1, max_length=128)
    description: str = ""
    data_structure: Optional[Dict[str, Any]] = Field(default=None, alias="dataStructure")

    model_config = _FROZEN


class ServiceSpec(BaseModel):
    """A long-lived service the plugin registers."""
    name: str = Field(..., min_length=1, max_length=128)
    description: str = ""
    methods: Optional[List[str]] = None

    model_config = _FROZEN


class EvaluatorSpec(BaseModel):
    """An evaluator the plugin registers."""
    name: str = Field(..., min_length=1, max_length=128)
    description: str = ""
    triggers: Optional[List[str]] = None

    model_config = _FROZEN


class EnvironmentVariableSpec(BaseModel):
    """An environment variable the plugin reads at runtime."""
    name: str = Field(..., min_length=1, max_length=128)
    description: str = ""
    required: bool = False
    sensitive: bool = False

    model_config = _FROZEN


class PluginSpecification(BaseModel):
    """
    Immutable specification of the plugin to create.

    Name format is not validated here; admission checks it so that an
    invalid name surfaces as an admission error rather than a schema error.
    """
    name: str = Field(..., min_length=1, max_length=214)
    description: str = Field(..., max_length=4000)
    version: Optional[str] = Field(default=None, max_length=64)

    actions: Optional[List[ActionSpec]] = None
    providers: Optional[List[ProviderSpec]] = None
    services: Optional[List[ServiceSpec]] = None
    evaluators: Optional[List[EvaluatorSpec]] = None

    dependencies: Dict[str, str] = Field(default_factory=dict)
    environment_variables: Optional[List[EnvironmentVariableSpec]] = Field(
        default=None,
        alias="environmentVariables",
    )

    model_config = _FROZEN

    def component_summary(self) -> Dict[str, List[str]]:
        """Names of declared components, keyed by component kind."""
        summary: Dict[str, List[str]] = {}
        for kind in ("actions", "providers", "services", "evaluators"):
            items = getattr(self, kind) or []
            if items:
                summary[kind] = [item.name for item in items]
        return summary


__all__ = [
    "ActionSpec",
    "ProviderSpec",
    "ServiceSpec",
    "EvaluatorSpec",
    "EnvironmentVariableSpec",
    "PluginSpecification",
]

# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Collaborators of the iteration pipeline
# PURPOSE: Generation provider, prompts, workspace and plugin host
# CREATED: 18 OCT 2026
# ============================================================================
"""
Services Module

Collaborators the pipeline calls into. The creation service itself sits on
top of the orchestrator and is imported from its own module:

    from services.creation_service import PluginCreationService

    service = PluginCreationService(get_defaults())
    job_id = await service.create_plugin(specification)
"""

from .generation import (
    AnthropicGenerationProvider,
    GeneratedFile,
    GenerationError,
    GenerationProvider,
    ValidationResponseError,
    ValidationVerdict,
)
from .plugin_host import PluginInstaller
from .workspace import WorkspaceManager

__all__ = [
    "AnthropicGenerationProvider",
    "GeneratedFile",
    "GenerationError",
    "GenerationProvider",
    "ValidationResponseError",
    "ValidationVerdict",
    "PluginInstaller",
    "WorkspaceManager",
]

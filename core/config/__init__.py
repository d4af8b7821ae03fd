# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the plugin orchestrator.
"""

from core.config.defaults import (
    OrchestratorDefaults,
    ProcessDefaults,
    GenerationDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "OrchestratorDefaults",
    "ProcessDefaults",
    "GenerationDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]

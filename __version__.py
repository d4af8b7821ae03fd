# ============================================================================
# VERSION - PLUGIN FORGE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# ============================================================================
"""
Version information for Plugin Forge.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch.build
# Criteria for 0.2 - end-to-end job reaches COMPLETED against real tooling
__version__ = "0.1.4.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-18"

EPOCH = 1
CODENAME = "Plugin Forge"

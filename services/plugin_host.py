# ============================================================================
# PLUGIN HOST HAND-OFF
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Service - Optional installer for finished plugins
# PURPOSE: Interface the service calls once a job completes
# CREATED: 18 OCT 2026
# ============================================================================
"""
Plugin Host

A host that can load finished plugins implements PluginInstaller and is
passed to the creation service. Installation failures are logged by the
caller and never change the job's status.
"""

from abc import ABC, abstractmethod


class PluginInstaller(ABC):
    """Receives the output path of a completed plugin."""

    @abstractmethod
    async def install_plugin(self, plugin_path: str) -> None:
        """Install the plugin found at plugin_path."""


__all__ = ["PluginInstaller"]

# ============================================================================
# TOOL RESOLVER
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Package manager discovery
# PURPOSE: Map logical package-manager commands onto the tool present on host
# CREATED: 18 OCT 2026
# ============================================================================
"""
Tool Resolver

Pipelines speak in terms of the default tool (``npm install``,
``npm run build``, ``npm test``). The resolver probes the host for each
interchangeable package manager in preference order and rewrites the
invocation for the first one it finds. When none is installed, the
invocation is returned unchanged and the spawn is expected to fail with
a not-found error.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TOOL = "npm"


@dataclass(frozen=True)
class PackageManager:
    """Argument forms of one package manager for each logical action."""
    command: str
    install: Tuple[str, ...] = ("install",)
    run: Tuple[str, ...] = ("run",)
    test: Tuple[str, ...] = ("test",)

    def map_args(self, args: Sequence[str]) -> List[str]:
        """Translate default-tool arguments into this manager's form."""
        if not args:
            return []
        action = args[0]
        if action == "install":
            return list(self.install)
        if action == "run":
            return [*self.run, *args[1:]]
        if action == "test":
            return list(self.test)
        return list(args)


KNOWN_MANAGERS: Dict[str, PackageManager] = {
    "bun": PackageManager("bun"),
    "pnpm": PackageManager("pnpm"),
    "yarn": PackageManager("yarn"),
    "npm": PackageManager("npm"),
}


@dataclass
class ResolvedCommand:
    """Concrete program and arguments to spawn."""
    program: str
    args: List[str] = field(default_factory=list)
    tool: Optional[str] = None  # package manager chosen, None if unchanged

    @property
    def argv(self) -> List[str]:
        return [self.program, *self.args]


class ToolResolver:
    """
    Resolves logical commands to the package manager installed on the host.
    """

    def __init__(
        self,
        preference: Sequence[str] = ("bun", "pnpm", "yarn", "npm"),
        search_path: Optional[str] = None,
        default_tool: str = DEFAULT_TOOL,
    ):
        """
        Initialize resolver.

        Args:
            preference: Package manager names, most preferred first
            search_path: PATH string to probe (defaults to the process PATH)
            default_tool: Command name that triggers resolution
        """
        self.managers = [
            KNOWN_MANAGERS.get(name, PackageManager(name)) for name in preference
        ]
        self.search_path = search_path
        self.default_tool = default_tool

    def is_available(self, command: str) -> bool:
        """Check whether a command exists on the search path."""
        return shutil.which(command, path=self.search_path or os.environ.get("PATH")) is not None

    def available_tools(self) -> List[str]:
        """All configured package managers present on the host, in preference order."""
        return [m.command for m in self.managers if self.is_available(m.command)]

    def resolve(self, command: str, args: Sequence[str]) -> ResolvedCommand:
        """
        Resolve a command to the concrete invocation.

        Args:
            command: Logical tool name (only the default tool is rewritten)
            args: Default-tool arguments, e.g. ["run", "build"]

        Returns:
            ResolvedCommand, unchanged if no preferred tool is present
        """
        if command != self.default_tool:
            return ResolvedCommand(program=command, args=list(args))

        for manager in self.managers:
            if self.is_available(manager.command):
                return ResolvedCommand(
                    program=manager.command,
                    args=manager.map_args(args),
                    tool=manager.command,
                )

        logger.warning(
            f"No package manager found among "
            f"{[m.command for m in self.managers]}; using '{command}' unchanged"
        )
        return ResolvedCommand(program=command, args=list(args))


__all__ = [
    "DEFAULT_TOOL",
    "PackageManager",
    "KNOWN_MANAGERS",
    "ResolvedCommand",
    "ToolResolver",
]

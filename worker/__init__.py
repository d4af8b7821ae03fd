# ============================================================================
# WORKER MODULE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - External tool execution
# PURPOSE: Process harness, tool resolution and test output parsing
# CREATED: 18 OCT 2026
# ============================================================================
"""
Worker Module

Everything that touches child processes lives here. Nothing in this
package knows about jobs.
"""

from worker.process import (
    CommandResult,
    OutputBuffer,
    ProcessHarness,
    build_process_env,
    TIMEOUT_MARKER,
    TRUNCATION_MARKER,
)
from worker.tools import ToolResolver, ResolvedCommand, PackageManager
from worker.suite_output import (
    SuiteOutputParser,
    VitestOutputParser,
    PytestOutputParser,
    get_parser,
)

__all__ = [
    "CommandResult",
    "OutputBuffer",
    "ProcessHarness",
    "build_process_env",
    "TIMEOUT_MARKER",
    "TRUNCATION_MARKER",
    "ToolResolver",
    "ResolvedCommand",
    "PackageManager",
    "SuiteOutputParser",
    "VitestOutputParser",
    "PytestOutputParser",
    "get_parser",
]

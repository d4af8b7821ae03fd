# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for admission, iteration, processes, generation
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides the limits and budgets the orchestrator runs under.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from core.contracts import GenerationModel


def _split_paths(value: str) -> Tuple[str, ...]:
    """Split an os.pathsep separated list, dropping empty entries."""
    return tuple(p for p in value.split(os.pathsep) if p)


@dataclass(frozen=True)
class OrchestratorDefaults:
    """
    Defaults for job admission, iteration and retention.
    """
    # Storage
    data_dir: str = "./data"
    template_dirs: Tuple[str, ...] = (
        "src/resources/templates/plugin-starter",
        "resources/templates/plugin-starter",
    )

    # Iteration budget
    max_iterations: int = 5
    job_timeout_seconds: int = 30 * 60  # 30 minutes

    # Admission limits
    max_tracked_jobs: int = 10
    rate_limit_count: int = 10
    rate_limit_window_seconds: int = 60 * 60  # 1 hour

    # Retention
    retention_days: int = 7
    cleanup_interval_seconds: int = 60 * 60

    @property
    def data_root(self) -> Path:
        """Resolved absolute data root."""
        return Path(self.data_dir).resolve()

    @classmethod
    def from_env(cls) -> "OrchestratorDefaults":
        """Create from environment variables."""
        template_dirs = os.getenv("PLUGIN_TEMPLATE_DIRS")
        return cls(
            data_dir=os.getenv("PLUGIN_DATA_DIR", os.path.join(os.getcwd(), "data")),
            template_dirs=_split_paths(template_dirs) if template_dirs else cls.template_dirs,
            max_iterations=int(os.getenv("MAX_ITERATIONS", 5)),
            job_timeout_seconds=int(os.getenv("JOB_TIMEOUT_SECONDS", 30 * 60)),
            max_tracked_jobs=int(os.getenv("MAX_TRACKED_JOBS", 10)),
            rate_limit_count=int(os.getenv("RATE_LIMIT_COUNT", 10)),
            rate_limit_window_seconds=int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", 60 * 60)),
            retention_days=int(os.getenv("JOB_RETENTION_DAYS", 7)),
            cleanup_interval_seconds=int(os.getenv("CLEANUP_INTERVAL_SECONDS", 60 * 60)),
        )


@dataclass(frozen=True)
class ProcessDefaults:
    """
    Defaults for child process execution.

    Controls per-command timeout, output capture and PATH construction.
    """
    command_timeout_seconds: float = 5 * 60  # 5 minutes per command
    max_output_bytes: int = 1024 * 1024  # 1 MiB
    terminate_grace_seconds: float = 5.0

    # Prepended to the inherited PATH, in order
    extra_path_dirs: Tuple[str, ...] = (
        "/usr/local/bin",
        "/usr/bin",
        "/bin",
        "/opt/homebrew/bin",
        "~/.bun/bin",
    )

    # Inherited into the child environment; everything else is dropped
    inherited_env_vars: Tuple[str, ...] = (
        "HOME",
        "USER",
        "LOGNAME",
        "LANG",
        "LC_ALL",
        "TMPDIR",
        "TEMP",
        "TMP",
        "SYSTEMROOT",
        "NODE_OPTIONS",
    )

    # Package manager preference order
    package_managers: Tuple[str, ...] = ("bun", "pnpm", "yarn", "npm")

    # Test runner whose output the test phase parses (vitest, pytest)
    test_runner: str = "vitest"

    @classmethod
    def from_env(cls) -> "ProcessDefaults":
        """Create from environment variables."""
        managers = os.getenv("PACKAGE_MANAGERS")
        return cls(
            command_timeout_seconds=float(os.getenv("COMMAND_TIMEOUT_SECONDS", 5 * 60)),
            max_output_bytes=int(os.getenv("MAX_OUTPUT_BYTES", 1024 * 1024)),
            package_managers=(
                tuple(m.strip() for m in managers.split(",") if m.strip())
                if managers else cls.package_managers
            ),
            test_runner=os.getenv("TEST_RUNNER", "vitest"),
        )


@dataclass(frozen=True)
class GenerationDefaults:
    """
    Defaults for the code generation provider.
    """
    api_key: Optional[str] = None
    model: GenerationModel = GenerationModel.OPUS_3
    api_base_url: str = "https://api.anthropic.com"
    api_version: str = "2023-06-01"
    generation_max_tokens: int = 8192
    validation_max_tokens: int = 4096
    temperature: float = 0.0
    request_timeout_seconds: float = 300.0

    @property
    def enabled(self) -> bool:
        """Whether a provider can be configured."""
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "GenerationDefaults":
        """Create from environment variables."""
        model_setting = os.getenv("CLAUDE_MODEL")
        model = cls.model
        if model_setting and model_setting in {m.value for m in GenerationModel}:
            model = GenerationModel(model_setting)
        return cls(
            api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            model=model,
            api_base_url=os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com"),
            request_timeout_seconds=float(os.getenv("GENERATION_TIMEOUT_SECONDS", 300)),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    orchestrator: OrchestratorDefaults = field(default_factory=OrchestratorDefaults)
    process: ProcessDefaults = field(default_factory=ProcessDefaults)
    generation: GenerationDefaults = field(default_factory=GenerationDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            orchestrator=OrchestratorDefaults.from_env(),
            process=ProcessDefaults.from_env(),
            generation=GenerationDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "OrchestratorDefaults",
    "ProcessDefaults",
    "GenerationDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]

# ============================================================================
# ADMISSION GOVERNOR
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Job admission control
# PURPOSE: Duplicate, name, capacity, path and rate checks before job creation
# CREATED: 18 OCT 2026
# ============================================================================
"""
Admission Governor

Every creation request passes these checks, in order, before a job record
exists:

    1. Duplicate   - name already created in this process   -> DuplicateArtifactError
    2. Name        - scoped format, no traversal sequences  -> InvalidNameError
    3. Capacity    - tracked jobs below the cap             -> CapacityExceededError
    4. Path        - output path stays inside data root     -> UnsafeOutputPathError
    5. Rate limit  - rolling creation budget not spent      -> RateLimitedError

The rate check runs last because it consumes budget; a request rejected
for any other reason does not count against the hour.

State (created names, rate counters) belongs to the governor instance so
tests can build isolated governors.
"""

import re
import time
from pathlib import Path
from typing import Callable, Collection, Optional, Set, Union

from core.errors import (
    CapacityExceededError,
    DuplicateArtifactError,
    InvalidNameError,
    RateLimitedError,
    UnsafeOutputPathError,
)
from core.logging import ComponentType, get_logger

logger = get_logger(__name__, ComponentType.ORCHESTRATOR)

# Optional leading "@", then scope/name of alphanumerics, "-" and "_"
VALID_NAME = re.compile(r"@?[a-zA-Z0-9_-]+/[a-zA-Z0-9_-]+")
FORBIDDEN_SEQUENCES = ("..", "./", "\\")


def is_valid_plugin_name(name: str) -> bool:
    """Check name format and reject path traversal sequences."""
    return (
        bool(VALID_NAME.fullmatch(name))
        and not any(seq in name for seq in FORBIDDEN_SEQUENCES)
    )


def sanitize_plugin_name(name: str) -> str:
    """Directory-safe form: leading "@" removed, "/" -> "-", lower-cased."""
    return re.sub(r"^@", "", name).replace("/", "-").lower()


class RateLimiter:
    """
    Rolling creation counter.

    The count resets lazily on the first call made more than one window
    after the last accepted call.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._count = 0
        self._last_accepted: Optional[float] = None

    @property
    def count(self) -> int:
        return self._count

    def try_acquire(self) -> bool:
        """Consume one slot if available."""
        now = self._clock()
        if self._last_accepted is None or now - self._last_accepted > self.window_seconds:
            self._count = 0

        if self._count >= self.limit:
            return False

        self._last_accepted = now
        self._count += 1
        return True


class AdmissionGovernor:
    """
    Gatekeeper for job creation.
    """

    def __init__(
        self,
        data_root: Union[str, Path],
        max_tracked_jobs: int = 10,
        rate_limit_count: int = 10,
        rate_limit_window_seconds: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize governor.

        Args:
            data_root: Directory every job output must live under
            max_tracked_jobs: Cap on jobs held in memory (any status)
            rate_limit_count: Creations allowed per rolling window
            rate_limit_window_seconds: Rolling window length
            clock: Monotonic clock (injectable for tests)
        """
        self.data_root = Path(data_root).resolve()
        self.max_tracked_jobs = max_tracked_jobs
        self.rate_limiter = RateLimiter(rate_limit_count, rate_limit_window_seconds, clock)
        self._created_names: Set[str] = set()

    # =========================================================================
    # REGISTRY
    # =========================================================================

    @property
    def created_names(self) -> Set[str]:
        """Names created in this process lifetime (copy)."""
        return set(self._created_names)

    def is_created(self, name: str) -> bool:
        return name in self._created_names

    def register(self, name: str) -> None:
        """Record a name as created."""
        self._created_names.add(name)

    # =========================================================================
    # CHECKS
    # =========================================================================

    def check_duplicate(self, name: str) -> None:
        if name in self._created_names:
            raise DuplicateArtifactError(name)

    def check_name(self, name: str) -> None:
        if not is_valid_plugin_name(name):
            raise InvalidNameError(name)

    def check_capacity(self, tracked_jobs: int) -> None:
        if tracked_jobs >= self.max_tracked_jobs:
            raise CapacityExceededError(self.max_tracked_jobs)

    def resolve_output_path(self, job_id: str, name: str) -> Path:
        """
        Compute the job's output directory and prove it stays in the data root.

        Layout: <data_root>/plugins/<job_id>/<sanitized name>

        Raises:
            UnsafeOutputPathError if the resolved path escapes the root
        """
        candidate = (self.data_root / "plugins" / job_id / sanitize_plugin_name(name)).resolve()
        if candidate == self.data_root or not candidate.is_relative_to(self.data_root):
            raise UnsafeOutputPathError(str(candidate))
        return candidate

    def check_rate_limit(self) -> None:
        if not self.rate_limiter.try_acquire():
            raise RateLimitedError(
                self.rate_limiter.limit,
                int(self.rate_limiter.window_seconds),
            )

    def admit(self, name: str, job_id: str, tracked_jobs: Collection) -> Path:
        """
        Run every admission check for a new job.

        Args:
            name: Plugin name from the specification
            job_id: Identifier the job will receive
            tracked_jobs: Jobs currently held in memory

        Returns:
            Sandboxed output path for the job

        Raises:
            AdmissionError subclass on rejection
        """
        self.check_duplicate(name)
        self.check_name(name)
        self.check_capacity(len(tracked_jobs))
        output_path = self.resolve_output_path(job_id, name)
        self.check_rate_limit()
        return output_path


__all__ = [
    "VALID_NAME",
    "is_valid_plugin_name",
    "sanitize_plugin_name",
    "RateLimiter",
    "AdmissionGovernor",
]

# ============================================================================
# PROCESS EXECUTION HARNESS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Sandboxed child process execution
# PURPOSE: Run external tools with timeout, bounded output and no shell
# CREATED: 18 OCT 2026
# ============================================================================
"""
Process Execution Harness

Spawns one external tool per call and reports ``success`` plus captured
output. The harness knows nothing about jobs: callers pass ``on_spawn`` /
``on_exit`` hooks to expose the live process handle (used only so a
cancellation request can terminate it) and a ``log`` callable for
human-readable progress lines.

Guarantees:
- Arguments are passed as a list; no shell ever interprets them
- stdout and stderr are merged into one buffer capped at max_output_bytes
- A per-command timeout sends SIGTERM and reports failure
- Spawn failures (not found, permission denied) become failed results
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from core.config import ProcessDefaults
from worker.tools import ToolResolver

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n[Output truncated due to size limit]"
TIMEOUT_MARKER = "\n[Process killed due to timeout]"

READ_CHUNK_BYTES = 64 * 1024

ProcessHook = Callable[[Any], None]
LogFunc = Callable[[str], None]


# ============================================================================
# ENVIRONMENT
# ============================================================================

def build_process_env(
    defaults: ProcessDefaults,
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Build the explicit child environment.

    Only allow-listed variables are inherited. PATH lists the standard
    install locations first, then the inherited PATH.
    """
    base = os.environ if base_env is None else base_env
    env = {key: base[key] for key in defaults.inherited_env_vars if key in base}

    home = base.get("HOME") or os.path.expanduser("~")
    path_dirs: List[str] = []
    for entry in defaults.extra_path_dirs:
        if entry.startswith("~"):
            entry = home + entry[1:]
        path_dirs.append(entry)

    inherited_path = base.get("PATH")
    if inherited_path:
        path_dirs.append(inherited_path)

    env["PATH"] = os.pathsep.join(path_dirs)
    return env


# ============================================================================
# OUTPUT CAPTURE
# ============================================================================

class OutputBuffer:
    """
    Byte buffer with a hard cap.

    Bytes past the cap are counted but discarded; the truncation marker is
    added exactly once when the text is rendered.
    """

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        self._chunks: List[bytes] = []
        self._size = 0
        self.total_bytes = 0
        self.truncated = False

    @property
    def size(self) -> int:
        """Bytes retained."""
        return self._size

    def append(self, data: bytes) -> bool:
        """
        Add bytes to the buffer.

        Returns:
            True if this call caused truncation.
        """
        self.total_bytes += len(data)
        if self.truncated:
            return False

        remaining = self.max_bytes - self._size
        if len(data) <= remaining:
            self._chunks.append(data)
            self._size += len(data)
            return False

        if remaining > 0:
            self._chunks.append(data[:remaining])
            self._size += remaining
        self.truncated = True
        return True

    def text(self) -> str:
        """Decoded output, with the truncation marker if bytes were dropped."""
        text = b"".join(self._chunks).decode("utf-8", errors="replace")
        if self.truncated:
            text += TRUNCATION_MARKER
        return text


# ============================================================================
# RESULT
# ============================================================================

@dataclass
class CommandResult:
    """Outcome of one child process."""
    success: bool
    output: str
    exit_code: Optional[int] = None
    timed_out: bool = False
    truncated: bool = False
    duration_seconds: float = 0.0


# ============================================================================
# HARNESS
# ============================================================================

class ProcessHarness:
    """
    Runs external tools as isolated child processes.
    """

    def __init__(
        self,
        defaults: Optional[ProcessDefaults] = None,
        resolver: Optional[ToolResolver] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize harness.

        Args:
            defaults: Timeout, output cap and PATH settings
            resolver: Tool resolver (built from defaults if omitted)
            env: Explicit child environment (built from defaults if omitted)
        """
        self.defaults = defaults or ProcessDefaults()
        self.env = env if env is not None else build_process_env(self.defaults)
        self.resolver = resolver or ToolResolver(
            preference=self.defaults.package_managers,
            search_path=self.env.get("PATH"),
        )

    async def run(
        self,
        cwd: Union[str, Path],
        command: str,
        args: Sequence[str],
        description: str,
        *,
        on_spawn: Optional[ProcessHook] = None,
        on_exit: Optional[ProcessHook] = None,
        log: Optional[LogFunc] = None,
        timeout_seconds: Optional[float] = None,
    ) -> CommandResult:
        """
        Resolve and run one command.

        Args:
            cwd: Working directory for the child
            command: Logical command (the default tool is resolved)
            args: Argument list
            description: Human-readable label for logs
            on_spawn: Called with the process handle once spawned
            on_exit: Called with the process handle when it is done
            log: Progress log sink (defaults to module logger)
            timeout_seconds: Override of the per-command timeout

        Returns:
            CommandResult; never raises for tool or spawn failures
        """
        emit = log or logger.info
        timeout = (
            self.defaults.command_timeout_seconds
            if timeout_seconds is None else timeout_seconds
        )

        emit(description)
        resolved = self.resolver.resolve(command, args)
        if resolved.tool:
            emit(f"Using {resolved.tool} as package manager")

        start = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                resolved.program,
                *resolved.args,
                cwd=str(cwd),
                env=self.env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError as e:
            emit(f"Command '{resolved.program}' not found")
            return CommandResult(
                success=False,
                output=f"Error: Command '{resolved.program}' not found. {e}",
            )
        except OSError as e:
            emit(f"Process error: {e}")
            return CommandResult(success=False, output=f"Process error: {e}")

        if on_spawn:
            on_spawn(process)

        buffer = OutputBuffer(self.defaults.max_output_bytes)
        try:
            exit_code = await asyncio.wait_for(
                self._collect(process, buffer, emit),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            emit(f"{description} timed out after {timeout}s")
            self._terminate(process)
            await self._reap(process)
            return CommandResult(
                success=False,
                output=buffer.text() + TIMEOUT_MARKER,
                exit_code=process.returncode,
                timed_out=True,
                truncated=buffer.truncated,
                duration_seconds=time.monotonic() - start,
            )
        except asyncio.CancelledError:
            self._terminate(process)
            raise
        finally:
            if on_exit:
                on_exit(process)

        duration = time.monotonic() - start
        logger.debug(
            f"{resolved.program} exited with {exit_code} "
            f"after {duration:.1f}s ({buffer.total_bytes} bytes of output)"
        )
        return CommandResult(
            success=exit_code == 0,
            output=buffer.text(),
            exit_code=exit_code,
            truncated=buffer.truncated,
            duration_seconds=duration,
        )

    async def _collect(
        self,
        process: asyncio.subprocess.Process,
        buffer: OutputBuffer,
        emit: LogFunc,
    ) -> int:
        """Drain merged output until EOF, then wait for exit."""
        while True:
            chunk = await process.stdout.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            if buffer.append(chunk):
                emit("Output truncated due to size limit")
        return await process.wait()

    @staticmethod
    def _terminate(process: asyncio.subprocess.Process) -> None:
        """Send SIGTERM if the process is still alive."""
        if process.returncode is not None:
            return
        try:
            process.terminate()
        except ProcessLookupError:
            pass

    async def _reap(self, process: asyncio.subprocess.Process) -> None:
        """Give a terminated process a short grace period to exit."""
        try:
            await asyncio.wait_for(
                process.wait(),
                timeout=self.defaults.terminate_grace_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Process {process.pid} still running "
                f"{self.defaults.terminate_grace_seconds}s after SIGTERM"
            )


__all__ = [
    "TRUNCATION_MARKER",
    "TIMEOUT_MARKER",
    "OutputBuffer",
    "CommandResult",
    "ProcessHarness",
    "build_process_env",
]

# ============================================================================
# GENERATION PROVIDER
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Service - Code generation and review over HTTP
# PURPOSE: Request source from the model, parse fenced files, parse verdicts
# CREATED: 18 OCT 2026
# ============================================================================
"""
Generation Provider

Two request/response shapes go through the same provider:

    generate  - prompt in, free text out. The text is split into fenced
                code blocks whose first line names a relative file path;
                each block is written under ``src/`` in the job's output
                directory. Text with no fence at all becomes src/index.ts.

    validate  - prompt in, JSON verdict out:
                {"score": 0-100, "production_ready": bool,
                 "issues": [...], "suggestions": [...]}

Transport failures raise GenerationError; a verdict that is not valid JSON
or does not match the schema raises ValidationResponseError. The pipeline
turns both into ordinary phase failures.
"""

import json
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, Field, ValidationError

from core.config import GenerationDefaults
from core.contracts import GenerationModel
from core.logging import get_logger

logger = get_logger(__name__)

ENTRY_POINT = "src/index.ts"

# ```ts\n// File: src/index.ts\n<content>```
FILE_BLOCK = re.compile(
    r"```(?:typescript|ts|javascript|js|json)?[ \t]*\n"
    r"(?://\s*)?(?:File:\s*)?([^\n]+?)\n"
    r"(.*?)```",
    re.DOTALL,
)
# **File: src/index.ts**\n```ts\n<content>```
HEADED_BLOCK = re.compile(
    r"^[^\n`]*?File:[ \t]*`?([^\n`]+?)[ \t*`]*\n"
    r"```(?:typescript|ts|javascript|js|json)?[ \t]*\n"
    r"(.*?)```",
    re.DOTALL | re.MULTILINE,
)
CODE_FENCE = re.compile(r"```[\w-]*[ \t]*\n(.*?)```", re.DOTALL)
PATH_LIKE = re.compile(r"^[\w@.\-/]+\.[A-Za-z0-9]+$")
JSON_FENCE = re.compile(r"```(?:json)?\s*\n(.*?)```", re.DOTALL)

SKIPPED_DIRS = {"node_modules", "dist", ".git"}
CODE_SUFFIXES = (".ts", ".js", ".json")


# ============================================================================
# EXCEPTIONS
# ============================================================================

class GenerationError(Exception):
    """Raised when the provider cannot produce a response."""
    pass


class ValidationResponseError(GenerationError):
    """Raised when a validation verdict cannot be parsed."""
    pass


# ============================================================================
# PROVIDER
# ============================================================================

class GenerationProvider(ABC):
    """Turns a prompt into text."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        model: GenerationModel,
        max_tokens: int,
        temperature: float = 0.0,
    ) -> str:
        """Send one prompt and return the text of the reply."""

    async def close(self) -> None:
        """Release transport resources."""
        return None


class AnthropicGenerationProvider(GenerationProvider):
    """
    Provider backed by the Anthropic Messages API.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com",
        api_version: str = "2023-06-01",
        timeout_seconds: float = 300.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize provider.

        Args:
            api_key: API key sent as x-api-key
            base_url: API root
            api_version: anthropic-version header value
            timeout_seconds: Per-request timeout
            client: Pre-built client (tests inject a MockTransport client)
        """
        self._headers = {
            "x-api-key": api_key,
            "anthropic-version": api_version,
            "content-type": "application/json",
        }
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
        )

    @classmethod
    def from_defaults(
        cls,
        defaults: GenerationDefaults,
        api_key: Optional[str] = None,
    ) -> "AnthropicGenerationProvider":
        key = api_key or defaults.api_key
        if not key:
            raise ValueError("An API key is required to configure the generation provider")
        return cls(
            api_key=key,
            base_url=defaults.api_base_url,
            api_version=defaults.api_version,
            timeout_seconds=defaults.request_timeout_seconds,
        )

    async def complete(
        self,
        prompt: str,
        *,
        model: GenerationModel,
        max_tokens: int,
        temperature: float = 0.0,
    ) -> str:
        payload = {
            "model": model.value,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = await self._client.post("/v1/messages", json=payload, headers=self._headers)
            response.raise_for_status()
            data: Dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"Generation request failed with HTTP {e.response.status_code}: "
                f"{e.response.text[:500]}"
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Generation request failed: {e}") from e
        except ValueError as e:
            raise GenerationError(f"Generation response was not JSON: {e}") from e

        return "\n".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )

    async def close(self) -> None:
        await self._client.aclose()


# ============================================================================
# GENERATED FILES
# ============================================================================

@dataclass
class GeneratedFile:
    """A file parsed out of a response, or collected from disk."""
    path: str
    content: str


def normalize_generated_path(raw: str) -> Optional[str]:
    """
    Normalize a path announced in a fenced block so it lives under src/.

    Returns:
        Relative posix path, or None if the line is not a file path
    """
    path = raw.strip().strip("`'\"").replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    path = path.lstrip("/")
    if not path or not PATH_LIKE.match(path):
        return None
    return path if path.startswith("src/") else f"src/{path}"


def _blocks(pattern: "re.Pattern[str]", text: str) -> List[GeneratedFile]:
    files: List[GeneratedFile] = []
    for match in pattern.finditer(text):
        path = normalize_generated_path(match.group(1))
        if path is None:
            logger.debug(f"Skipping code block without a file path: {match.group(1)[:80]!r}")
            continue
        files.append(GeneratedFile(path=path, content=match.group(2).strip()))
    return files


def parse_generated_files(text: str) -> List[GeneratedFile]:
    """
    Extract every fenced block that names a file path.

    The path is read from the block's first line, or failing that from a
    "File: <path>" header line directly above the fence.
    """
    return _blocks(FILE_BLOCK, text) or _blocks(HEADED_BLOCK, text)


def write_generated_files(output_path: Union[str, Path], text: str) -> List[str]:
    """
    Write the files contained in a generation response.

    A response without fences becomes the entry point as a whole. A response
    whose fences name no path gets its first block written as the entry point.
    Paths that resolve outside the output directory are skipped.

    Returns:
        Relative paths written
    """
    root = Path(output_path).resolve()

    if "```" in text:
        files = parse_generated_files(text)
        if not files:
            fence = CODE_FENCE.search(text)
            if fence:
                logger.warning(f"No file paths in response; writing first block to {ENTRY_POINT}")
                files = [GeneratedFile(path=ENTRY_POINT, content=fence.group(1).strip())]
    else:
        files = [GeneratedFile(path=ENTRY_POINT, content=text)]

    written: List[str] = []
    for generated in files:
        target = (root / generated.path).resolve()
        if not target.is_relative_to(root):
            logger.warning(f"Refusing to write outside output directory: {generated.path}")
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generated.content, encoding="utf-8")
        written.append(generated.path)
    return written


def collect_code_files(output_path: Union[str, Path]) -> List[GeneratedFile]:
    """Collect .ts/.js/.json files for review, skipping build and vendor dirs."""
    root = Path(output_path)
    files: List[GeneratedFile] = []
    for current, dirs, filenames in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRS)
        for filename in sorted(filenames):
            if not filename.endswith(CODE_SUFFIXES):
                continue
            full_path = Path(current) / filename
            files.append(GeneratedFile(
                path=full_path.relative_to(root).as_posix(),
                content=full_path.read_text(encoding="utf-8", errors="replace"),
            ))
    return files


# ============================================================================
# VALIDATION VERDICT
# ============================================================================

class ValidationVerdict(BaseModel):
    """Structured production-readiness judgment."""
    score: float = Field(..., ge=0, le=100)
    production_ready: bool
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


def parse_validation_response(text: str) -> ValidationVerdict:
    """
    Parse a validation reply.

    Accepts bare JSON or a single ```json fenced block.

    Raises:
        ValidationResponseError on malformed replies
    """
    fenced = JSON_FENCE.search(text)
    body = fenced.group(1) if fenced else text.strip()
    try:
        return ValidationVerdict.model_validate(json.loads(body))
    except json.JSONDecodeError as e:
        raise ValidationResponseError(f"Validation response is not valid JSON: {e}") from e
    except ValidationError as e:
        raise ValidationResponseError(
            f"Validation response has unexpected shape: {e.error_count()} error(s)"
        ) from e


__all__ = [
    "GenerationError",
    "ValidationResponseError",
    "GenerationProvider",
    "AnthropicGenerationProvider",
    "GeneratedFile",
    "normalize_generated_path",
    "parse_generated_files",
    "write_generated_files",
    "collect_code_files",
    "ValidationVerdict",
    "parse_validation_response",
]

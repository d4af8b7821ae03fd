# ============================================================================
# GENERATION PROMPTS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Service - Prompt text for generate and validate requests
# PURPOSE: Build the initial, iteration and validation prompts
# CREATED: 18 OCT 2026
# ============================================================================
"""
Generation Prompts

Plain string builders. The generate phase uses the initial prompt on the
first iteration and the iteration prompt afterwards; the iteration prompt
only carries the ledger entries of the immediately preceding iteration.
"""

from typing import Iterable, List, Sequence

from core.models import CreationJob, IterationError, PluginSpecification
from services.generation import GeneratedFile

INITIAL_REQUIREMENTS = (
    "Create src/index.ts that exports the plugin object",
    "Implement all specified components (actions, providers, services, evaluators)",
    "Follow ElizaOS plugin structure and conventions",
    "Include proper TypeScript types",
    "Add comprehensive error handling",
    "Create unit tests for each component in src/__tests__/",
    "Ensure all imports use @elizaos/core",
    "No stubs or incomplete implementations",
    "All code must be production-ready",
)

FIX_REQUIREMENTS = (
    "Addressing each specific error mentioned",
    "Ensuring the code compiles (TypeScript)",
    "Fixing any linting issues",
    "Making sure all tests pass",
    "Following ElizaOS conventions",
)

REVIEW_QUESTIONS = (
    "Does it implement all specified features?",
    "Is the code complete without stubs?",
    "Does it follow ElizaOS conventions?",
    "Is error handling comprehensive?",
    "Are the tests adequate?",
    "Is it production ready?",
)

VERDICT_SHAPE = """{
  "score": 0-100,
  "production_ready": boolean,
  "issues": ["list of issues"],
  "suggestions": ["list of improvements"]
}"""


def _numbered(items: Iterable[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def specification_json(specification: PluginSpecification) -> str:
    """Specification as indented JSON, in its wire field names."""
    return specification.model_dump_json(indent=2, by_alias=True, exclude_none=True)


def build_initial_prompt(specification: PluginSpecification) -> str:
    """Prompt for the first iteration: the specification only."""
    sections: List[str] = [
        "You are creating an ElizaOS plugin with the following specification:",
        "\n".join([
            f"Name: {specification.name}",
            f"Description: {specification.description}",
            f"Version: {specification.version or '1.0.0'}",
        ]),
    ]

    for kind in ("actions", "providers", "services", "evaluators"):
        items = getattr(specification, kind) or []
        if items:
            lines = "\n".join(f"- {item.name}: {item.description}" for item in items)
            sections.append(f"{kind.capitalize()}:\n{lines}")

    if specification.dependencies:
        lines = "\n".join(f"- {pkg}@{ver}" for pkg, ver in specification.dependencies.items())
        sections.append(f"Dependencies:\n{lines}")

    if specification.environment_variables:
        lines = "\n".join(
            f"- {var.name}{' (required)' if var.required else ''}: {var.description}"
            for var in specification.environment_variables
        )
        sections.append(f"Environment variables:\n{lines}")

    sections.append(
        "Create a complete ElizaOS plugin implementation following these requirements:\n\n"
        + _numbered(INITIAL_REQUIREMENTS)
    )
    sections.append("Provide the complete implementation with file paths clearly marked.")
    return "\n\n".join(sections)


def build_iteration_prompt(job: CreationJob, errors: Sequence[IterationError]) -> str:
    """Prompt for a retry: previous failures plus the specification."""
    summary = "\n".join(f"\nPhase: {e.phase}\nError: {e.error}\n" for e in errors)
    return (
        f"The ElizaOS plugin {job.specification.name} has the following errors "
        f"that need to be fixed:\n\n"
        f"{summary}\n\n"
        f"Current plugin specification:\n"
        f"{specification_json(job.specification)}\n\n"
        f"Please fix all the errors by:\n"
        f"{_numbered(FIX_REQUIREMENTS)}\n\n"
        f"Provide the updated code with file paths clearly marked."
    )


def build_validation_prompt(
    specification: PluginSpecification,
    files: Sequence[GeneratedFile],
) -> str:
    """Prompt for the production-readiness review."""
    listing = "\n".join(
        f"\nFile: {f.path}\n```typescript\n{f.content}\n```\n" for f in files
    )
    return (
        f"Review this ElizaOS plugin for production readiness:\n\n"
        f"Plugin: {specification.name}\n"
        f"Specification: {specification_json(specification)}\n\n"
        f"Generated Code:\n{listing}\n\n"
        f"Evaluate:\n{_numbered(REVIEW_QUESTIONS)}\n\n"
        f"Respond with JSON:\n{VERDICT_SHAPE}"
    )


__all__ = [
    "specification_json",
    "build_initial_prompt",
    "build_iteration_prompt",
    "build_validation_prompt",
]

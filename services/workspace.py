# ============================================================================
# WORKSPACE MANAGER
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Service - Per-job output directory preparation
# PURPOSE: Copy the plugin-starter template or write a fallback scaffold
# CREATED: 18 OCT 2026
# ============================================================================
"""
Workspace Manager

Prepares a job's output directory before the first generation:

    use_template=True and a template is found:
        copy the template (skipping node_modules, .git, dist, .turbo),
        then merge the specification into package.json
    otherwise:
        write a minimal TypeScript scaffold (package.json, tsconfig.json,
        .eslintrc.json, vitest.config.ts, src/, src/__tests__/)

Which path was taken is reported through the job log. Filesystem work runs
in the default executor so the event loop is not blocked.
"""

import asyncio
import json
import shutil
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from core.logging import get_logger
from core.models import CreationJob, PluginSpecification

logger = get_logger(__name__)

DEFAULT_VERSION = "1.0.0"
IGNORED_TEMPLATE_ENTRIES = ("node_modules", ".git", "dist", ".turbo")

TSCONFIG: Dict[str, Any] = {
    "compilerOptions": {
        "target": "ES2022",
        "module": "commonjs",
        "lib": ["ES2022"],
        "outDir": "./dist",
        "rootDir": "./src",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
        "declaration": True,
        "declarationMap": True,
        "sourceMap": True,
        "resolveJsonModule": True,
    },
    "include": ["src/**/*"],
    "exclude": ["node_modules", "dist", "**/*.test.ts"],
}

ESLINT_CONFIG: Dict[str, Any] = {
    "parser": "@typescript-eslint/parser",
    "extends": ["eslint:recommended", "plugin:@typescript-eslint/recommended"],
    "env": {"node": True, "es2022": True},
    "rules": {
        "@typescript-eslint/no-explicit-any": "warn",
        "@typescript-eslint/no-unused-vars": ["error", {"argsIgnorePattern": "^_"}],
    },
}

VITEST_CONFIG = """import { defineConfig } from 'vitest/config';

export default defineConfig({
    test: {
        globals: true,
        environment: 'node',
        coverage: {
            reporter: ['text', 'json', 'html']
        }
    }
});
"""


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _environment_variables(specification: PluginSpecification) -> list:
    return [
        var.model_dump(by_alias=True)
        for var in (specification.environment_variables or [])
    ]


def fallback_package_json(specification: PluginSpecification) -> Dict[str, Any]:
    """package.json for a workspace built without a template."""
    return {
        "name": specification.name,
        "version": specification.version or DEFAULT_VERSION,
        "description": specification.description,
        "main": "dist/index.js",
        "types": "dist/index.d.ts",
        "scripts": {
            "build": "tsc",
            "test": "vitest run",
            "lint": "eslint src/**/*.ts",
            "dev": "tsc --watch",
        },
        "dependencies": {
            "@elizaos/core": "^1.0.0",
            **specification.dependencies,
        },
        "devDependencies": {
            "@types/node": "^20.0.0",
            "typescript": "^5.0.0",
            "vitest": "^1.0.0",
            "eslint": "^8.0.0",
            "@typescript-eslint/parser": "^6.0.0",
            "@typescript-eslint/eslint-plugin": "^6.0.0",
        },
        "elizaos": {
            "environmentVariables": _environment_variables(specification),
        },
    }


def merge_package_json(
    package: Dict[str, Any],
    specification: PluginSpecification,
) -> Dict[str, Any]:
    """Overlay specification metadata onto a template's package.json."""
    merged = dict(package)
    merged["name"] = specification.name
    merged["version"] = specification.version or DEFAULT_VERSION
    merged["description"] = specification.description

    if specification.dependencies:
        merged["dependencies"] = {
            **(package.get("dependencies") or {}),
            **specification.dependencies,
        }

    if specification.environment_variables:
        merged["elizaos"] = {
            **(package.get("elizaos") or {}),
            "environmentVariables": _environment_variables(specification),
        }
    return merged


class WorkspaceManager:
    """
    Populates job output directories.
    """

    def __init__(self, template_dirs: Sequence[str] = ()):
        """
        Initialize workspace manager.

        Args:
            template_dirs: Candidate template locations, first existing wins.
                Relative entries are resolved against the working directory.
        """
        self.template_dirs = [Path(p).expanduser() for p in template_dirs]

    def find_template(self) -> Optional[Path]:
        """First configured template directory that exists."""
        for candidate in self.template_dirs:
            if candidate.is_dir():
                return candidate
        return None

    async def prepare(self, job: CreationJob, use_template: bool = True) -> bool:
        """
        Populate the job's output directory.

        Returns:
            True if the template was used, False for the fallback scaffold
        """
        loop = asyncio.get_running_loop()
        output_path = Path(job.output_path)
        output_path.mkdir(parents=True, exist_ok=True)

        template = self.find_template() if use_template else None
        if template is not None:
            job.log("Using plugin-starter template")
            await loop.run_in_executor(None, self.copy_template, template, output_path, job.specification)
            return True

        if use_template:
            job.log("Template not found, using fallback setup")
        await loop.run_in_executor(None, self.write_fallback, output_path, job.specification)
        return False

    def copy_template(
        self,
        template: Path,
        output_path: Path,
        specification: PluginSpecification,
    ) -> None:
        shutil.copytree(
            template,
            output_path,
            ignore=shutil.ignore_patterns(*IGNORED_TEMPLATE_ENTRIES),
            dirs_exist_ok=True,
        )

        package_path = output_path / "package.json"
        package: Dict[str, Any] = {}
        if package_path.exists():
            package = json.loads(package_path.read_text(encoding="utf-8"))
        else:
            logger.warning(f"Template {template} has no package.json; creating one")
        _write_json(package_path, merge_package_json(package, specification))

    def write_fallback(self, output_path: Path, specification: PluginSpecification) -> None:
        _write_json(output_path / "package.json", fallback_package_json(specification))
        _write_json(output_path / "tsconfig.json", TSCONFIG)
        _write_json(output_path / ".eslintrc.json", ESLINT_CONFIG)
        (output_path / "vitest.config.ts").write_text(VITEST_CONFIG, encoding="utf-8")
        (output_path / "src" / "__tests__").mkdir(parents=True, exist_ok=True)


__all__ = [
    "WorkspaceManager",
    "fallback_package_json",
    "merge_package_json",
]

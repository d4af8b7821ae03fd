# ============================================================================
# WORKSPACE MANAGER TESTS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Tests - Output directory preparation
# PURPOSE: Verify template copy, package.json merge and fallback scaffold
# CREATED: 18 OCT 2026
# ============================================================================
"""
Workspace Manager Tests

Run with:
    pytest tests/test_workspace.py -v
"""

import asyncio
import json

import pytest

from core.models import CreationJob, PluginSpecification
from services.workspace import WorkspaceManager, merge_package_json


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def specification():
    return PluginSpecification.model_validate({
        "name": "@acme/plugin-weather",
        "description": "Weather plugin",
        "dependencies": {"axios": "^1.6.0"},
        "environmentVariables": [{"name": "WEATHER_KEY", "description": "API key"}],
    })


@pytest.fixture
def template_dir(tmp_path):
    template = tmp_path / "plugin-starter"
    (template / "src").mkdir(parents=True)
    (template / "src" / "index.ts").write_text("export default {};")
    (template / "node_modules" / "left-pad").mkdir(parents=True)
    (template / ".turbo").mkdir()
    (template / "package.json").write_text(json.dumps({
        "name": "plugin-starter",
        "version": "0.0.1",
        "scripts": {"build": "tsup"},
        "dependencies": {"@elizaos/core": "^1.0.0"},
        "elizaos": {"pluginType": "action"},
    }))
    return template


def _make_job(tmp_path, specification) -> CreationJob:
    return CreationJob(
        job_id="job-ws",
        specification=specification,
        output_path=str(tmp_path / "data" / "plugins" / "job-ws" / "acme-plugin-weather"),
    )


# ============================================================================
# TESTS
# ============================================================================

class TestTemplateWorkspace:

    def test_template_copied_and_merged(self, tmp_path, specification, template_dir):
        job = _make_job(tmp_path, specification)
        manager = WorkspaceManager([str(tmp_path / "missing"), str(template_dir)])

        used_template = asyncio.run(manager.prepare(job, use_template=True))

        output = tmp_path / "data" / "plugins" / "job-ws" / "acme-plugin-weather"
        assert used_template is True
        assert (output / "src" / "index.ts").exists()
        assert not (output / "node_modules").exists()
        assert not (output / ".turbo").exists()

        package = json.loads((output / "package.json").read_text())
        assert package["name"] == "@acme/plugin-weather"
        assert package["version"] == "1.0.0"
        assert package["scripts"] == {"build": "tsup"}
        assert package["dependencies"] == {"@elizaos/core": "^1.0.0", "axios": "^1.6.0"}
        assert package["elizaos"]["pluginType"] == "action"
        assert package["elizaos"]["environmentVariables"][0]["name"] == "WEATHER_KEY"
        assert any("Using plugin-starter template" in line for line in job.logs)

    def test_missing_template_falls_back(self, tmp_path, specification):
        job = _make_job(tmp_path, specification)
        manager = WorkspaceManager([str(tmp_path / "missing")])

        used_template = asyncio.run(manager.prepare(job, use_template=True))

        assert used_template is False
        assert any("Template not found" in line for line in job.logs)


class TestFallbackWorkspace:

    def test_scaffold_written(self, tmp_path, specification, template_dir):
        job = _make_job(tmp_path, specification)
        manager = WorkspaceManager([str(template_dir)])

        used_template = asyncio.run(manager.prepare(job, use_template=False))

        output = tmp_path / "data" / "plugins" / "job-ws" / "acme-plugin-weather"
        assert used_template is False
        for name in ("package.json", "tsconfig.json", ".eslintrc.json", "vitest.config.ts"):
            assert (output / name).is_file(), name
        assert (output / "src" / "__tests__").is_dir()

        package = json.loads((output / "package.json").read_text())
        assert package["scripts"]["build"] == "tsc"
        assert package["scripts"]["test"] == "vitest run"
        assert package["scripts"]["lint"] == "eslint src/**/*.ts"
        assert package["dependencies"]["axios"] == "^1.6.0"
        assert not any("Template not found" in line for line in job.logs)


class TestMergePackageJson:

    def test_existing_keys_kept_without_spec_extras(self):
        spec = PluginSpecification(name="@a/b", description="d", version="2.0.0")
        merged = merge_package_json({"dependencies": {"x": "1"}, "private": True}, spec)
        assert merged["version"] == "2.0.0"
        assert merged["dependencies"] == {"x": "1"}
        assert merged["private"] is True
        assert "elizaos" not in merged

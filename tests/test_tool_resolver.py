# ============================================================================
# TOOL RESOLVER TESTS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Tests - Package manager resolution
# PURPOSE: Verify preference order, argument mapping and fallback
# CREATED: 18 OCT 2026
# ============================================================================
"""
Tool Resolver Tests

Fake package managers are empty executables in a temporary directory that
serves as the search PATH.

Run with:
    pytest tests/test_tool_resolver.py -v
"""

import os
import stat

import pytest

from worker.tools import KNOWN_MANAGERS, ToolResolver


def _install_fake_tools(directory, *names):
    for name in names:
        path = directory / name
        path.write_text("#!/bin/sh\nexit 0\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(directory)


@pytest.fixture
def bin_dir(tmp_path):
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory


@pytest.mark.skipif(os.name == "nt", reason="POSIX executables")
class TestResolution:

    def test_first_available_manager_wins(self, bin_dir):
        search_path = _install_fake_tools(bin_dir, "yarn", "npm")
        resolver = ToolResolver(search_path=search_path)

        resolved = resolver.resolve("npm", ["run", "build"])
        assert resolved.program == "yarn"
        assert resolved.args == ["run", "build"]
        assert resolved.tool == "yarn"

    def test_preference_order_is_configurable(self, bin_dir):
        search_path = _install_fake_tools(bin_dir, "bun", "pnpm")
        resolver = ToolResolver(preference=("pnpm", "bun"), search_path=search_path)
        assert resolver.resolve("npm", ["install"]).program == "pnpm"

    def test_available_tools_in_preference_order(self, bin_dir):
        search_path = _install_fake_tools(bin_dir, "npm", "bun")
        resolver = ToolResolver(search_path=search_path)
        assert resolver.available_tools() == ["bun", "npm"]

    def test_no_manager_found_returns_input_unchanged(self, bin_dir):
        resolver = ToolResolver(search_path=str(bin_dir))
        resolved = resolver.resolve("npm", ["test"])
        assert resolved.program == "npm"
        assert resolved.args == ["test"]
        assert resolved.tool is None

    def test_other_commands_not_rewritten(self, bin_dir):
        search_path = _install_fake_tools(bin_dir, "bun")
        resolver = ToolResolver(search_path=search_path)
        resolved = resolver.resolve("tsc", ["--noEmit"])
        assert resolved.argv == ["tsc", "--noEmit"]
        assert resolved.tool is None


class TestArgumentMapping:

    @pytest.mark.parametrize("args,expected", [
        (["install"], ["install"]),
        (["run", "lint"], ["run", "lint"]),
        (["test"], ["test"]),
        (["exec", "tsc"], ["exec", "tsc"]),
        ([], []),
    ])
    def test_map_args(self, args, expected):
        assert KNOWN_MANAGERS["bun"].map_args(args) == expected

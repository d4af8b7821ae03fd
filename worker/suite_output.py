# ============================================================================
# TEST SUITE OUTPUT PARSING
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Test runner summary extraction
# PURPOSE: Turn raw test runner output into pass/fail/skip counts
# CREATED: 18 OCT 2026
# ============================================================================
"""
Test Output Parsing

Runner output is free text, so extraction is regex based and tied to a
particular runner's summary format. Each runner gets its own parser class;
the pipeline depends only on ``SuiteOutputParser.parse``.

Registered parsers:
    vitest  - "Tests  3 passed | 1 failed (4)" / "Duration  1.52s"
    pytest  - "=== 3 passed, 1 failed in 0.12s ==="
"""

import re
from abc import ABC, abstractmethod
from typing import ClassVar, Dict, List, Optional, Type

from core.models.job import SuiteFailure, SuiteResult

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def strip_ansi(text: str) -> str:
    """Remove terminal color codes."""
    return _ANSI_ESCAPE.sub("", text)


class SuiteOutputParser(ABC):
    """Extracts a SuiteResult from one runner's output."""

    name: ClassVar[str] = ""

    @abstractmethod
    def parse(self, output: str) -> SuiteResult:
        """Parse runner output. Missing counts default to zero."""


def _count(pattern: "re.Pattern[str]", text: str) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


class VitestOutputParser(SuiteOutputParser):
    """Parser for vitest's end-of-run summary."""

    name = "vitest"

    PASSED = re.compile(r"(\d+) passed")
    FAILED = re.compile(r"(\d+) failed")
    SKIPPED = re.compile(r"(\d+) skipped")
    DURATION = re.compile(r"Duration\s+(\d+(?:\.\d+)?)(ms|s)\b")
    TESTS_LINE = re.compile(r"^\s*Tests\s+(.+)$", re.MULTILINE)
    FAILURE = re.compile(r"FAIL\s+(.+?)\s+[›>]\s+(.+?)(?:\n|$)")

    def parse(self, output: str) -> SuiteResult:
        text = strip_ansi(output)

        # "Test Files  1 passed" precedes "Tests  3 passed"; prefer the latter
        tests_line = self.TESTS_LINE.search(text)
        counts_source = tests_line.group(1) if tests_line else text

        duration = 0.0
        duration_match = self.DURATION.search(text)
        if duration_match:
            duration = float(duration_match.group(1))
            if duration_match.group(2) == "ms":
                duration /= 1000

        failed = _count(self.FAILED, counts_source)
        failures: List[SuiteFailure] = []
        if failed > 0:
            for match in self.FAILURE.finditer(text):
                failures.append(SuiteFailure(test=f"{match.group(1)} › {match.group(2)}"))

        return SuiteResult(
            passed=_count(self.PASSED, counts_source),
            failed=failed,
            skipped=_count(self.SKIPPED, counts_source),
            duration=duration,
            failures=failures,
        )


class PytestOutputParser(SuiteOutputParser):
    """Parser for pytest's short summary line."""

    name = "pytest"

    SUMMARY_LINE = re.compile(r"^=+ (.+? in \d+(?:\.\d+)?s.*?) =+$", re.MULTILINE)
    PASSED = re.compile(r"(\d+) passed")
    FAILED = re.compile(r"(\d+) failed")
    ERRORS = re.compile(r"(\d+) errors?\b")
    SKIPPED = re.compile(r"(\d+) skipped")
    DURATION = re.compile(r"in (\d+(?:\.\d+)?)s")
    FAILURE = re.compile(r"^(?:FAILED|ERROR) (\S+)(?: - (.*))?$", re.MULTILINE)

    def parse(self, output: str) -> SuiteResult:
        text = strip_ansi(output)
        summaries = self.SUMMARY_LINE.findall(text)
        summary = summaries[-1] if summaries else text

        duration_match = self.DURATION.search(summary)
        failures = [
            SuiteFailure(test=m.group(1), error=m.group(2) or "See full output for details")
            for m in self.FAILURE.finditer(text)
        ]

        return SuiteResult(
            passed=_count(self.PASSED, summary),
            # collection errors fail the run just like failed tests
            failed=_count(self.FAILED, summary) + _count(self.ERRORS, summary),
            skipped=_count(self.SKIPPED, summary),
            duration=float(duration_match.group(1)) if duration_match else 0.0,
            failures=failures,
        )


# ============================================================================
# REGISTRY
# ============================================================================

_PARSERS: Dict[str, Type[SuiteOutputParser]] = {
    VitestOutputParser.name: VitestOutputParser,
    PytestOutputParser.name: PytestOutputParser,
}


def get_parser(name: Optional[str] = None) -> SuiteOutputParser:
    """
    Get a parser by runner name (vitest when omitted).

    Raises:
        KeyError if the runner has no parser
    """
    key = name or VitestOutputParser.name
    if key not in _PARSERS:
        raise KeyError(f"No test output parser for runner '{key}'. Known: {sorted(_PARSERS)}")
    return _PARSERS[key]()


__all__ = [
    "SuiteOutputParser",
    "VitestOutputParser",
    "PytestOutputParser",
    "get_parser",
    "strip_ansi",
]

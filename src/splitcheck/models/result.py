"""Result data models for test-runner invocations.

These models encode what a single external runner invocation produced
and what the parsers extracted from it: the raw process result, the
per-test outcomes, the pass/fail summary, and coverage percentages.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class RunResult(BaseModel):
    """Raw outcome of one external process invocation.

    A non-zero exit code is an ordinary value here, not an error.
    ``combined_output`` holds both streams in the order chunks arrived.
    """

    model_config = {"frozen": True}

    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    combined_output: str = ""
    duration_seconds: float = 0.0
    timed_out: bool = False


class TestStatus(str, Enum):
    """Status of a single test as reported by the runner."""

    __test__ = False

    PASS = "PASS"
    FAIL = "FAIL"


class TestOutcome(BaseModel):
    """One per-test line recovered from runner output."""

    __test__ = False

    model_config = {"frozen": True}

    name: str
    status: TestStatus
    duration_ms: float | None = None


ParseSource = Literal["json", "text", "oracle", "none"]


class TestSummary(BaseModel):
    """Pass/fail counts for one run.

    ``success`` is true only when nothing failed and at least one test
    passed, so an empty or silent suite never counts as passing.
    """

    __test__ = False

    model_config = {"frozen": True}

    passed: int = 0
    failed: int = 0
    total: int = 0
    success: bool = False
    source: ParseSource = "none"
    parsed: bool = False

    @classmethod
    def from_counts(
        cls,
        passed: int,
        failed: int,
        source: ParseSource = "text",
    ) -> TestSummary:
        """Build a summary whose total and success follow from the counts."""
        return cls(
            passed=passed,
            failed=failed,
            total=passed + failed,
            success=failed == 0 and passed > 0,
            source=source,
            parsed=source != "none",
        )

    @classmethod
    def empty(cls) -> TestSummary:
        """Summary for output that held no recognizable results."""
        return cls()


class ParsedTestRun(BaseModel):
    """Summary plus ordered per-test outcomes for one run."""

    summary: TestSummary = Field(default_factory=TestSummary.empty)
    tests: list[TestOutcome] = Field(default_factory=list)


CoverageSource = Literal["summary", "table", "labels", "none"]


class CoverageMetrics(BaseModel):
    """Coverage percentages, each in [0, 100].

    Missing figures are 0, never None, so comparisons stay total.
    """

    model_config = {"frozen": True}

    statements: float = Field(default=0.0, ge=0.0, le=100.0)
    branches: float = Field(default=0.0, ge=0.0, le=100.0)
    functions: float = Field(default=0.0, ge=0.0, le=100.0)
    lines: float = Field(default=0.0, ge=0.0, le=100.0)
    source: CoverageSource = "none"
    parsed: bool = False

    @property
    def is_full(self) -> bool:
        """True when statement and branch coverage are both 100%."""
        return self.statements == 100 and self.branches == 100

    def details(self) -> str:
        return (
            f"Statements: {self.statements:g}%, Branches: {self.branches:g}%, "
            f"Functions: {self.functions:g}%, Lines: {self.lines:g}%"
        )

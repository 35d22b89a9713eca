"""Variant data models for the mutation-style oracle.

A variant is one candidate implementation of the bill splitter, tagged
with the outcome the suite-under-test is expected to produce for it.
The oracle turns each variant run into a VariantCheck and collects them
into an OracleResult.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from splitcheck.models.result import (
    CoverageMetrics,
    ParsedTestRun,
    TestOutcome,
    TestStatus,
    TestSummary,
)


class ExpectedOutcome(str, Enum):
    """What the suite must do when run against a variant."""

    must_pass = "must_pass"
    must_fail = "must_fail"


class ImplementationVariant(BaseModel):
    """A statically declared implementation the suite is run against."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str
    source: str
    expected: ExpectedOutcome
    defect: str | None = None

    @property
    def label(self) -> str:
        if self.expected == ExpectedOutcome.must_pass:
            return f"{self.name} must pass the suite"
        return f"{self.name} must fail the suite ({self.defect or 'unnamed defect'})"


class VariantCheck(BaseModel):
    """Outcome of one oracle assertion."""

    model_config = {"extra": "forbid"}

    name: str
    expected: ExpectedOutcome
    defect: str | None = None
    exit_code: int | None = None
    passed: int = 0
    failed: int = 0
    timed_out: bool = False
    satisfied: bool
    message: str = ""


class OracleResult(BaseModel):
    """All variant checks of one oracle batch plus the coverage check."""

    model_config = {"extra": "forbid"}

    checks: list[VariantCheck] = Field(default_factory=list)
    coverage_check: VariantCheck | None = None
    coverage: CoverageMetrics | None = None
    restored: bool = True

    @property
    def all_checks(self) -> list[VariantCheck]:
        checks = list(self.checks)
        if self.coverage_check is not None:
            checks.append(self.coverage_check)
        return checks

    @property
    def satisfied(self) -> bool:
        checks = self.all_checks
        return bool(checks) and all(c.satisfied for c in checks)

    def as_parsed_run(self) -> ParsedTestRun:
        """Express the oracle batch as a test run, one outcome per check."""
        tests = [
            TestOutcome(
                name=_describe_check(check),
                status=TestStatus.PASS if check.satisfied else TestStatus.FAIL,
            )
            for check in self.all_checks
        ]
        passed = sum(1 for t in tests if t.status == TestStatus.PASS)
        summary = TestSummary.from_counts(
            passed=passed,
            failed=len(tests) - passed,
            source="oracle" if tests else "none",
        )
        return ParsedTestRun(summary=summary, tests=tests)


def _describe_check(check: VariantCheck) -> str:
    if check.name == "coverage":
        return "reference implementation reaches full statement and branch coverage"
    if check.expected == ExpectedOutcome.must_pass:
        return f"suite passes for reference implementation: {check.name}"
    return f"suite fails for broken implementation: {check.name}"

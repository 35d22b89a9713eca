"""Requirement checklist and final verdict.

Seven functional requirements are gated on both suite runs succeeding;
the coverage requirement is gated on the coverage figures alone.
"""

from __future__ import annotations

from splitcheck.models.report import REQUIREMENT_TITLES, RequirementChecklist
from splitcheck.models.result import CoverageMetrics, TestSummary

COVERAGE_REQUIREMENT = "req8_code_coverage"

OUTCOME_GATED_REQUIREMENTS: tuple[str, ...] = tuple(
    req_id for req_id in REQUIREMENT_TITLES if req_id != COVERAGE_REQUIREMENT
)


def check_requirements(
    implementation: TestSummary,
    meta: TestSummary,
    coverage: CoverageMetrics,
) -> RequirementChecklist:
    """Map run outcomes and coverage onto the named requirements.

    Args:
        implementation: Summary of the suite run against the reference.
        meta: Summary of the variant oracle batch.
        coverage: Coverage measured during the implementation run.

    Returns:
        RequirementChecklist with one boolean per requirement.
    """
    runs_passed = implementation.success and meta.success
    values = {req_id: runs_passed for req_id in OUTCOME_GATED_REQUIREMENTS}
    values[COVERAGE_REQUIREMENT] = coverage.is_full
    return RequirementChecklist(**values)


def compute_verdict(
    implementation: TestSummary,
    meta: TestSummary,
    coverage: CoverageMetrics,
) -> bool:
    """Strict conjunction: both runs succeeded and coverage is full."""
    return implementation.success and meta.success and coverage.is_full


def format_success_rate(summary: TestSummary) -> str:
    """Passed share of the implementation run, e.g. ``"96.0%"``."""
    return f"{summary.passed / max(summary.total, 1) * 100:.1f}%"

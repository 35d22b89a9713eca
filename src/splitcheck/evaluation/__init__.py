"""Evaluation package for the variant oracle, requirements, and reporting.

Provides the mutation-style oracle, the requirement checklist with the
strict final verdict, and the pipeline that assembles the report.
"""

from __future__ import annotations

from splitcheck.evaluation.oracle import (
    EXPECTATION_CHECKS,
    OracleViolation,
    VariantOracle,
    check_coverage,
    check_expectation,
)
from splitcheck.evaluation.pipeline import EvaluationPipeline, build_report
from splitcheck.evaluation.requirements import (
    check_requirements,
    compute_verdict,
    format_success_rate,
)

__all__ = [
    "EXPECTATION_CHECKS",
    "EvaluationPipeline",
    "OracleViolation",
    "VariantOracle",
    "build_report",
    "check_coverage",
    "check_expectation",
    "check_requirements",
    "compute_verdict",
    "format_success_rate",
]

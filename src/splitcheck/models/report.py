"""Evaluation report models.

The report is the terminal artifact of an evaluation: built once,
written once as JSON, and read back by ``splitcheck report``. Field
names are the persisted JSON contract.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from splitcheck.models.result import TestOutcome
from splitcheck.models.variant import VariantCheck

TOTAL_REQUIREMENTS = 8

REQUIREMENT_TITLES: dict[str, str] = {
    "req1_penny_perfect_reconciliation": "Penny-perfect reconciliation",
    "req2_remainder_allocation": "Remainder allocation",
    "req3_percentage_boundary": "Percentage boundaries",
    "req4_invalid_input_resilience": "Invalid input resilience",
    "req5_floating_point_prevention": "Floating point drift prevention",
    "req6_happy_path": "Happy path",
    "req7_lead_payer_logic": "Lead payer logic",
    "req8_code_coverage": "100% statement and branch coverage",
}


class EvaluationMetadata(BaseModel):
    evaluation_id: str
    timestamp: str
    evaluator: str
    project: str
    version: str


class EnvironmentInfo(BaseModel):
    runtime_version: str
    platform: str
    architecture: str


class CoverageReport(BaseModel):
    """Coverage section, flattened for readers of the JSON file."""

    statements_percent: float
    branches_percent: float
    functions_percent: float
    lines_percent: float
    is_100_percent: bool
    meets_requirement_8: bool
    details: str
    source: str = "none"
    parsed: bool = False


class TestRunSection(BaseModel):
    """Counts and outcomes of one suite run (implementation or meta)."""

    __test__ = False

    description: str
    passed: int
    failed: int
    total: int
    success: bool
    exit_code: int | None
    timed_out: bool = False
    parse_source: str = "none"
    tests: list[TestOutcome] = Field(default_factory=list)
    variants: list[VariantCheck] | None = None


class RequirementChecklist(BaseModel):
    """The fixed set of named requirements, each satisfied or not."""

    req1_penny_perfect_reconciliation: bool
    req2_remainder_allocation: bool
    req3_percentage_boundary: bool
    req4_invalid_input_resilience: bool
    req5_floating_point_prevention: bool
    req6_happy_path: bool
    req7_lead_payer_logic: bool
    req8_code_coverage: bool

    @property
    def met_count(self) -> int:
        return sum(1 for value in self.model_dump().values() if value)

    def unmet(self) -> list[str]:
        """Human titles of the requirements that are not satisfied."""
        return [
            REQUIREMENT_TITLES[req_id]
            for req_id, value in self.model_dump().items()
            if not value
        ]


class FinalVerdict(BaseModel):
    success: bool
    implementation_tests_passed: int
    implementation_tests_failed: int
    meta_tests_passed: int
    meta_tests_failed: int
    coverage_statements: float
    coverage_branches: float
    coverage_met: bool
    success_rate: str
    requirements_met: int
    total_requirements: int = TOTAL_REQUIREMENTS


class EvaluationReport(BaseModel):
    """Complete result of one evaluation.

    Designed for JSON serialization and lossless round-trip
    deserialization. Frozen: a report is never edited after assembly.
    """

    model_config = {"frozen": True}

    evaluation_metadata: EvaluationMetadata
    environment: EnvironmentInfo
    coverage_report: CoverageReport
    implementation_tests: TestRunSection
    meta_tests: TestRunSection
    requirements_checklist: RequirementChecklist
    final_verdict: FinalVerdict

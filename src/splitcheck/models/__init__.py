"""splitcheck data models - re-exports all public model classes."""

from splitcheck.models.config import CommandsConfig, ConfigError, ProjectConfig
from splitcheck.models.report import (
    EvaluationReport,
    FinalVerdict,
    RequirementChecklist,
    TestRunSection,
)
from splitcheck.models.result import (
    CoverageMetrics,
    ParsedTestRun,
    RunResult,
    TestOutcome,
    TestStatus,
    TestSummary,
)
from splitcheck.models.variant import (
    ExpectedOutcome,
    ImplementationVariant,
    OracleResult,
    VariantCheck,
)

__all__ = [
    "CommandsConfig",
    "ConfigError",
    "CoverageMetrics",
    "EvaluationReport",
    "ExpectedOutcome",
    "FinalVerdict",
    "ImplementationVariant",
    "OracleResult",
    "ParsedTestRun",
    "ProjectConfig",
    "RequirementChecklist",
    "RunResult",
    "TestOutcome",
    "TestRunSection",
    "TestStatus",
    "TestSummary",
    "VariantCheck",
]

"""EvaluationPipeline: one full evaluation from runner invocations to report.

Runs the suite against the installed reference with coverage, runs the
variant oracle, clears runner temp artifacts, and assembles the
EvaluationReport. Persisting and rendering the report are left to the
caller.
"""

from __future__ import annotations

import logging
import platform
import shutil
import sys
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import splitcheck
from splitcheck.evaluation.oracle import VariantOracle
from splitcheck.evaluation.requirements import (
    check_requirements,
    compute_verdict,
    format_success_rate,
)
from splitcheck.execution.process import ProcessRunner
from splitcheck.execution.slot import ImplementationSlot
from splitcheck.models.config import ProjectConfig
from splitcheck.models.report import (
    CoverageReport,
    EnvironmentInfo,
    EvaluationMetadata,
    EvaluationReport,
    FinalVerdict,
    TestRunSection,
)
from splitcheck.models.result import CoverageMetrics, ParsedTestRun, RunResult
from splitcheck.models.variant import OracleResult
from splitcheck.parsing.coverage import collect_coverage
from splitcheck.parsing.results import parse_test_results

log = logging.getLogger(__name__)

IMPLEMENTATION_DESCRIPTION = (
    "Suite under test run against the installed reference implementation"
)
META_DESCRIPTION = (
    "Variant oracle: suite must pass the reference and fail every broken implementation"
)


class EvaluationPipeline:
    """Orchestrates the implementation run, the oracle, and report assembly.

    Args:
        config: Project configuration.
        project_root: Directory of the evaluated project.
        runner: Process runner shared by every invocation.
        clock: Returns the evaluation start time. Defaults to UTC now.
    """

    def __init__(
        self,
        config: ProjectConfig,
        project_root: Path,
        runner: ProcessRunner,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.project_root = project_root
        self.runner = runner
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def run(
        self,
        stage_callback: Callable[[str], None] | None = None,
    ) -> EvaluationReport:
        """Execute the full evaluation.

        Args:
            stage_callback: Optional callback(stage_title) invoked before
                each runner stage starts.

        Returns:
            The assembled, not yet persisted, EvaluationReport.

        Raises:
            SpawnError: If a runner command cannot be started.
        """
        started = self._clock()
        self.recover_slot()

        if stage_callback is not None:
            stage_callback("Running suite against the reference implementation")
        implementation_run, implementation, coverage = await self.run_implementation()
        log.info(
            "Implementation run: %d passed, %d failed",
            implementation.summary.passed,
            implementation.summary.failed,
        )

        if stage_callback is not None:
            stage_callback("Running variant oracle")
        oracle = await VariantOracle(self.config, self.project_root, self.runner).run()

        self.cleanup()

        return build_report(
            self.config,
            timestamp=started,
            implementation_run=implementation_run,
            implementation=implementation,
            coverage=coverage,
            oracle=oracle,
        )

    async def run_implementation(self) -> tuple[RunResult, ParsedTestRun, CoverageMetrics]:
        """Run the suite once, with coverage, against whatever is installed."""
        summary_path = None
        if self.config.coverage_summary is not None:
            summary_path = self.project_root / self.config.coverage_summary
            summary_path.unlink(missing_ok=True)

        run = await self.runner.run(self.config.commands.implementation, self.project_root)
        parsed = parse_test_results(run.combined_output)
        coverage = collect_coverage(run.combined_output, summary_path)
        return run, parsed, coverage

    def recover_slot(self) -> bool:
        """Undo a variant left installed by an interrupted previous run.

        Only applies in ``copy`` install mode, where the oracle writes
        variants over the slot file.
        """
        if self.config.install_mode != "copy":
            return False
        return ImplementationSlot(self.project_root / self.config.implementation_slot).recover()

    def cleanup(self) -> None:
        """Remove runner temp artifacts listed in ``cleanup_paths``.

        Paths that cannot be removed are logged and skipped.
        """
        for rel_path in self.config.cleanup_paths:
            target = self.project_root / rel_path
            try:
                if target.is_dir():
                    shutil.rmtree(target)
                elif target.exists():
                    target.unlink()
                else:
                    continue
            except OSError as exc:
                log.warning("Could not remove %s: %s", target, exc)
                continue
            log.debug("Removed %s", target)


def build_report(
    config: ProjectConfig,
    *,
    timestamp: datetime,
    implementation_run: RunResult,
    implementation: ParsedTestRun,
    coverage: CoverageMetrics,
    oracle: OracleResult,
) -> EvaluationReport:
    """Assemble the report from the two runs and the coverage figures.

    Args:
        config: Project configuration (project and evaluator names).
        timestamp: Evaluation start time, timezone-aware.
        implementation_run: Raw result of the implementation run.
        implementation: Parsed results of the implementation run.
        coverage: Coverage measured during the implementation run.
        oracle: Result of the variant oracle batch.

    Returns:
        Frozen EvaluationReport.
    """
    meta = oracle.as_parsed_run()
    impl_summary = implementation.summary
    meta_summary = meta.summary

    checklist = check_requirements(impl_summary, meta_summary, coverage)
    success = compute_verdict(impl_summary, meta_summary, coverage)

    return EvaluationReport(
        evaluation_metadata=EvaluationMetadata(
            evaluation_id=f"{config.project}-{int(timestamp.timestamp() * 1000)}",
            timestamp=_isoformat(timestamp),
            evaluator=config.evaluator,
            project=config.project,
            version=splitcheck.__version__,
        ),
        environment=EnvironmentInfo(
            runtime_version=f"python {platform.python_version()}",
            platform=sys.platform,
            architecture=platform.machine(),
        ),
        coverage_report=CoverageReport(
            statements_percent=coverage.statements,
            branches_percent=coverage.branches,
            functions_percent=coverage.functions,
            lines_percent=coverage.lines,
            is_100_percent=coverage.is_full,
            meets_requirement_8=coverage.is_full,
            details=coverage.details(),
            source=coverage.source,
            parsed=coverage.parsed,
        ),
        implementation_tests=TestRunSection(
            description=IMPLEMENTATION_DESCRIPTION,
            passed=impl_summary.passed,
            failed=impl_summary.failed,
            total=impl_summary.total,
            success=impl_summary.success,
            exit_code=implementation_run.exit_code,
            timed_out=implementation_run.timed_out,
            parse_source=impl_summary.source,
            tests=implementation.tests,
        ),
        meta_tests=TestRunSection(
            description=META_DESCRIPTION,
            passed=meta_summary.passed,
            failed=meta_summary.failed,
            total=meta_summary.total,
            success=meta_summary.success,
            exit_code=0 if oracle.satisfied else 1,
            timed_out=any(c.timed_out for c in oracle.all_checks),
            parse_source=meta_summary.source,
            tests=meta.tests,
            variants=oracle.all_checks,
        ),
        requirements_checklist=checklist,
        final_verdict=FinalVerdict(
            success=success,
            implementation_tests_passed=impl_summary.passed,
            implementation_tests_failed=impl_summary.failed,
            meta_tests_passed=meta_summary.passed,
            meta_tests_failed=meta_summary.failed,
            coverage_statements=coverage.statements,
            coverage_branches=coverage.branches,
            coverage_met=coverage.is_full,
            success_rate=format_success_rate(impl_summary),
            requirements_met=checklist.met_count,
        ),
    )


def _isoformat(timestamp: datetime) -> str:
    utc = timestamp.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"

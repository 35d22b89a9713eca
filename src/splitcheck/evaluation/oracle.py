"""VariantOracle: prove the suite-under-test discriminates, not merely passes.

Runs the unmodified suite once per declared variant. The reference
implementation must be accepted and every broken implementation must be
rejected. Each variant is judged through one shared expectation table
keyed by its ExpectedOutcome. A final pass re-installs the reference and
requires full statement and branch coverage.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from pathlib import Path

from splitcheck.errors import SplitcheckError
from splitcheck.execution.process import ProcessRunner
from splitcheck.execution.slot import ImplementationSlot
from splitcheck.models.config import ProjectConfig
from splitcheck.models.result import CoverageMetrics, RunResult, TestSummary
from splitcheck.models.variant import (
    ExpectedOutcome,
    ImplementationVariant,
    OracleResult,
    VariantCheck,
)
from splitcheck.parsing.coverage import collect_coverage
from splitcheck.parsing.results import parse_test_results

log = logging.getLogger(__name__)

COVERAGE_CHECK_NAME = "coverage"


class OracleViolation(SplitcheckError):
    """A variant's actual outcome did not match its expected outcome.

    Attributes:
        variant: Name of the variant (or "coverage").
        reason: What was observed instead of the expected outcome.
    """

    def __init__(self, variant: str, reason: str) -> None:
        self.variant = variant
        self.reason = reason
        super().__init__(f"{variant}: {reason}")


def _require_accept(
    variant: ImplementationVariant, run: RunResult, summary: TestSummary
) -> None:
    if run.timed_out:
        raise OracleViolation(variant.name, "suite timed out against the reference implementation")
    if run.exit_code != 0:
        raise OracleViolation(
            variant.name,
            f"suite exited with code {run.exit_code} ({summary.failed} failed)",
        )
    # An unparsed summary with a clean exit still counts as accepted.
    if summary.parsed and summary.failed > 0:
        raise OracleViolation(
            variant.name, f"{summary.failed} test(s) failed despite exit code 0"
        )


def _require_reject(
    variant: ImplementationVariant, run: RunResult, summary: TestSummary
) -> None:
    if run.timed_out:
        raise OracleViolation(
            variant.name, "suite timed out; no proof that the defect was detected"
        )
    if run.exit_code == 0 and summary.failed == 0:
        raise OracleViolation(
            variant.name,
            f"defect went undetected: suite exited 0 with {summary.passed} passing test(s)",
        )


EXPECTATION_CHECKS: dict[
    ExpectedOutcome,
    Callable[[ImplementationVariant, RunResult, TestSummary], None],
] = {
    ExpectedOutcome.must_pass: _require_accept,
    ExpectedOutcome.must_fail: _require_reject,
}


def check_expectation(
    variant: ImplementationVariant, run: RunResult, summary: TestSummary
) -> None:
    """Assert that a run matches the variant's expected outcome.

    Raises:
        OracleViolation: If the reference was rejected or a defect was
            not detected.
    """
    EXPECTATION_CHECKS[variant.expected](variant, run, summary)


def check_coverage(run: RunResult, coverage: CoverageMetrics, threshold: float) -> None:
    """Assert that the coverage pass ran cleanly and reached the threshold.

    Raises:
        OracleViolation: On timeout, non-zero exit, unparseable coverage,
            or statement/branch coverage below threshold.
    """
    if run.timed_out:
        raise OracleViolation(COVERAGE_CHECK_NAME, "coverage run timed out")
    if run.exit_code != 0:
        raise OracleViolation(
            COVERAGE_CHECK_NAME, f"coverage run exited with code {run.exit_code}"
        )
    if not coverage.parsed:
        raise OracleViolation(COVERAGE_CHECK_NAME, "could not parse coverage output")
    if coverage.statements < threshold or coverage.branches < threshold:
        raise OracleViolation(
            COVERAGE_CHECK_NAME,
            f"statements {coverage.statements:g}% / branches {coverage.branches:g}% "
            f"below required {threshold:g}%",
        )


class VariantOracle:
    """Runs the suite against every declared variant, strictly in order.

    In ``copy`` install mode the variants take turns in the shared slot
    file, which is restored when the batch ends however it ends. In
    ``env`` mode the slot is never written and the variant path is
    handed to the runner through ``config.slot_env_var``.

    Args:
        config: Project configuration with commands and variants.
        project_root: Directory of the evaluated project; all runner
            commands execute here.
        runner: Process runner used for every invocation.
    """

    def __init__(
        self,
        config: ProjectConfig,
        project_root: Path,
        runner: ProcessRunner,
    ) -> None:
        self.config = config
        self.project_root = project_root
        self.runner = runner

    @property
    def slot_path(self) -> Path:
        return self.project_root / self.config.implementation_slot

    async def run(self) -> OracleResult:
        """Check every variant, then the reference's coverage.

        Returns:
            OracleResult with one VariantCheck per variant, the coverage
            check, and whether the slot was left as found.

        Raises:
            SpawnError: If a runner command cannot be started. The slot
                is restored before the error propagates.
        """
        slot_cm: contextlib.AbstractContextManager[ImplementationSlot | None]
        if self.config.install_mode == "copy":
            slot_cm = ImplementationSlot(self.slot_path)
        else:
            slot_cm = contextlib.nullcontext()

        checks: list[VariantCheck] = []
        with slot_cm as slot:
            for variant in self.config.variants:
                checks.append(await self._check_variant(variant, slot))
            coverage_check, coverage = await self._check_coverage(slot)

        restored = slot.matches_original() if slot is not None else True
        if not restored:
            log.error("Implementation slot %s differs from its original contents", self.slot_path)

        result = OracleResult(
            checks=checks,
            coverage_check=coverage_check,
            coverage=coverage,
            restored=restored,
        )
        log.info(
            "Oracle finished: %d/%d checks satisfied",
            sum(1 for c in result.all_checks if c.satisfied),
            len(result.all_checks),
        )
        return result

    async def _check_variant(
        self, variant: ImplementationVariant, slot: ImplementationSlot | None
    ) -> VariantCheck:
        log.info("Checking variant %s (%s)", variant.name, variant.expected.value)
        source = self.project_root / variant.source
        if not source.is_file():
            return self._violated(
                variant, OracleViolation(variant.name, f"implementation file not found: {source}")
            )

        env = self._install(source, slot)
        run = await self.runner.run(self.config.commands.variant, self.project_root, env=env)
        summary = parse_test_results(run.combined_output).summary

        try:
            check_expectation(variant, run, summary)
        except OracleViolation as violation:
            return self._violated(variant, violation, run, summary)

        verb = "accepted" if variant.expected == ExpectedOutcome.must_pass else "rejected"
        return VariantCheck(
            name=variant.name,
            expected=variant.expected,
            defect=variant.defect,
            exit_code=run.exit_code,
            passed=summary.passed,
            failed=summary.failed,
            satisfied=True,
            message=f"suite {verb} {variant.name} (exit {run.exit_code})",
        )

    async def _check_coverage(
        self, slot: ImplementationSlot | None
    ) -> tuple[VariantCheck, CoverageMetrics]:
        reference = self.config.reference_variant
        source = self.project_root / reference.source
        base = {"name": COVERAGE_CHECK_NAME, "expected": ExpectedOutcome.must_pass}

        if not source.is_file():
            message = f"implementation file not found: {source}"
            log.error("Oracle violation: %s: %s", COVERAGE_CHECK_NAME, message)
            return VariantCheck(**base, satisfied=False, message=message), CoverageMetrics()

        env = self._install(source, slot)
        summary_path = self._coverage_summary_path()
        if summary_path is not None:
            summary_path.unlink(missing_ok=True)

        run = await self.runner.run(self.config.commands.coverage, self.project_root, env=env)
        coverage = collect_coverage(run.combined_output, summary_path)
        check = VariantCheck(
            **base,
            exit_code=run.exit_code,
            timed_out=run.timed_out,
            satisfied=True,
            message=coverage.details(),
        )
        try:
            check_coverage(run, coverage, self.config.coverage_threshold)
        except OracleViolation as violation:
            log.error("Oracle violation: %s", violation)
            check = check.model_copy(update={"satisfied": False, "message": violation.reason})
        return check, coverage

    def _install(self, source: Path, slot: ImplementationSlot | None) -> dict[str, str]:
        if slot is None:
            assert self.config.slot_env_var is not None
            return {self.config.slot_env_var: str(source.resolve())}
        slot.install(source)
        return {}

    def _coverage_summary_path(self) -> Path | None:
        if self.config.coverage_summary is None:
            return None
        return self.project_root / self.config.coverage_summary

    @staticmethod
    def _violated(
        variant: ImplementationVariant,
        violation: OracleViolation,
        run: RunResult | None = None,
        summary: TestSummary | None = None,
    ) -> VariantCheck:
        log.error("Oracle violation: %s", violation)
        return VariantCheck(
            name=variant.name,
            expected=variant.expected,
            defect=variant.defect,
            exit_code=run.exit_code if run is not None else None,
            passed=summary.passed if summary is not None else 0,
            failed=summary.failed if summary is not None else 0,
            timed_out=run.timed_out if run is not None else False,
            satisfied=False,
            message=violation.reason,
        )

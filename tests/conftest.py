"""Shared fixtures: a throwaway evaluated project driven by a fake runner.

The fake runner is a small Python script run with sys.executable. It
reads the implementation currently installed in the slot (or the file
named by SPLITCHECK_IMPL) and behaves according to ``key=value`` lines
in it:

    verdict=pass|fail    whether the suite passes against this file
    coverage=<pct>       statement and branch coverage it reports
"""

from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from splitcheck.evaluation.pipeline import build_report
from splitcheck.models.config import CommandsConfig, ProjectConfig
from splitcheck.models.report import EvaluationReport
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

SLOT = "repository_after/BillSplitter.js"
ENV_VAR = "SPLITCHECK_IMPL"

FAKE_RUNNER = textwrap.dedent(
    '''
    import json
    import os
    import sys
    from pathlib import Path

    sys.stdout.reconfigure(encoding="utf-8")
    mode = sys.argv[1]
    impl = Path(os.environ.get("SPLITCHECK_IMPL") or "repository_after/BillSplitter.js")
    settings = dict(
        line.split("=", 1) for line in impl.read_text().split() if "=" in line
    )
    good = settings.get("verdict") == "pass"
    cov = settings.get("coverage", "100")
    names = ["splits evenly", "allocates remainder to lead payer", "rejects zero people"]

    if mode == "json":
        results = [
            {"fullName": name, "status": "passed" if good or i == 0 else "failed", "duration": 1}
            for i, name in enumerate(names)
        ]
        failed = sum(1 for r in results if r["status"] == "failed")
        print("JSON report written")
        print(json.dumps({
            "numPassedTests": len(names) - failed,
            "numFailedTests": failed,
            "numTotalTests": len(names),
            "testResults": [{"assertionResults": results}],
        }))
        sys.exit(0 if good else 1)

    if mode == "verbose":
        failed = 0
        for i, name in enumerate(names):
            if good or i == 0:
                print(f" \\u2713 {name} 2ms")
            else:
                failed += 1
                print(f" \\u00d7 {name} 3ms")
        print(f" Tests  {len(names) - failed} passed | {failed} failed")

    if mode in ("verbose", "coverage"):
        print("File              | % Stmts | % Branch | % Funcs | % Lines |")
        print(f"All files         |  {cov} |  {cov} |  100 |  {cov} |")
        print(f" BillSplitter.js  |  {cov} |  {cov} |  100 |  {cov} |")
        sys.exit(0 if good else 1)
    '''
)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Evaluated project with the fake runner and an installed reference."""
    root = tmp_path / "project"
    (root / "repository_after").mkdir(parents=True)
    (root / "tests" / "resources").mkdir(parents=True)
    (root / "fake_runner.py").write_text(FAKE_RUNNER, encoding="utf-8")
    (root / SLOT).write_text("// original\nverdict=pass\ncoverage=100\n", encoding="utf-8")
    return root


@pytest.fixture
def write_variant(project_root: Path) -> Callable[..., ImplementationVariant]:
    """Factory writing a variant file and returning its declaration."""

    def _write(
        name: str,
        expected: ExpectedOutcome,
        verdict: str,
        coverage: float = 100,
    ) -> ImplementationVariant:
        rel = f"tests/resources/{name}.js"
        (project_root / rel).write_text(
            f"// {name}\nverdict={verdict}\ncoverage={coverage:g}\n", encoding="utf-8"
        )
        return ImplementationVariant(
            name=name,
            source=rel,
            expected=expected,
            defect=None if expected == ExpectedOutcome.must_pass else f"{name} defect",
        )

    return _write


def fake_commands() -> CommandsConfig:
    script = "fake_runner.py"
    return CommandsConfig(
        implementation=[sys.executable, script, "verbose"],
        variant=[sys.executable, script, "json"],
        coverage=[sys.executable, script, "coverage"],
    )


@pytest.fixture
def make_config(
    write_variant: Callable[..., ImplementationVariant],
) -> Callable[..., ProjectConfig]:
    """Factory for a ProjectConfig wired to the fake runner.

    By default declares a passing reference and two broken variants the
    suite detects.
    """

    def _make(
        variants: list[ImplementationVariant] | None = None,
        **overrides: object,
    ) -> ProjectConfig:
        if variants is None:
            variants = [
                write_variant("correct", ExpectedOutcome.must_pass, "pass"),
                write_variant("broken-remainder", ExpectedOutcome.must_fail, "fail"),
                write_variant("broken-tax", ExpectedOutcome.must_fail, "fail"),
            ]
        fields: dict[str, object] = {
            "implementation_slot": SLOT,
            "timeout_seconds": 60,
            "commands": fake_commands(),
            "variants": variants,
            "cleanup_paths": [],
        }
        fields.update(overrides)
        return ProjectConfig(**fields)

    return _make


@pytest.fixture
def make_report() -> Callable[..., EvaluationReport]:
    """Factory for a fully assembled report without running anything."""

    def _make(
        timestamp: datetime = datetime(2026, 1, 31, 14, 5, 9, tzinfo=timezone.utc),
        impl_failed: int = 0,
        branches: float = 100,
        defect_detected: bool = True,
    ) -> EvaluationReport:
        tests = [TestOutcome(name=f"case {i}", status=TestStatus.PASS) for i in range(40 - impl_failed)]
        tests += [TestOutcome(name=f"bad {i}", status=TestStatus.FAIL) for i in range(impl_failed)]
        oracle = OracleResult(
            checks=[
                VariantCheck(
                    name="correct", expected=ExpectedOutcome.must_pass, exit_code=0, passed=3, satisfied=True
                ),
                VariantCheck(
                    name="broken-tax",
                    expected=ExpectedOutcome.must_fail,
                    defect="flat tax",
                    exit_code=1 if defect_detected else 0,
                    passed=1 if defect_detected else 3,
                    failed=2 if defect_detected else 0,
                    satisfied=defect_detected,
                    message="suite rejected broken-tax (exit 1)"
                    if defect_detected
                    else "defect went undetected: suite exited 0 with 3 passing test(s)",
                ),
            ],
            coverage_check=VariantCheck(
                name="coverage", expected=ExpectedOutcome.must_pass, exit_code=0, satisfied=True
            ),
        )
        return build_report(
            ProjectConfig(),
            timestamp=timestamp,
            implementation_run=RunResult(
                command=["npx", "vitest"],
                exit_code=1 if impl_failed else 0,
                stdout="",
                stderr="",
                combined_output="",
                duration_seconds=2.0,
            ),
            implementation=ParsedTestRun(
                summary=TestSummary.from_counts(40 - impl_failed, impl_failed), tests=tests
            ),
            coverage=CoverageMetrics(
                statements=100, branches=branches, functions=100, lines=100, source="table", parsed=True
            ),
            oracle=oracle,
        )

    return _make

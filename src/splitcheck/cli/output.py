"""Rich terminal output layer for evaluation reports.

Provides the headline summary table, the per-variant oracle table, the
unmet-requirement and failed-stage lists, and JSON output for
EvaluationReport display in terminal and CI.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from splitcheck.models.report import EvaluationReport
    from splitcheck.models.variant import VariantCheck


# Verdict styling map: success -> (symbol, Rich markup style)
_VERDICT_STYLES: dict[bool, tuple[str, str]] = {
    True: ("✓ PASS", "bold green"),
    False: ("✗ FAIL", "bold red"),
}


def failed_stages(report: EvaluationReport) -> list[str]:
    """Describe each stage that kept the verdict from passing."""
    stages: list[str] = []
    if not report.implementation_tests.success:
        impl = report.implementation_tests
        stages.append(
            f"Implementation tests have failures ({impl.passed} passed, {impl.failed} failed)"
        )
    if not report.meta_tests.success:
        meta = report.meta_tests
        stages.append(f"Meta tests have failures ({meta.passed} passed, {meta.failed} failed)")
    if not report.coverage_report.meets_requirement_8:
        cov = report.coverage_report
        stages.append(
            "Coverage requirement not met: need 100% statements and branches, "
            f"current {cov.statements_percent:g}% statements, "
            f"{cov.branches_percent:g}% branches"
        )
    return stages


def render_headline(report: EvaluationReport, console: Console) -> None:
    """Render the key-value summary table for a report.

    Args:
        report: The EvaluationReport to display.
        console: Rich Console for output.
    """
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")

    verdict = report.final_verdict
    symbol, style = _VERDICT_STYLES[verdict.success]
    table.add_row("Verdict", f"[{style}]{symbol}[/{style}]")

    impl = report.implementation_tests
    table.add_row(
        "Implementation",
        f"{impl.passed} passed, {impl.failed} failed ({verdict.success_rate})",
    )
    meta = report.meta_tests
    table.add_row("Meta tests", f"{meta.passed} passed, {meta.failed} failed")

    cov = report.coverage_report
    table.add_row(
        "Coverage",
        f"statements={cov.statements_percent:g}% branches={cov.branches_percent:g}% "
        f"functions={cov.functions_percent:g}% lines={cov.lines_percent:g}%",
    )
    if not cov.parsed:
        table.add_row("", "[dim yellow]coverage output could not be parsed[/dim yellow]")

    table.add_row(
        "Requirements",
        f"{verdict.requirements_met}/{verdict.total_requirements} met",
    )

    console.print()
    console.print(table)


def render_variants(checks: list[VariantCheck], console: Console) -> None:
    """Render one row per oracle check.

    Args:
        checks: Variant checks followed by the coverage check.
        console: Rich Console for output.
    """
    if not checks:
        return

    table = Table(box=box.SIMPLE, padding=(0, 1))
    table.add_column("Variant", style="bold", no_wrap=True)
    table.add_column("Expected", no_wrap=True)
    table.add_column("Exit", justify="right", no_wrap=True)
    table.add_column("Pass", justify="right", no_wrap=True)
    table.add_column("Fail", justify="right", no_wrap=True)
    table.add_column("Result", no_wrap=True)
    table.add_column("Detail", overflow="fold")

    for check in checks:
        result = "[green]✓ ok[/green]" if check.satisfied else "[red]✗ violated[/red]"
        exit_code = "-" if check.exit_code is None else str(check.exit_code)
        if check.timed_out:
            exit_code = "timeout"
        table.add_row(
            check.name,
            check.expected.value,
            exit_code,
            str(check.passed),
            str(check.failed),
            result,
            check.message,
        )

    console.print(table)


def render_failures(report: EvaluationReport, console: Console) -> None:
    """Render unmet requirements and failed stages for a negative verdict."""
    unmet = report.requirements_checklist.unmet()
    if unmet:
        console.print("[bold]Unmet requirements[/bold]")
        for title in unmet:
            console.print(f"  - {title}")
        console.print()

    stages = failed_stages(report)
    if stages:
        console.print("[bold]Failed stages[/bold]")
        for stage in stages:
            console.print(f"  - {stage}")
        console.print()


def render_report(
    report: EvaluationReport,
    console: Console,
    report_path: Path | None = None,
) -> None:
    """Render the full human summary: headline, variants, failures, path."""
    render_headline(report, console)
    render_variants(report.meta_tests.variants or [], console)
    if not report.final_verdict.success:
        render_failures(report, console)
    if report_path is not None:
        console.print(f"[dim]Report saved: {report_path}[/dim]")


def output_json(report: EvaluationReport) -> None:
    """Write the report as pure JSON to stdout.

    No Rich markup, no color, no extra text. Suitable for
    CI pipeline consumption and machine parsing.

    Args:
        report: The EvaluationReport to serialize.
    """
    sys.stdout.write(report.model_dump_json(indent=2))
    sys.stdout.write("\n")

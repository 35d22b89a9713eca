"""splitcheck report -- display stored evaluation reports.

Shows the latest report by default, a specific one by ID or path, or a
history table of every stored report. Reads reports from ReportStore.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from splitcheck.cli.output import output_json, render_report
from splitcheck.models.config import ConfigError, find_project_root, load_project_config
from splitcheck.storage.json_store import PersistenceError, ReportStore

err_console = Console(stderr=True)


def report(
    location: Optional[str] = typer.Argument(
        None, help="Report ID, directory, or report.json path (default: latest)"
    ),
    reports_dir: Optional[Path] = typer.Option(None, "--reports-dir", help="Reports directory"),
    history: bool = typer.Option(False, "--history", help="List every stored report"),
    format_json: bool = typer.Option(False, "--json", help="Output the report as pure JSON"),
) -> None:
    """Show a stored evaluation report."""
    store = ReportStore(_reports_root(reports_dir))

    if history:
        _render_history(store, Console())
        return

    try:
        if location is None:
            loaded = store.load_latest()
        else:
            loaded = store.load_report(location)
    except PersistenceError as exc:
        err_console.print(f"[bold red]Could not read report:[/bold red] {exc}")
        raise typer.Exit(code=3)

    if loaded is None:
        err_console.print(f"No reports found in {store.reports_root}.")
        raise typer.Exit(code=1)

    if format_json:
        output_json(loaded)
    else:
        render_report(loaded, Console())


def _reports_root(reports_dir: Path | None) -> Path:
    if reports_dir is not None:
        return reports_dir
    project_root = find_project_root()
    try:
        config = load_project_config(project_root)
    except ConfigError as exc:
        err_console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2)
    return project_root / config.reports_dir


def _render_history(store: ReportStore, console: Console) -> None:
    report_ids = store.list_reports()
    if not report_ids:
        console.print(f"No reports found in {store.reports_root}.")
        return

    table = Table(box=box.ROUNDED)
    table.add_column("Report", no_wrap=True)
    table.add_column("Verdict")
    table.add_column("Impl", justify="right")
    table.add_column("Meta", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_column("Reqs", justify="right")

    for report_id in report_ids:
        try:
            stored = store.load_report(report_id)
        except PersistenceError as exc:
            table.add_row(report_id, "[yellow]unreadable[/yellow]", "", "", "", exc.reason[:40])
            continue
        verdict = stored.final_verdict
        table.add_row(
            report_id,
            "[green]PASS[/green]" if verdict.success else "[red]FAIL[/red]",
            f"{verdict.implementation_tests_passed}/"
            f"{verdict.implementation_tests_passed + verdict.implementation_tests_failed}",
            f"{verdict.meta_tests_passed}/{verdict.meta_tests_passed + verdict.meta_tests_failed}",
            f"{verdict.coverage_statements:g}%/{verdict.coverage_branches:g}%",
            f"{verdict.requirements_met}/{verdict.total_requirements}",
        )

    console.print(table)

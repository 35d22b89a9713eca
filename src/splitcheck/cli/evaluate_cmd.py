"""splitcheck evaluate -- run the full evaluation and display the verdict.

Loads the project config, runs the suite against the reference with
coverage, runs the variant oracle, persists the report with a latest
pointer, renders Rich output, and exits with the verdict's code.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from splitcheck.cli.output import output_json, render_report
from splitcheck.evaluation.pipeline import EvaluationPipeline
from splitcheck.execution.process import ProcessRunner, SpawnError
from splitcheck.models.config import (
    ConfigError,
    ProjectConfig,
    find_project_root,
    load_project_config,
)
from splitcheck.storage.json_store import PersistenceError, ReportStore

log = logging.getLogger(__name__)

console = Console(stderr=True)

# Exit code mapping: outcome -> exit code
EXIT_CODES: dict[str, int] = {
    "PASS": 0,
    "FAIL": 1,
    "CONFIG_ERROR": 2,
    "INFRA_ERROR": 3,
}


def evaluate(
    project_dir: Optional[Path] = typer.Argument(
        None, help="Evaluated project directory (default: search upward from cwd)"
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to splitcheck.yaml"),
    reports_dir: Optional[Path] = typer.Option(None, "--reports-dir", help="Override reports directory"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-run timeout in seconds"),
    format_json: bool = typer.Option(False, "--json", help="Output the report as pure JSON to stdout"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Do not mirror test runner output"),
) -> None:
    """Evaluate the suite against the reference and every broken variant."""
    project_root, config = load_context(project_dir, config_file, timeout)
    runner = build_runner(config, format_json=format_json, quiet=quiet)

    try:
        report = asyncio.run(
            EvaluationPipeline(config, project_root, runner).run(
                stage_callback=None if format_json else _announce_stage
            )
        )
    except SpawnError as exc:
        console.print(f"[bold red]Runner error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_CODES["INFRA_ERROR"])
    except OSError as exc:
        console.print(f"[bold red]Filesystem error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_CODES["INFRA_ERROR"])

    root = reports_dir if reports_dir is not None else project_root / config.reports_dir
    store = ReportStore(root)
    try:
        report_path = store.save_report(report)
    except PersistenceError as exc:
        console.print(f"[bold red]Could not save report:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_CODES["INFRA_ERROR"])

    if format_json:
        output_json(report)
    else:
        render_report(report, Console(), report_path)

    verdict = "PASS" if report.final_verdict.success else "FAIL"
    exit_code = EXIT_CODES[verdict]
    if exit_code != 0:
        raise typer.Exit(code=exit_code)


def load_context(
    project_dir: Path | None,
    config_file: Path | None,
    timeout: float | None,
) -> tuple[Path, ProjectConfig]:
    """Resolve the project root and load its config, exiting 2 on errors."""
    if project_dir is not None and not project_dir.is_dir():
        console.print(f"[bold red]Not a directory:[/bold red] {project_dir}")
        raise typer.Exit(code=EXIT_CODES["CONFIG_ERROR"])

    project_root = find_project_root(project_dir)
    try:
        config = load_project_config(project_root, config_file)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_CODES["CONFIG_ERROR"])

    if timeout is not None:
        if timeout <= 0:
            console.print("[bold red]Config error:[/bold red] --timeout must be positive")
            raise typer.Exit(code=EXIT_CODES["CONFIG_ERROR"])
        config = config.model_copy(update={"timeout_seconds": timeout})

    log.debug("Project root %s, %d variants", project_root, len(config.variants))
    return project_root, config


def build_runner(config: ProjectConfig, *, format_json: bool, quiet: bool) -> ProcessRunner:
    """ProcessRunner that keeps stdout clean when JSON goes there."""
    return ProcessRunner(
        timeout=config.timeout_seconds,
        echo=not quiet,
        stdout=sys.stderr if format_json else None,
    )


def _announce_stage(title: str) -> None:
    console.rule(f"[bold blue]{title}")

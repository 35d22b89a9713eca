"""splitcheck oracle -- run only the variant oracle.

Useful while writing the suite: shows which broken implementations
still slip through without running the full evaluation or writing a
report.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from splitcheck.cli.evaluate_cmd import EXIT_CODES, build_runner, load_context
from splitcheck.cli.output import render_variants
from splitcheck.evaluation.oracle import VariantOracle
from splitcheck.execution.process import SpawnError

console = Console(stderr=True)


def oracle(
    project_dir: Optional[Path] = typer.Argument(
        None, help="Evaluated project directory (default: search upward from cwd)"
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to splitcheck.yaml"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-run timeout in seconds"),
    format_json: bool = typer.Option(False, "--json", help="Output the oracle result as JSON"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Do not mirror test runner output"),
) -> None:
    """Check that the suite accepts the reference and rejects every broken variant."""
    project_root, config = load_context(project_dir, config_file, timeout)
    runner = build_runner(config, format_json=format_json, quiet=quiet)

    try:
        result = asyncio.run(VariantOracle(config, project_root, runner).run())
    except SpawnError as exc:
        console.print(f"[bold red]Runner error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_CODES["INFRA_ERROR"])
    except OSError as exc:
        console.print(f"[bold red]Filesystem error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_CODES["INFRA_ERROR"])

    if format_json:
        sys.stdout.write(result.model_dump_json(indent=2))
        sys.stdout.write("\n")
    else:
        output_console = Console()
        output_console.print()
        render_variants(result.all_checks, output_console)
        satisfied = sum(1 for c in result.all_checks if c.satisfied)
        style = "bold green" if result.satisfied else "bold red"
        output_console.print(
            f"[{style}]{satisfied}/{len(result.all_checks)} oracle checks satisfied[/{style}]"
        )
        if not result.restored:
            output_console.print(
                f"[bold red]Implementation slot {config.implementation_slot} "
                "was not restored[/bold red]"
            )

    if not result.satisfied:
        raise typer.Exit(code=EXIT_CODES["FAIL"])

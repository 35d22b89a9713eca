"""splitcheck init CLI command for config scaffolding."""

from __future__ import annotations

from pathlib import Path

import typer

from splitcheck.scaffold.init import ConfigExistsError, scaffold_project


def init(
    directory: str = typer.Argument(".", help="Evaluated project directory"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing splitcheck.yaml"
    ),
) -> None:
    """Write a default splitcheck.yaml.

    The file lists every setting with its default value: runner
    commands, the implementation slot, and the declared variants.
    """
    target = Path(directory).resolve()

    try:
        scaffold_project(target, force=force)
    except ConfigExistsError as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Use --force to overwrite it.", err=True)
        raise typer.Exit(code=1)

"""splitcheck CLI entry point."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from splitcheck import __version__
from splitcheck.cli.evaluate_cmd import evaluate
from splitcheck.cli.init_cmd import init
from splitcheck.cli.oracle_cmd import oracle
from splitcheck.cli.report_cmd import report as report_cmd

app = typer.Typer(
    name="splitcheck",
    help="Certify a bill-splitter test suite against reference and broken implementations",
    no_args_is_help=True,
)

# Register subcommands
app.command()(evaluate)
app.command()(init)
app.command()(oracle)
app.command(name="report")(report_cmd)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"splitcheck {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Route every module logger through one RichHandler on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Log level: DEBUG, INFO, WARNING or ERROR.",
        case_sensitive=False,
    ),
) -> None:
    """Certify a bill-splitter test suite against reference and broken implementations."""
    level = log_level.upper()
    if level not in _LOG_LEVELS:
        raise typer.BadParameter(
            f"must be one of {', '.join(_LOG_LEVELS)}", param_hint="--log-level"
        )
    configure_logging(level)

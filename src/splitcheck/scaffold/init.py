"""Project scaffolding for `splitcheck init`.

Writes a splitcheck.yaml holding every default, so the runner commands
and variant list can be edited in place, and keeps the reports
directory out of version control.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from rich.console import Console

from splitcheck.models.config import CONFIG_FILENAME, ProjectConfig

console = Console()

_HEADER = (
    "# splitcheck configuration.\n"
    "# Variants take turns in implementation_slot; exactly one must be must_pass.\n"
)


class ConfigExistsError(Exception):
    """Raised when scaffold_project would overwrite an existing config."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"File already exists: {path}")


def render_default_config() -> str:
    """Default ProjectConfig as commented YAML."""
    data = ProjectConfig().model_dump(mode="json")
    return _HEADER + yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def scaffold_project(directory: Path, force: bool = False) -> list[str]:
    """Write splitcheck.yaml and ignore the reports directory.

    Args:
        directory: Evaluated project directory. Created if missing.
        force: If True, overwrite an existing splitcheck.yaml.

    Returns:
        List of created or updated file paths (relative to directory).

    Raises:
        ConfigExistsError: If splitcheck.yaml exists and force is False.
    """
    directory = directory.resolve()
    config_path = directory / CONFIG_FILENAME
    if config_path.exists() and not force:
        raise ConfigExistsError(config_path)

    directory.mkdir(parents=True, exist_ok=True)
    config_path.write_text(render_default_config(), encoding="utf-8")
    created = [CONFIG_FILENAME]

    # Handle .gitignore
    gitignore_path = directory / ".gitignore"
    reports_entry = ProjectConfig().reports_dir.rstrip("/") + "/"
    if gitignore_path.exists():
        content = gitignore_path.read_text(encoding="utf-8")
        if reports_entry not in content.splitlines():
            if content and not content.endswith("\n"):
                content += "\n"
            content += reports_entry + "\n"
            gitignore_path.write_text(content, encoding="utf-8")
            created.append(".gitignore (updated)")
    else:
        gitignore_path.write_text(reports_entry + "\n", encoding="utf-8")
        created.append(".gitignore")

    console.print("[green][bold]splitcheck initialized![/bold][/green]")
    for path in created:
        console.print(f"  [green]✓[/green] {path}")

    return created

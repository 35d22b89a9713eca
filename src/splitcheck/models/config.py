"""Project configuration model for splitcheck.

Captures splitcheck.yaml fields with defaults matching the bill
splitter project layout: runner commands, the implementation slot,
the declared variants, and where reports are written.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, model_validator

from splitcheck.errors import SplitcheckError
from splitcheck.models.variant import ExpectedOutcome, ImplementationVariant

CONFIG_FILENAME = "splitcheck.yaml"


class ConfigError(SplitcheckError):
    """Raised when splitcheck.yaml cannot be read or fails validation.

    Attributes:
        path: The config file that was being loaded.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        location = f"{path}: " if path is not None else ""
        super().__init__(f"{location}{message}")


class CommandsConfig(BaseModel):
    """Argument vectors for the three runner invocations.

    ``implementation`` runs the suite against the installed reference
    with coverage and a verbose reporter, ``variant`` runs the suite once
    per oracle variant, and ``coverage`` is the package-level shortcut
    used for the oracle's coverage pass.
    """

    model_config = {"extra": "forbid"}

    implementation: list[str] = Field(
        default_factory=lambda: [
            "npx", "vitest", "run", "repository_after/",
            "--reporter=verbose", "--coverage",
        ]
    )
    variant: list[str] = Field(
        default_factory=lambda: [
            "npx", "vitest", "run", "repository_after/BillSplitter.test.js",
            "--reporter", "json",
        ]
    )
    coverage: list[str] = Field(
        default_factory=lambda: ["npm", "run", "test:impl"]
    )


def _default_variants() -> list[ImplementationVariant]:
    return [
        ImplementationVariant(
            name="correct",
            source="tests/resources/correct.js",
            expected=ExpectedOutcome.must_pass,
        ),
        ImplementationVariant(
            name="broken-remainder",
            source="tests/resources/broken-remainder.js",
            expected=ExpectedOutcome.must_fail,
            defect="remainder credited to the last participant instead of the lead payer",
        ),
        ImplementationVariant(
            name="broken-rounding",
            source="tests/resources/broken-rounding.js",
            expected=ExpectedOutcome.must_fail,
            defect="per-share value rounded independently, losing total reconciliation",
        ),
        ImplementationVariant(
            name="broken-tax",
            source="tests/resources/broken-tax.js",
            expected=ExpectedOutcome.must_fail,
            defect="tax applied as a flat amount instead of a percentage",
        ),
        ImplementationVariant(
            name="broken-zero-people",
            source="tests/resources/broken-zero-people.js",
            expected=ExpectedOutcome.must_fail,
            defect="invalid party size signaled with null instead of an empty result or an error",
        ),
    ]


class ProjectConfig(BaseModel):
    """Project-level configuration loaded from splitcheck.yaml."""

    model_config = {"extra": "forbid"}

    project: str = "restaurant_bill_splitter"
    evaluator: str = "automated_test_suite"
    reports_dir: str = "evaluation/reports"
    timeout_seconds: float | None = Field(default=600.0, gt=0)
    coverage_threshold: float = Field(default=100.0, ge=0.0, le=100.0)
    implementation_slot: str = "repository_after/BillSplitter.js"
    install_mode: Literal["copy", "env"] = "copy"
    slot_env_var: str | None = None
    coverage_summary: str | None = None
    cleanup_paths: list[str] = Field(
        default_factory=lambda: ["node_modules/.coverage-temp"]
    )
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    variants: list[ImplementationVariant] = Field(default_factory=_default_variants)

    @model_validator(mode="after")
    def _check_variants(self) -> ProjectConfig:
        reference = [v for v in self.variants if v.expected == ExpectedOutcome.must_pass]
        if len(reference) != 1:
            raise ValueError(
                f"exactly one variant must be 'must_pass', found {len(reference)}"
            )
        names = [v.name for v in self.variants]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate variant names: {duplicates}")
        if self.install_mode == "env" and not self.slot_env_var:
            raise ValueError("install_mode 'env' requires slot_env_var")
        return self

    @property
    def reference_variant(self) -> ImplementationVariant:
        return next(v for v in self.variants if v.expected == ExpectedOutcome.must_pass)


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) looking for splitcheck.yaml.

    Args:
        start: Starting path (file or directory). Defaults to cwd.

    Returns:
        Path to the directory containing splitcheck.yaml, or the
        starting directory if none is found.
    """
    origin = (start or Path.cwd()).resolve()
    if origin.is_file():
        origin = origin.parent
    current = origin
    while current != current.parent:
        if (current / CONFIG_FILENAME).exists():
            return current
        current = current.parent
    return origin


def load_project_config(
    project_root: Path | None = None,
    config_path: Path | None = None,
) -> ProjectConfig:
    """Load ProjectConfig from splitcheck.yaml. Returns defaults if not found.

    Args:
        project_root: Directory of the evaluated project. If None,
            uses find_project_root() to locate it.
        config_path: Explicit config file. Must exist when given.

    Returns:
        Validated ProjectConfig instance.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or
            does not validate.
    """
    import yaml

    if config_path is None:
        if project_root is None:
            project_root = find_project_root()
        config_path = project_root / CONFIG_FILENAME
        if not config_path.exists():
            return ProjectConfig()

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read config: {exc}", config_path) from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}", config_path) from exc

    if raw is None:
        return ProjectConfig()
    if not isinstance(raw, dict):
        raise ConfigError("top level must be a mapping", config_path)

    try:
        return ProjectConfig.model_validate(raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(problems, config_path) from exc

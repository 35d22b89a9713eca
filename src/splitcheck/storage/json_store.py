"""JSON file storage layer for evaluation reports.

Stores EvaluationReport objects as report.json files under a dated
directory tree with a ``latest`` pointer. Uses atomic writes to prevent
corruption.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from splitcheck.errors import SplitcheckError
from splitcheck.models.report import EvaluationReport

REPORT_FILENAME = "report.json"
LATEST_LINK = "latest"
LATEST_FALLBACK = ".latest"


class PersistenceError(SplitcheckError):
    """A report could not be written to or read from disk.

    Attributes:
        path: The file or directory involved.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ReportStore:
    """Persist and query EvaluationReport objects as JSON files.

    File layout:
        <reports_dir>/
            2026-01-31/
                14-05-09/report.json      # one evaluation
                14-05-09-1/report.json    # second run in the same second
            latest -> 2026-01-31/14-05-09-1/report.json

    Report IDs are the ``<date>/<time>`` directory path relative to the
    reports root; they sort chronologically.
    """

    def __init__(self, reports_root: Path) -> None:
        self.reports_root = reports_root

    def save_report(self, report: EvaluationReport) -> Path:
        """Write a report and point ``latest`` at it.

        Args:
            report: The report to persist.

        Returns:
            Path of the written report.json.

        Raises:
            PersistenceError: If any directory or file cannot be written.
        """
        stamp = _report_time(report)
        try:
            report_dir = self._claim_dir(stamp)
            content = report.model_dump_json(indent=2)

            # Atomic write: write to .tmp then rename
            report_file = report_dir / REPORT_FILENAME
            tmp_file = report_dir / f"{REPORT_FILENAME}.tmp"
            tmp_file.write_text(content, encoding="utf-8")
            tmp_file.rename(report_file)
        except OSError as exc:
            raise PersistenceError(self.reports_root, str(exc)) from exc

        self.update_latest(self.report_id(report_file))
        return report_file

    def report_id(self, report_file: Path) -> str:
        return report_file.parent.relative_to(self.reports_root).as_posix()

    def update_latest(self, report_id: str) -> None:
        """Create or update the ``latest`` symlink.

        Falls back to writing a ``.latest`` text file if symlinks fail.
        """
        target = f"{report_id}/{REPORT_FILENAME}"
        link_path = self.reports_root / LATEST_LINK

        try:
            tmp_link = self.reports_root / f".latest_tmp_{os.getpid()}"
            if tmp_link.exists() or tmp_link.is_symlink():
                tmp_link.unlink()
            os.symlink(target, tmp_link)
            os.replace(tmp_link, link_path)
        except OSError:
            fallback_path = self.reports_root / LATEST_FALLBACK
            try:
                fallback_path.write_text(report_id, encoding="utf-8")
            except OSError as exc:
                raise PersistenceError(fallback_path, str(exc)) from exc

    def load_report(self, location: Path | str) -> EvaluationReport:
        """Load a report by ID, directory, or report.json path.

        Args:
            location: A report ID from ``list_reports``, a report
                directory, or the report.json file itself.

        Raises:
            PersistenceError: If the file is missing, unreadable, or not
                a valid report.
        """
        report_file = self._resolve(location)
        try:
            content = report_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(report_file, str(exc)) from exc
        try:
            return EvaluationReport.model_validate_json(content)
        except ValidationError as exc:
            raise PersistenceError(report_file, f"not a valid report: {exc}") from exc

    def list_reports(self) -> list[str]:
        """List report IDs, oldest first."""
        if not self.reports_root.is_dir():
            return []
        return sorted(
            self.report_id(f) for f in self.reports_root.glob(f"*/*/{REPORT_FILENAME}")
        )

    def latest_id(self) -> str | None:
        link_path = self.reports_root / LATEST_LINK
        fallback_path = self.reports_root / LATEST_FALLBACK

        if link_path.is_symlink():
            target = os.readlink(link_path)
            return target.removesuffix(f"/{REPORT_FILENAME}")
        if fallback_path.exists():
            return fallback_path.read_text(encoding="utf-8").strip()

        reports = self.list_reports()
        return reports[-1] if reports else None

    def load_latest(self) -> EvaluationReport | None:
        """Load the most recent report, or None if nothing is stored."""
        report_id = self.latest_id()
        if report_id is None:
            return None
        return self.load_report(report_id)

    def _claim_dir(self, stamp: datetime) -> Path:
        day_dir = self.reports_root / stamp.strftime("%Y-%m-%d")
        base = stamp.strftime("%H-%M-%S")
        candidate = day_dir / base
        suffix = 0
        while True:
            try:
                candidate.mkdir(parents=True)
                return candidate
            except FileExistsError:
                suffix += 1
                candidate = day_dir / f"{base}-{suffix}"

    def _resolve(self, location: Path | str) -> Path:
        path = Path(location)
        if not path.is_absolute() and not path.exists():
            path = self.reports_root / path
        if path.is_dir():
            path = path / REPORT_FILENAME
        return path


def _report_time(report: EvaluationReport) -> datetime:
    try:
        stamp = datetime.fromisoformat(report.evaluation_metadata.timestamp)
    except ValueError:
        return datetime.now(timezone.utc)
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp.astimezone(timezone.utc)

"""Tests for the JSON storage layer (ReportStore)."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from splitcheck.models.report import EvaluationReport
from splitcheck.storage.json_store import PersistenceError, ReportStore

MakeReport = Callable[..., EvaluationReport]


class TestSaveReport:
    """Tests for writing reports."""

    def test_writes_dated_path(self, tmp_path: Path, make_report: MakeReport) -> None:
        """save_report writes <date>/<time>/report.json under the root."""
        store = ReportStore(tmp_path / "reports")
        path = store.save_report(make_report())

        assert path == tmp_path / "reports" / "2026-01-31" / "14-05-09" / "report.json"
        assert path.exists()

    def test_written_json_matches_report(self, tmp_path: Path, make_report: MakeReport) -> None:
        """File content is the report's JSON form."""
        report = make_report()
        path = ReportStore(tmp_path).save_report(report)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["final_verdict"]["success"] is True
        assert data["final_verdict"]["total_requirements"] == 8
        assert data["evaluation_metadata"]["timestamp"] == "2026-01-31T14:05:09.000Z"
        assert set(data) == {
            "evaluation_metadata",
            "environment",
            "coverage_report",
            "implementation_tests",
            "meta_tests",
            "requirements_checklist",
            "final_verdict",
        }

    def test_no_tmp_file_left(self, tmp_path: Path, make_report: MakeReport) -> None:
        """Atomic write leaves no .tmp behind."""
        path = ReportStore(tmp_path).save_report(make_report())
        assert not list(path.parent.glob("*.tmp"))

    def test_same_second_gets_suffix(self, tmp_path: Path, make_report: MakeReport) -> None:
        """Two reports stamped in the same second never overwrite each other."""
        store = ReportStore(tmp_path)
        first = store.save_report(make_report())
        second = store.save_report(make_report(impl_failed=2))
        third = store.save_report(make_report())

        assert first.parent.name == "14-05-09"
        assert second.parent.name == "14-05-09-1"
        assert third.parent.name == "14-05-09-2"
        assert store.load_report(first).final_verdict.success is True

    def test_timestamp_converted_to_utc(self, tmp_path: Path, make_report: MakeReport) -> None:
        """Directory names use the UTC date and time."""
        from datetime import timedelta

        local = datetime(2026, 2, 1, 1, 30, 0, tzinfo=timezone(timedelta(hours=3)))
        path = ReportStore(tmp_path).save_report(make_report(timestamp=local))
        assert path.parent.parent.name == "2026-01-31"
        assert path.parent.name == "22-30-00"

    def test_unwritable_root_raises_persistence_error(
        self, tmp_path: Path, make_report: MakeReport
    ) -> None:
        """OSError while writing becomes PersistenceError."""
        blocker = tmp_path / "reports"
        blocker.write_text("a file, not a directory")

        with pytest.raises(PersistenceError):
            ReportStore(blocker).save_report(make_report())


class TestLatest:
    """Tests for the latest pointer."""

    def test_symlink_points_at_newest(self, tmp_path: Path, make_report: MakeReport) -> None:
        store = ReportStore(tmp_path)
        store.save_report(make_report())
        newest = store.save_report(make_report(impl_failed=1))

        link = tmp_path / "latest"
        assert link.is_symlink()
        assert (tmp_path / os.readlink(link)).resolve() == newest.resolve()

    def test_load_latest(self, tmp_path: Path, make_report: MakeReport) -> None:
        store = ReportStore(tmp_path)
        store.save_report(make_report())
        store.save_report(make_report(impl_failed=3))

        latest = store.load_latest()
        assert latest is not None
        assert latest.implementation_tests.failed == 3

    def test_fallback_text_file_when_symlink_fails(
        self, tmp_path: Path, make_report: MakeReport
    ) -> None:
        store = ReportStore(tmp_path)
        with patch("splitcheck.storage.json_store.os.symlink", side_effect=OSError("unsupported")):
            store.save_report(make_report(branches=90))

        assert not (tmp_path / "latest").exists()
        assert (tmp_path / ".latest").read_text(encoding="utf-8") == "2026-01-31/14-05-09"
        latest = store.load_latest()
        assert latest is not None
        assert latest.coverage_report.branches_percent == 90

    def test_load_latest_empty_store(self, tmp_path: Path) -> None:
        assert ReportStore(tmp_path / "nothing").load_latest() is None


class TestLoadAndList:
    """Tests for reading reports back."""

    def test_list_reports_sorted(self, tmp_path: Path, make_report: MakeReport) -> None:
        store = ReportStore(tmp_path)
        store.save_report(make_report(timestamp=datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)))
        store.save_report(make_report(timestamp=datetime(2026, 1, 2, 9, 0, 0, tzinfo=timezone.utc)))

        assert store.list_reports() == ["2026-01-02/09-00-00", "2026-03-01/09-00-00"]

    def test_list_reports_missing_root(self, tmp_path: Path) -> None:
        assert ReportStore(tmp_path / "missing").list_reports() == []

    def test_load_by_id_directory_and_file(self, tmp_path: Path, make_report: MakeReport) -> None:
        store = ReportStore(tmp_path)
        report = make_report()
        path = store.save_report(report)

        assert store.load_report("2026-01-31/14-05-09") == report
        assert store.load_report(path.parent) == report
        assert store.load_report(path) == report

    def test_load_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(PersistenceError):
            ReportStore(tmp_path).load_report("2026-01-01/00-00-00")

    def test_load_invalid_raises(self, tmp_path: Path) -> None:
        bad = tmp_path / "2026-01-01" / "00-00-00" / "report.json"
        bad.parent.mkdir(parents=True)
        bad.write_text('{"final_verdict": {}}', encoding="utf-8")

        with pytest.raises(PersistenceError, match="not a valid report"):
            ReportStore(tmp_path).load_report(bad)

"""Coverage extraction from text reporters and istanbul summary files.

The text reporter prints either a table whose "All files" row carries
statements | branches | functions | lines, or four "Label : N%" lines.
The table row wins whenever it is present. Unrecognized output yields
all-zero metrics rather than an error.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from splitcheck.models.result import CoverageMetrics
from splitcheck.parsing.text import strip_ansi

log = logging.getLogger(__name__)

METRICS = ("statements", "branches", "functions", "lines")

_NUMBER = r"(\d+(?:\.\d+)?)"
_TABLE_ROW_RE = re.compile(
    rf"All files[^|\n]*\|\s*{_NUMBER}\s*\|\s*{_NUMBER}\s*\|\s*{_NUMBER}\s*\|\s*{_NUMBER}"
)
_LABEL_RES = {
    metric: re.compile(rf"{metric.capitalize()}\s*:\s*{_NUMBER}\s*%")
    for metric in METRICS
}


def parse_coverage(raw_output: str) -> CoverageMetrics:
    """Extract coverage percentages from runner console output.

    Args:
        raw_output: Combined console output of a coverage-enabled run.

    Returns:
        CoverageMetrics; all zeros with ``parsed=False`` when neither the
        table row nor any labeled line is present.
    """
    text = strip_ansi(raw_output)

    match = _TABLE_ROW_RE.search(text)
    if match:
        values = [_clamp(float(v)) for v in match.groups()]
        return CoverageMetrics(**dict(zip(METRICS, values)), source="table", parsed=True)

    found: dict[str, float] = {}
    for metric, pattern in _LABEL_RES.items():
        label_match = pattern.search(text)
        if label_match:
            found[metric] = _clamp(float(label_match.group(1)))

    if found:
        return CoverageMetrics(**found, source="labels", parsed=True)

    log.warning("No coverage figures recognized in runner output")
    return CoverageMetrics()


def load_coverage_summary(path: Path) -> CoverageMetrics | None:
    """Read ``total.<metric>.pct`` from an istanbul coverage-summary.json.

    Returns:
        CoverageMetrics, or None if the file is missing, unreadable, or
        holds no numeric percentages.
    """
    if not path.exists():
        return None
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        log.warning("Could not read coverage summary %s: %s", path, exc)
        return None
    try:
        doc = json.loads(content)
    except ValueError:
        log.warning("Coverage summary %s is not valid JSON", path)
        return None

    total = doc.get("total") if isinstance(doc, dict) else None
    if not isinstance(total, dict):
        log.warning("Coverage summary %s has no 'total' section", path)
        return None

    values: dict[str, float] = {}
    for metric in METRICS:
        entry = total.get(metric)
        pct = entry.get("pct") if isinstance(entry, dict) else None
        # istanbul reports "Unknown" when a file has nothing to cover
        if isinstance(pct, (int, float)) and not isinstance(pct, bool):
            values[metric] = _clamp(float(pct))
    if not values:
        log.warning("Coverage summary %s has no numeric percentages", path)
        return None
    return CoverageMetrics(**values, source="summary", parsed=True)


def collect_coverage(raw_output: str, summary_path: Path | None = None) -> CoverageMetrics:
    """Prefer a coverage-summary.json artifact, fall back to console text.

    Args:
        raw_output: Console output of the coverage-enabled run.
        summary_path: Optional istanbul summary written by that run.
    """
    if summary_path is not None:
        from_summary = load_coverage_summary(summary_path)
        if from_summary is not None:
            return from_summary
    return parse_coverage(raw_output)


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))

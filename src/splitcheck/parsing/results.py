"""Test result extraction with structured-reporter-first, text fallback.

Runners without a stable output contract are read two ways behind one
entry point: a JSON reporter document when the output holds one, and
glyph/summary-phrase scanning of the console text otherwise. Callers
only see a ParsedTestRun and never need to know which strategy won.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from splitcheck.models.result import (
    ParsedTestRun,
    TestOutcome,
    TestStatus,
    TestSummary,
)
from splitcheck.parsing.text import extract_json_document, strip_ansi

log = logging.getLogger(__name__)

PASS_GLYPH = "✓"  # check mark
FAIL_GLYPHS = ("✗", "×")  # ballot x, multiplication sign

_DURATION = r"(?:\s+(\d+(?:\.\d+)?)\s?ms)?"
_PASS_LINE_RE = re.compile(rf"{PASS_GLYPH}\s+(.+?){_DURATION}$")
_FAIL_LINE_RE = re.compile(rf"[{''.join(FAIL_GLYPHS)}]\s+(.+?){_DURATION}$")
_SUMMARY_RE = re.compile(r"\b(\d+)\s+(passed|failed)\b")

_JSON_STATUS = {"passed": TestStatus.PASS, "failed": TestStatus.FAIL}


def parse_test_results(raw_output: str) -> ParsedTestRun:
    """Main entry point: extract pass/fail results from runner output.

    Tries a structured JSON reporter document first, then text scanning.
    Never raises; output with no recognizable results yields an empty,
    unsuccessful summary.

    Args:
        raw_output: Combined console output of one runner invocation.

    Returns:
        ParsedTestRun with summary and per-test outcomes.
    """
    structured = parse_json_results(raw_output)
    if structured is not None:
        return structured

    result = parse_text_results(raw_output)
    if not result.summary.parsed:
        log.warning("No test results recognized in runner output (%d chars)", len(raw_output))
    return result


def parse_text_results(raw_output: str) -> ParsedTestRun:
    """Extract outcomes from glyph lines and counts from summary phrases.

    Each line holding the pass glyph yields one PASS outcome, each line
    holding a fail glyph one FAIL outcome; lines whose glyph is not
    followed by a name are skipped. A "<N> passed" / "<N> failed" phrase
    raises the matching count when it is larger than the glyph count.
    """
    text = strip_ansi(raw_output)
    tests: list[TestOutcome] = []

    for line in text.split("\n"):
        line = line.rstrip()
        if PASS_GLYPH in line:
            outcome = _match_outcome(_PASS_LINE_RE, line, TestStatus.PASS)
        elif any(glyph in line for glyph in FAIL_GLYPHS):
            outcome = _match_outcome(_FAIL_LINE_RE, line, TestStatus.FAIL)
        else:
            continue
        if outcome is not None:
            tests.append(outcome)

    passed = sum(1 for t in tests if t.status == TestStatus.PASS)
    failed = len(tests) - passed

    summary_found = False
    for match in _SUMMARY_RE.finditer(text):
        summary_found = True
        count = int(match.group(1))
        if match.group(2) == "passed":
            passed = max(passed, count)
        else:
            failed = max(failed, count)

    if not tests and not summary_found:
        return ParsedTestRun(summary=TestSummary.empty())

    return ParsedTestRun(
        summary=TestSummary.from_counts(passed, failed, source="text"),
        tests=tests,
    )


def parse_json_results(raw_output: str) -> ParsedTestRun | None:
    """Read a jest/vitest or mocha JSON reporter document.

    Returns:
        ParsedTestRun, or None when the output holds no reporter document.
    """
    doc = extract_json_document(raw_output)
    if doc is None:
        return None
    if "numPassedTests" in doc or "numFailedTests" in doc:
        return _from_jest_document(doc)
    if isinstance(doc.get("stats"), dict):
        return _from_mocha_document(doc)
    return None


def _match_outcome(pattern: re.Pattern[str], line: str, status: TestStatus) -> TestOutcome | None:
    match = pattern.search(line)
    if match is None:
        return None
    name = match.group(1).strip()
    if not name:
        return None
    duration = float(match.group(2)) if match.group(2) else None
    return TestOutcome(name=name, status=status, duration_ms=duration)


def _from_jest_document(doc: dict[str, Any]) -> ParsedTestRun:
    tests: list[TestOutcome] = []
    for file_result in doc.get("testResults") or []:
        for assertion in file_result.get("assertionResults") or []:
            status = _JSON_STATUS.get(assertion.get("status", ""))
            if status is None:
                continue  # skipped / pending / todo
            tests.append(
                TestOutcome(
                    name=assertion.get("fullName") or assertion.get("title") or "<unnamed>",
                    status=status,
                    duration_ms=_as_float(assertion.get("duration")),
                )
            )

    listed_failed = sum(1 for t in tests if t.status == TestStatus.FAIL)
    listed_passed = len(tests) - listed_failed
    passed = max(_as_int(doc.get("numPassedTests")), listed_passed)
    failed = max(_as_int(doc.get("numFailedTests")), listed_failed)
    return ParsedTestRun(
        summary=TestSummary.from_counts(passed, failed, source="json"),
        tests=tests,
    )


def _from_mocha_document(doc: dict[str, Any]) -> ParsedTestRun:
    stats = doc["stats"]
    tests: list[TestOutcome] = []
    for key, status in (("passes", TestStatus.PASS), ("failures", TestStatus.FAIL)):
        for entry in doc.get(key) or []:
            if not isinstance(entry, dict):
                continue
            tests.append(
                TestOutcome(
                    name=entry.get("fullTitle") or entry.get("title") or "<unnamed>",
                    status=status,
                    duration_ms=_as_float(entry.get("duration")),
                )
            )
    return ParsedTestRun(
        summary=TestSummary.from_counts(
            _as_int(stats.get("passes")),
            _as_int(stats.get("failures")),
            source="json",
        ),
        tests=tests,
    )


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, int(value))


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)

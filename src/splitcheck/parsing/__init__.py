"""Parsers turning runner console output into structured results."""

from splitcheck.parsing.coverage import (
    collect_coverage,
    load_coverage_summary,
    parse_coverage,
)
from splitcheck.parsing.results import (
    parse_json_results,
    parse_test_results,
    parse_text_results,
)
from splitcheck.parsing.text import extract_json_document, strip_ansi

__all__ = [
    "collect_coverage",
    "extract_json_document",
    "load_coverage_summary",
    "parse_coverage",
    "parse_json_results",
    "parse_test_results",
    "parse_text_results",
    "strip_ansi",
]

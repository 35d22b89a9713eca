"""Helpers for cleaning console text before pattern matching."""

from __future__ import annotations

import json
import re

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
_OBJECT_START_RE = re.compile(r"^\s*\{", re.MULTILINE)


def strip_ansi(text: str) -> str:
    """Remove ANSI colour and cursor sequences and normalize newlines."""
    return _ANSI_RE.sub("", text).replace("\r\n", "\n").replace("\r", "\n")


def extract_json_document(text: str) -> dict | None:
    """Find a JSON object in runner output.

    Tries three strategies in order:
    1. Direct json.loads on the stripped text
    2. Decoding from every line that opens with '{'
    3. Brace extraction (first '{' to last '}')

    Args:
        text: Raw console output, possibly with banner lines around
            the JSON document.

    Returns:
        The first decoded dict, or None if no strategy yields one.
    """
    stripped = text.strip()
    if not stripped:
        return None

    # Strategy 1: the whole output is the document
    try:
        result = json.loads(stripped)
        if isinstance(result, dict):
            return result
    except ValueError:
        pass

    # Strategy 2: a document starting on its own line, trailing noise allowed
    decoder = json.JSONDecoder()
    for match in _OBJECT_START_RE.finditer(stripped):
        start = stripped.index("{", match.start())
        try:
            result, _ = decoder.raw_decode(stripped, start)
        except ValueError:
            continue
        if isinstance(result, dict):
            return result

    # Strategy 3: brace extraction
    first_brace = stripped.find("{")
    last_brace = stripped.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        try:
            result = json.loads(stripped[first_brace : last_brace + 1])
            if isinstance(result, dict):
                return result
        except ValueError:
            pass

    return None

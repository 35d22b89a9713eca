"""Exception base shared by every splitcheck infrastructure error."""

from __future__ import annotations


class SplitcheckError(Exception):
    """Base class for errors that abort an evaluation.

    Test failures, unparseable runner output and oracle mismatches are
    recorded as data and never raised through this hierarchy, with the
    single exception of OracleViolation, which is caught per variant.
    """

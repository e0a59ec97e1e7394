"""Error taxonomy for game operations."""

from __future__ import annotations


RESULT_OK = "ok"
RESULT_REJECTED = "rejected"
RESULT_NOT_FOUND = "not_found"
RESULT_INTERNAL_ERROR = "internal_error"


class InvariantViolation(RuntimeError):
    """Raised when board and roster state disagree or combat is misused.

    This signals a bug in the engine rather than an illegal player action.
    """

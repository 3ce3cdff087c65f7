"""Error taxonomy for the memo core.

Every error carries a ``kind`` string so callers (HTTP layer, CLI) can map it
to a user-visible message without matching on class names.
"""

from __future__ import annotations


class MemoError(Exception):
    """Base class for all memo core errors."""

    kind = "error"

    def __init__(self, message: str, memo_id: str | None = None) -> None:
        super().__init__(message)
        self.memo_id = memo_id

    def __str__(self) -> str:
        return self.args[0] if self.args else self.kind


class NotReadyError(MemoError):
    """The backend has no storage location configured."""

    kind = "not_ready"


class DecodeFailure(MemoError):
    """A single record could not be parsed. Always recovered by skipping it."""

    kind = "decode_failure"


class LastItemError(MemoError):
    """Refused to delete the only remaining memo."""

    kind = "last_item"


class IndexOutOfRangeError(MemoError, IndexError):
    kind = "index_out_of_range"


class NotFoundError(MemoError, KeyError):
    kind = "not_found"

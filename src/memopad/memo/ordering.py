"""Pure insert/update/delete/reorder transforms over an ordered memo list.

Nothing here performs I/O or mutates its inputs. Every function returns a new
list whose ``order`` values are exactly ``0..N-1`` in list sequence; the
caller persists the result through the repository.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from memopad.memo.errors import IndexOutOfRangeError, LastItemError, NotFoundError
from memopad.memo.migration import create_new_memo
from memopad.memo.models import Memo, now_ms


def renumber(memos: Iterable[Memo]) -> list[Memo]:
    """Assign each memo its position as ``order``. Unchanged memos are reused."""
    return [m if m.order == i else replace(m, order=i) for i, m in enumerate(memos)]


def find_index(memos: Sequence[Memo], memo_id: str) -> int:
    for i, memo in enumerate(memos):
        if memo.id == memo_id:
            return i
    raise NotFoundError(f"Memo {memo_id} not found", memo_id)


def insert_memo(
    memos: Sequence[Memo],
    title: str | None = None,
    body: str = "",
    now: int | None = None,
) -> tuple[list[Memo], Memo]:
    """Append a new memo. Returns the new list and the created memo."""
    overrides = {"body": body}
    if title is not None:
        overrides["title"] = title
    memo = create_new_memo(len(memos), now=now, **overrides)
    return [*memos, memo], memo


def update_memo(
    memos: Sequence[Memo],
    memo_id: str,
    title: str | None = None,
    body: str | None = None,
    now: int | None = None,
) -> tuple[list[Memo], Memo]:
    """Replace title and/or body; bumps ``updated_at``. Order is untouched."""
    index = find_index(memos, memo_id)
    current = memos[index]
    ts = now if now is not None else now_ms()
    updated = replace(
        current,
        title=current.title if title is None else title,
        body=current.body if body is None else body,
        updated_at=max(ts, current.created_at),
    )
    result = list(memos)
    result[index] = updated
    return result, updated


def delete_memo(memos: Sequence[Memo], memo_id: str) -> list[Memo]:
    """Remove a memo and close the gap. The last remaining memo cannot be deleted."""
    if len(memos) == 1:
        raise LastItemError("Cannot delete the last remaining memo", memo_id)
    index = find_index(memos, memo_id)
    return renumber([*memos[:index], *memos[index + 1 :]])


def reorder_memos(memos: Sequence[Memo], from_index: int, to_index: int) -> list[Memo]:
    """Move one memo from ``from_index`` to ``to_index`` (splice semantics)."""
    size = len(memos)
    for label, value in (("from_index", from_index), ("to_index", to_index)):
        if not 0 <= value < size:
            raise IndexOutOfRangeError(f"{label} {value} out of range [0, {size - 1}]")
    result = list(memos)
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return renumber(result)


def apply_ordered_ids(memos: Sequence[Memo], ordered_ids: Sequence[str]) -> list[Memo]:
    """Reorder by an explicit id sequence.

    Listed ids come first in the given order; unknown and repeated ids are
    ignored. Memos not listed follow in their previous relative order.
    """
    by_id = {m.id: m for m in memos}
    head: list[Memo] = []
    seen: set[str] = set()
    for memo_id in ordered_ids:
        if memo_id in by_id and memo_id not in seen:
            head.append(by_id[memo_id])
            seen.add(memo_id)
    tail = [m for m in memos if m.id not in seen]
    return renumber([*head, *tail])

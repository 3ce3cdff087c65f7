"""Load-time repair of memo collections and defaults for new memos."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Any

from memopad.memo.models import Memo, now_ms

logger = logging.getLogger(__name__)


def ensure_order_field(memos: list[Memo]) -> list[Memo]:
    """Give memos without an order their input position, then sort by order.

    ``sorted`` is stable, so duplicate orders keep their input sequence.
    """
    with_order = [
        replace(memo, order=index) if memo.order is None else memo
        for index, memo in enumerate(memos)
    ]
    return sorted(with_order, key=lambda m: m.order)


def dedupe_by_id(memos: list[Memo]) -> list[Memo]:
    """Keep one memo per id: the newest by ``updated_at``, at its first position."""
    chosen: dict[str, Memo] = {}
    for memo in memos:
        existing = chosen.get(memo.id)
        if existing is not None:
            logger.warning("Duplicate memo id %s; keeping newest", memo.id)
            if existing.updated_at >= memo.updated_at:
                continue
        chosen[memo.id] = memo
    return list(chosen.values())


def normalize(memos: list[Memo]) -> list[Memo]:
    """Apply every migration in sequence. Safe to call repeatedly."""
    result = list(memos)
    result = ensure_order_field(result)
    return result


def new_memo_id() -> str:
    return uuid.uuid4().hex


def create_new_memo(order: int, now: int | None = None, **overrides: Any) -> Memo:
    """A fresh memo at position ``order`` with default title and empty body."""
    ts = now if now is not None else now_ms()
    memo = Memo(
        id=new_memo_id(),
        title=f"new memo {order + 1}",
        body="",
        created_at=ts,
        updated_at=ts,
        order=order,
    )
    return replace(memo, **overrides) if overrides else memo


def create_initial_memos(count: int = 2, now: int | None = None) -> list[Memo]:
    """Seed collection for first run."""
    return [create_new_memo(i, now=now) for i in range(count)]

"""Shared fixtures and builders."""

from __future__ import annotations

from pathlib import Path

import pytest

from memopad.memo import codec
from memopad.memo.models import Memo


def make_memo(memo_id: str, order: int | None = 0, title: str | None = None, body: str = "") -> Memo:
    return Memo(
        id=memo_id,
        title=title if title is not None else f"memo {memo_id}",
        body=body,
        created_at=1_700_000_000_000,
        updated_at=1_700_000_000_000,
        order=order,
    )


def write_record(directory: Path, memo: Memo) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / memo.key
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(codec.encode(memo))
    return path


@pytest.fixture
def memo_dir(tmp_path: Path) -> Path:
    return tmp_path / "memos"

"""Memo data model."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass
class Memo:
    """A single note. ``order`` is None only for legacy records not yet migrated."""

    id: str
    title: str
    body: str
    created_at: int
    updated_at: int
    order: int | None = None

    @property
    def key(self) -> str:
        """Storage key (file name) for this memo."""
        return record_key(self.id)

    def to_dict(self) -> dict[str, Any]:
        """JSON shape shared with the legacy list and the REST layer."""
        data = asdict(self)
        return {
            "id": data["id"],
            "title": data["title"],
            "body": data["body"],
            "createdAt": data["created_at"],
            "updatedAt": data["updated_at"],
            "order": data["order"],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Memo:
        """Build a memo from its JSON shape. Missing timestamps fall back to now."""
        ts = now_ms()
        order = data.get("order")
        created = int(data.get("createdAt", ts))
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            body=str(data.get("body", "")),
            created_at=created,
            updated_at=int(data.get("updatedAt", created)),
            order=int(order) if order is not None else None,
        )


def record_key(memo_id: str) -> str:
    return f"{memo_id}.md"

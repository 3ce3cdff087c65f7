"""MemoPad orchestrator: in-memory app state on top of the memo core.

Responsibilities:
1. Start-up flow: location check → legacy import → load → seed on first run
2. Hold the ordered collection and the current selection
3. Apply ordering-engine transforms for add/update/delete/reorder
4. Persist: content edits and reorders through the autosaver, deletes immediately
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Literal

from memopad.memo.autosave import DEFAULT_DELAY, AutoSaver
from memopad.memo.backends import build_backend
from memopad.memo.errors import NotReadyError
from memopad.memo.legacy import LegacyListSource
from memopad.memo.migration import create_initial_memos
from memopad.memo.ordering import (
    apply_ordered_ids,
    delete_memo,
    find_index,
    insert_memo,
    renumber,
    reorder_memos,
    update_memo,
)
from memopad.memo.repository import MemoRepository

if TYPE_CHECKING:
    from memopad.config import MemoPadConfig
    from memopad.memo.backends import LocationPicker
    from memopad.memo.models import Memo

logger = logging.getLogger(__name__)

Status = Literal["loading", "need_location", "ready"]

INITIAL_MEMO_COUNT = 2


def _changed(before: list[Memo], after: list[Memo]) -> list[Memo]:
    """Memos in ``after`` that differ from their counterpart in ``before``."""
    old = {m.id: m for m in before}
    return [m for m in after if old.get(m.id) != m]


class MemoPad:
    """Caller-side state for one memo collection."""

    def __init__(
        self,
        repository: MemoRepository,
        legacy: LegacyListSource | None = None,
        autosave_delay: float = DEFAULT_DELAY,
    ) -> None:
        self.repository = repository
        self.legacy = legacy
        self.autosaver = AutoSaver(repository, delay=autosave_delay)
        self._memos: list[Memo] = []
        self.selected_id: str | None = None
        self.status: Status = "loading"
        # Held by callers around a mutation and its flush (one request at a time)
        self.lock = asyncio.Lock()
        self._delete_lock = asyncio.Lock()

    @property
    def memos(self) -> list[Memo]:
        return list(self._memos)

    def get(self, memo_id: str) -> Memo:
        return self._memos[find_index(self._memos, memo_id)]

    def require_ready(self) -> None:
        if self.status != "ready":
            raise NotReadyError("Select a memo location first")

    # ── Start-up ──────────────────────────────────────────────

    async def initialize(self) -> Status:
        self.status = "loading"
        if await self.repository.ensure_location_accessible():
            await self._import_legacy()
            await self._load()
            self.status = "ready"
            return self.status

        # No location yet: show legacy memos (or a seed set) without persisting
        memos = []
        if self.legacy is not None:
            memos = await self.repository.migrate_from_legacy(self.legacy)
        self._set_memos(memos or create_initial_memos(INITIAL_MEMO_COUNT))
        self.status = "need_location"
        logger.info("No memo location configured; %d memos held in memory", len(self._memos))
        return self.status

    async def select_location(self) -> bool:
        """Prompt for a location and load from it. False if the user cancelled."""
        if not await self.repository.request_location():
            return False
        await self._import_legacy()
        await self._load()
        self.status = "ready"
        return True

    async def _import_legacy(self) -> None:
        if self.legacy is not None and self.legacy.exists():
            # Imported memos go after whatever the location already holds
            existing = await self.repository.load_all()
            await self.repository.migrate_from_legacy(self.legacy, existing=existing)

    async def _load(self) -> None:
        memos = await self.repository.load_all()
        if not memos:
            memos = create_initial_memos(INITIAL_MEMO_COUNT)
            await self.repository.save_all(memos)
            logger.info("Seeded %d initial memos", len(memos))
        else:
            # Close gaps left by records removed outside the app
            repaired = renumber(memos)
            await self.repository.save_all(_changed(memos, repaired))
            memos = repaired
        self._set_memos(memos)

    def _set_memos(self, memos: list[Memo]) -> None:
        self._memos = memos
        self.selected_id = memos[0].id if memos else None

    # ── Actions ───────────────────────────────────────────────

    def select(self, memo_id: str) -> Memo:
        memo = self.get(memo_id)
        self.selected_id = memo.id
        return memo

    def add(self, title: str | None = None, body: str = "") -> Memo:
        self.require_ready()
        self._memos, memo = insert_memo(self._memos, title=title, body=body)
        self.autosaver.mark_dirty(memo)
        self.selected_id = memo.id
        return memo

    def update(self, memo_id: str, title: str | None = None, body: str | None = None) -> Memo:
        self.require_ready()
        self._memos, memo = update_memo(self._memos, memo_id, title=title, body=body)
        self.autosaver.mark_dirty(memo)
        return memo

    async def delete(self, memo_id: str) -> None:
        """Delete immediately. On a storage error the collection is left unchanged."""
        self.require_ready()
        async with self._delete_lock:
            # Raises NotFound, then LastItem, before storage is touched
            find_index(self._memos, memo_id)
            delete_memo(self._memos, memo_id)
            pending = self.autosaver.discard(memo_id)
            try:
                await self.repository.delete_one(memo_id)
            except Exception:
                if pending is not None:
                    self.autosaver.mark_dirty(pending)
                raise
            self.autosaver.discard(memo_id)

            # Other actions may have run during the write; apply to the current list
            deleted_index = find_index(self._memos, memo_id)
            before, self._memos = self._memos, delete_memo(self._memos, memo_id)
            self.autosaver.mark_dirty(*_changed(before, self._memos))
            if self.selected_id == memo_id:
                self.selected_id = self._memos[max(0, deleted_index - 1)].id

    def reorder(self, from_index: int, to_index: int) -> list[Memo]:
        self.require_ready()
        before, self._memos = self._memos, reorder_memos(self._memos, from_index, to_index)
        self.autosaver.mark_dirty(*_changed(before, self._memos))
        return self.memos

    def reorder_by_ids(self, ordered_ids: list[str]) -> list[Memo]:
        self.require_ready()
        before, self._memos = self._memos, apply_ordered_ids(self._memos, ordered_ids)
        self.autosaver.mark_dirty(*_changed(before, self._memos))
        return self.memos

    # ── Lifecycle ─────────────────────────────────────────────

    async def flush(self) -> int:
        return await self.autosaver.flush()

    async def close(self) -> None:
        await self.autosaver.close()


def build_memo_pad(config: MemoPadConfig, picker: LocationPicker | None = None) -> MemoPad:
    """Wire backend, repository and legacy source from configuration."""
    backend = build_backend(config.storage, picker=picker)
    return MemoPad(
        MemoRepository(backend),
        legacy=LegacyListSource(config.storage.legacy_path),
        autosave_delay=config.autosave.delay,
    )

"""Repository: uniform load/save/delete over any store backend.

Backends are synchronous; calls run in the default executor so the event
loop is never blocked on disk I/O or an interactive location picker. An
asyncio lock admits one backend call at a time, in arrival order, so two
writes never interleave on the medium.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any, TypeVar

from memopad.memo import codec
from memopad.memo.backends.base import check_key
from memopad.memo.migration import dedupe_by_id, normalize
from memopad.memo.models import Memo, record_key
from memopad.memo.ordering import renumber

if TYPE_CHECKING:
    from memopad.memo.backends.base import StoreBackend
    from memopad.memo.legacy import LegacyListSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MemoRepository:
    """Composes codec, backend and migration behind a small CRUD contract."""

    def __init__(self, backend: StoreBackend) -> None:
        self._backend = backend
        self._io_lock = asyncio.Lock()

    @property
    def backend(self) -> StoreBackend:
        return self._backend

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        async with self._io_lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, fn, *args)

    # ── Location ──────────────────────────────────────────────

    async def ensure_location_accessible(self) -> bool:
        """True if a location is already configured; never prompts."""
        return await self._run(self._backend.is_ready)

    async def request_location(self) -> bool:
        """Prompt for a location if needed. False means the user cancelled."""
        return await self._run(self._backend.request_access)

    # ── CRUD ──────────────────────────────────────────────────

    async def load_all(self) -> list[Memo]:
        """All decodable memos, migrated and sorted by order.

        Returns [] when no location is configured. Undecodable records are
        logged and skipped. A memo stored under a key other than its own is
        rewritten under ``{id}.md`` and the stray record removed, so a later
        delete by id cannot leave it behind.
        """
        if not await self.ensure_location_accessible():
            return []
        records = await self._run(self._backend.list)

        decoded: list[Memo] = []
        strays: dict[str, str] = {}
        for record in records:
            memo = codec.decode(record.text, record.key)
            if memo is None:
                continue
            try:
                check_key(memo.key)
            except ValueError:
                logger.warning("Skipping %s: id %r cannot name a record", record.key, memo.id)
                continue
            if record.key != memo.key:
                logger.warning("Record %s holds memo %s under a foreign key", record.key, memo.id)
                strays[record.key] = memo.id
            decoded.append(memo)

        memos = normalize(dedupe_by_id(decoded))
        if strays:
            await self._rehome(memos, strays)
        logger.debug("Loaded %d memos (%d records)", len(memos), len(records))
        return memos

    async def _rehome(self, memos: list[Memo], strays: dict[str, str]) -> None:
        # The chosen version is written to its own key before a stray goes,
        # so no data is lost if removing the stray fails.
        moved = set(strays.values())
        await self.save_all(m for m in memos if m.id in moved)
        for key in strays:
            try:
                await self._run(self._backend.delete, key)
            except ValueError as e:
                logger.error("Cannot remove stray record %s: %s", key, e)
            else:
                logger.info("Removed stray record %s", key)

    async def save_one(self, memo: Memo) -> None:
        """Encode and write one memo. Raises NotReadyError without a location."""
        await self._run(self._backend.write, memo.key, codec.encode(memo))

    async def save_all(self, memos: Iterable[Memo]) -> None:
        for memo in memos:
            await self.save_one(memo)

    async def delete_one(self, memo_id: str) -> None:
        """Delete by id. An already-absent record counts as success."""
        await self._run(self._backend.delete, record_key(memo_id))

    # ── Legacy import ─────────────────────────────────────────

    async def migrate_from_legacy(
        self, legacy: LegacyListSource, existing: Sequence[Memo] = ()
    ) -> list[Memo]:
        """Import the legacy flat list into this backend.

        Imported memos are appended after ``existing``: their orders start at
        ``len(existing)`` and ids already present are skipped. Only the
        imported memos are returned, whether or not they could be written.
        The legacy list is cleared once every memo has been written.
        """
        memos = await self._run(legacy.read)
        if not memos:
            return []
        known = {m.id for m in existing}
        fresh = [m for m in memos if m.id not in known]
        if len(fresh) < len(memos):
            skipped = sorted({m.id for m in memos if m.id in known})
            logger.warning("Legacy memos already present, not imported: %s", ", ".join(skipped))
        offset = len(existing)
        migrated = [
            replace(m, order=m.order + offset) for m in renumber(normalize(dedupe_by_id(fresh)))
        ]
        if not await self.ensure_location_accessible():
            return migrated

        await self.save_all(migrated)
        await self._run(legacy.clear)
        logger.info("Imported %d memos from legacy list", len(migrated))
        return migrated

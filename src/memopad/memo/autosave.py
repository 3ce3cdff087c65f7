"""Debounced persistence: a dirty set plus one resettable scheduled flush."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memopad.memo.models import Memo
    from memopad.memo.repository import MemoRepository

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 1.0  # seconds of quiet before a flush


class AutoSaver:
    """Collapse bursts of edits into a single write per dirty memo.

    Must be driven from the event loop thread. Each ``mark_dirty`` restarts
    the quiet-period timer; only the latest version of each memo is written.
    """

    def __init__(self, repository: MemoRepository, delay: float = DEFAULT_DELAY) -> None:
        self._repository = repository
        self.delay = delay
        self._dirty: dict[str, Memo] = {}
        self._timer: asyncio.Task | None = None
        self._in_flight: dict[str, Memo] = {}
        # One flush at a time, so an older batch never lands after a newer one
        self._flush_lock = asyncio.Lock()

    @property
    def pending(self) -> set[str]:
        return set(self._dirty)

    def mark_dirty(self, *memos: Memo) -> None:
        if not memos:
            return
        for memo in memos:
            self._dirty[memo.id] = memo
        self._reschedule()

    def discard(self, memo_id: str) -> Memo | None:
        """Forget a pending write, e.g. after the memo was deleted.

        Also cancels the write if it belongs to a flush still in progress.
        Returns the version that was pending, if any.
        """
        pending = self._dirty.pop(memo_id, None)
        in_flight = self._in_flight.pop(memo_id, None)
        return pending or in_flight

    def _reschedule(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._flush_later())

    async def _flush_later(self) -> None:
        await asyncio.sleep(self.delay)
        # Detach so a new mark_dirty starts a fresh timer instead of cancelling this flush
        self._timer = None
        try:
            await self.flush()
        except Exception as e:
            logger.error("Autosave failed, will retry on next change: %s", e)

    async def flush(self) -> int:
        """Write every dirty memo once. Returns the number saved.

        Memos whose write fails stay dirty; the first error is re-raised after
        the rest of the batch has been attempted.
        """
        async with self._flush_lock:
            batch, self._dirty = self._dirty, {}
            self._in_flight = dict(batch)
            saved = 0
            first_error: Exception | None = None
            try:
                for memo_id in batch:
                    memo = self._in_flight.get(memo_id)
                    if memo is None:
                        continue
                    try:
                        await self._repository.save_one(memo)
                        saved += 1
                    except Exception as e:
                        if memo_id in self._in_flight:
                            self._dirty.setdefault(memo_id, memo)
                        if first_error is None:
                            first_error = e
            finally:
                self._in_flight = {}
        if saved:
            logger.info("Autosaved %d memo(s)", saved)
        if first_error is not None:
            raise first_error
        return saved

    async def close(self) -> None:
        """Cancel the pending timer and flush whatever is left."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
        if self._dirty:
            await self.flush()

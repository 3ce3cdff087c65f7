"""Legacy flat-list storage: a JSON array of memo objects in one file.

Earlier revisions kept every memo in a single list (a browser key-value
entry). Records from that era may lack ``order``; they are repaired by
:func:`memopad.memo.migration.normalize` on import.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from memopad.memo.backends.base import check_key
from memopad.memo.models import Memo

logger = logging.getLogger(__name__)


class LegacyListSource:
    """Read-once source for the legacy flat list."""

    def __init__(self, path: Path | None) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path is not None and self.path.is_file()

    def read(self) -> list[Memo]:
        """Parse the list. Malformed entries are skipped; an unreadable file yields []."""
        if not self.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("Failed to read legacy list %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.error("Legacy list %s is not a JSON array", self.path)
            return []

        memos: list[Memo] = []
        for index, item in enumerate(data):
            if not isinstance(item, dict):
                logger.warning("Skipping legacy entry %d: not an object", index)
                continue
            try:
                memo = Memo.from_dict(item)
                check_key(memo.key)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping legacy entry %d: %s", index, e)
                continue
            memos.append(memo)
        return memos

    def clear(self) -> None:
        if self.path is not None:
            self.path.unlink(missing_ok=True)
            logger.info("Cleared legacy list %s", self.path)

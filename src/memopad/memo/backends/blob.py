"""Single-blob backend: every record in one JSON object keyed by record key.

The on-disk shape mirrors a browser key-value store entry:
``{"<id>.md": "<encoded record>", ...}``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path

from memopad.memo.backends.base import LocationPicker, RawRecord, check_key
from memopad.memo.errors import NotReadyError

logger = logging.getLogger(__name__)


class BlobBackend:
    """Keeps all records in a single JSON file."""

    def __init__(
        self,
        path: Path | None = None,
        picker: LocationPicker | None = None,
        create: bool = True,
    ) -> None:
        self._path = path
        self._picker = picker
        self._create = create
        # Serializes read-modify-write of the blob across executor threads
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "blob"

    @property
    def location(self) -> Path | None:
        return self._path

    def is_ready(self) -> bool:
        if self._path is None:
            return False
        if self._create:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        return self._path.parent.is_dir()

    def request_access(self) -> bool:
        if self.is_ready():
            return True
        if self._picker is None:
            return False
        try:
            chosen = self._picker()
        except EOFError:
            chosen = None
        if chosen is None:
            logger.info("Blob location selection cancelled")
            return False
        self._path = Path(chosen).expanduser()
        logger.info("Memo blob selected: %s", self._path)
        return self.is_ready()

    def list(self) -> list[RawRecord]:
        if not self.is_ready():
            return []
        with self._lock:
            data = self._load()
        if data is None:
            return []
        return [RawRecord(key=k, text=v) for k, v in data.items() if isinstance(v, str)]

    def write(self, key: str, text: str) -> None:
        self._require_ready()
        check_key(key)
        with self._lock:
            data = self._load_for_update()
            data[key] = text
            self._dump(data)
        logger.debug("Wrote %s into %s", key, self._path)

    def delete(self, key: str) -> None:
        self._require_ready()
        check_key(key)
        with self._lock:
            data = self._load_for_update()
            if data.pop(key, None) is None:
                return
            self._dump(data)
        logger.debug("Deleted %s from %s", key, self._path)

    # ── internals ─────────────────────────────────────────────

    def _require_ready(self) -> None:
        if not self.is_ready():
            raise NotReadyError("No memo blob location selected")

    def _load(self) -> dict[str, str] | None:
        """Read the blob. Returns None if it exists but cannot be parsed."""
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("Failed to read blob %s: %s", self._path, e)
            return None
        if not isinstance(data, dict):
            logger.error("Blob %s is not a JSON object", self._path)
            return None
        return data

    def _load_for_update(self) -> dict[str, str]:
        data = self._load()
        if data is None:
            # Keep the unreadable blob aside instead of overwriting it
            ts = datetime.now().strftime("%Y%m%dT%H%M%S")
            aside = self._path.with_name(f"{self._path.name}.corrupt-{ts}")
            self._path.rename(aside)
            logger.error("Moved unreadable blob to %s", aside)
            return {}
        return data

    def _dump(self, data: dict[str, str]) -> None:
        """Replace the blob atomically so readers never see a partial file."""
        fd, tmp = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

"""File-directory backend: one ``{id}.md`` file per memo."""

from __future__ import annotations

import logging
from pathlib import Path

from memopad.memo.backends.base import LocationPicker, RawRecord, check_key
from memopad.memo.errors import NotReadyError

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".md"


class DirectoryBackend:
    """Stores each record as a UTF-8 file inside a single directory."""

    def __init__(
        self,
        directory: Path | None = None,
        picker: LocationPicker | None = None,
        create: bool = True,
    ) -> None:
        self._directory = directory
        self._picker = picker
        self._create = create

    @property
    def name(self) -> str:
        return "directory"

    @property
    def location(self) -> Path | None:
        return self._directory

    def is_ready(self) -> bool:
        if self._directory is None:
            return False
        if self._create:
            self._directory.mkdir(parents=True, exist_ok=True)
        return self._directory.is_dir()

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
            logger.info("Directory selection cancelled")
            return False
        self._directory = Path(chosen).expanduser()
        logger.info("Memo directory selected: %s", self._directory)
        return self.is_ready()

    def list(self) -> list[RawRecord]:
        if not self.is_ready():
            return []
        records: list[RawRecord] = []
        for path in self._directory.glob(f"*{RECORD_SUFFIX}"):
            if not path.is_file():
                continue
            try:
                # newline="" keeps \r\n in bodies intact
                with path.open(encoding="utf-8", newline="") as f:
                    records.append(RawRecord(key=path.name, text=f.read()))
            except (OSError, UnicodeDecodeError) as e:
                logger.error("Failed to read %s: %s", path, e)
        return records

    def write(self, key: str, text: str) -> None:
        path = self._require_path(key)
        with path.open("w", encoding="utf-8", newline="") as f:
            f.write(text)
        logger.debug("Wrote %s (%d chars)", path, len(text))

    def delete(self, key: str) -> None:
        path = self._require_path(key)
        path.unlink(missing_ok=True)
        logger.debug("Deleted %s", path)

    def _require_path(self, key: str) -> Path:
        if not self.is_ready():
            raise NotReadyError("No memo directory selected")
        return self._directory / check_key(key)

"""Persistence media for memo records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from memopad.memo.backends.base import LocationPicker, RawRecord, StoreBackend
from memopad.memo.backends.blob import BlobBackend
from memopad.memo.backends.directory import DirectoryBackend

if TYPE_CHECKING:
    from memopad.config import StorageConfig

__all__ = [
    "BlobBackend",
    "DirectoryBackend",
    "LocationPicker",
    "RawRecord",
    "StoreBackend",
    "build_backend",
]


def build_backend(config: StorageConfig, picker: LocationPicker | None = None) -> StoreBackend:
    """Select the backend variant named in the storage config."""
    if config.backend == "directory":
        return DirectoryBackend(config.directory, picker=picker, create=config.create)
    if config.backend == "blob":
        return BlobBackend(config.blob_path, picker=picker, create=config.create)
    raise ValueError(f"Unknown storage backend '{config.backend}'. Available: directory, blob")

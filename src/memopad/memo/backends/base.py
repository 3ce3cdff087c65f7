"""Store backend protocol and shared types."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

# Interactive location chooser. Returns None when the user cancels.
LocationPicker = Callable[[], "Path | None"]


@dataclass
class RawRecord:
    """One stored record before decoding."""

    key: str
    text: str


@runtime_checkable
class StoreBackend(Protocol):
    """Protocol that all persistence media must implement.

    The selected location lives on the backend instance; there is no
    module-level handle.
    """

    @property
    def name(self) -> str: ...

    def is_ready(self) -> bool:
        """True if a storage location is configured and usable."""
        ...

    def request_access(self) -> bool:
        """Ask for a location if none is set. Idempotent once access is granted."""
        ...

    def list(self) -> list[RawRecord]:
        """All stored records in unspecified order. Empty if not ready."""
        ...

    def write(self, key: str, text: str) -> None:
        """Create or replace ``key``. Raises NotReadyError without a location."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key`` if present. Raises NotReadyError without a location."""
        ...


def check_key(key: str) -> str:
    """Reject keys that would escape the storage location."""
    if not key or key.startswith(".") or Path(key).name != key or "\\" in key:
        raise ValueError(f"Invalid record key: {key!r}")
    return key

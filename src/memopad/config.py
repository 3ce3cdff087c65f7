"""Configuration loading from environment variables and memopad.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_BASE_DIR = Path.home() / ".memopad"
_DEFAULT_MEMO_DIR = _BASE_DIR / "memos"
_DEFAULT_BLOB_PATH = _BASE_DIR / "memos.json"
_CONFIG_FILENAME = "memopad.toml"


def _optional_path(value: str | None) -> Path | None:
    """Empty string means "not configured" (the user will be prompted)."""
    if value is None or not str(value).strip():
        return None
    return Path(value).expanduser()


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class StorageConfig:
    """Where and how memos are persisted."""

    backend: str = "directory"
    directory: Path | None = _DEFAULT_MEMO_DIR
    blob_path: Path | None = _DEFAULT_BLOB_PATH
    legacy_path: Path | None = None
    create: bool = True


@dataclass
class AutosaveConfig:
    delay: float = 1.0


@dataclass
class ServerConfig:
    """REST server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080
    cors_origin: str = "http://localhost:3000"


@dataclass
class MemoPadConfig:
    """Top-level MemoPad configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    autosave: AutosaveConfig = field(default_factory=AutosaveConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> MemoPadConfig:
    """Load configuration from environment variables and optional memopad.toml.

    Priority: environment variables > memopad.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.memopad/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _BASE_DIR / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    storage_data = file_data.get("storage", {})
    autosave_data = file_data.get("autosave", {})
    server_data = file_data.get("server", {})

    config = MemoPadConfig(
        storage=StorageConfig(
            backend=os.getenv("MEMOPAD_BACKEND", storage_data.get("backend", "directory")),
            directory=_optional_path(
                os.getenv("MEMOPAD_DIR", storage_data.get("directory", str(_DEFAULT_MEMO_DIR)))
            ),
            blob_path=_optional_path(
                os.getenv("MEMOPAD_BLOB", storage_data.get("blob_path", str(_DEFAULT_BLOB_PATH)))
            ),
            legacy_path=_optional_path(
                os.getenv("MEMOPAD_LEGACY", storage_data.get("legacy_path"))
            ),
            create=_as_bool(storage_data.get("create", True)),
        ),
        autosave=AutosaveConfig(
            delay=float(os.getenv("MEMOPAD_AUTOSAVE_DELAY", autosave_data.get("delay", 1.0))),
        ),
        server=ServerConfig(
            host=os.getenv("MEMOPAD_HOST", server_data.get("host", "127.0.0.1")),
            port=int(os.getenv("MEMOPAD_PORT", server_data.get("port", 8080))),
            cors_origin=server_data.get("cors_origin", "http://localhost:3000"),
        ),
        log_level=os.getenv("MEMOPAD_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config

"""Tests for configuration loading."""

import pytest
from pathlib import Path

from memopad.config import load_config

_ENV_KEYS = [
    "MEMOPAD_BACKEND",
    "MEMOPAD_DIR",
    "MEMOPAD_BLOB",
    "MEMOPAD_LEGACY",
    "MEMOPAD_AUTOSAVE_DELAY",
    "MEMOPAD_HOST",
    "MEMOPAD_PORT",
    "MEMOPAD_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.storage.backend == "directory"
        assert config.storage.directory.name == "memos"
        assert config.storage.legacy_path is None
        assert config.autosave.delay == 1.0
        assert config.server.port == 8080

    def test_env_override(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("MEMOPAD_BACKEND", "blob")
        monkeypatch.setenv("MEMOPAD_BLOB", str(tmp_path / "store.json"))
        monkeypatch.setenv("MEMOPAD_AUTOSAVE_DELAY", "0.5")
        monkeypatch.setenv("MEMOPAD_PORT", "9001")

        config = load_config()
        assert config.storage.backend == "blob"
        assert config.storage.blob_path == tmp_path / "store.json"
        assert config.autosave.delay == 0.5
        assert config.server.port == 9001

    def test_empty_dir_means_unconfigured(self, monkeypatch):
        monkeypatch.setenv("MEMOPAD_DIR", "")
        assert load_config().storage.directory is None

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "memopad.toml"
        toml_path.write_text("""
log_level = "DEBUG"

[storage]
directory = "notes"
legacy_path = "old-memos.json"
create = false

[server]
port = 8181
cors_origin = "http://example.test"
""")
        config = load_config(toml_path)
        assert config.storage.directory == Path("notes")
        assert config.storage.legacy_path == Path("old-memos.json")
        assert config.storage.create is False
        assert config.server.port == 8181
        assert config.server.cors_origin == "http://example.test"
        assert config.log_level == "DEBUG"

    def test_toml_discovered_in_cwd(self, tmp_path: Path):
        (tmp_path / "memopad.toml").write_text('[autosave]\ndelay = 2.5\n')
        assert load_config().autosave.delay == 2.5

    def test_env_overrides_toml(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("MEMOPAD_BACKEND", "blob")

        toml_path = tmp_path / "memopad.toml"
        toml_path.write_text("""
[storage]
backend = "directory"
""")
        config = load_config(toml_path)
        assert config.storage.backend == "blob"  # env wins

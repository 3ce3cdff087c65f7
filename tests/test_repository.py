"""Tests for the repository orchestrator."""

from __future__ import annotations

import asyncio
import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from memopad.memo import codec
from memopad.memo.backends import BlobBackend, DirectoryBackend
from memopad.memo.errors import NotReadyError
from memopad.memo.legacy import LegacyListSource
from memopad.memo.repository import MemoRepository

from conftest import make_memo, write_record


@pytest.fixture
def repo(memo_dir: Path) -> MemoRepository:
    return MemoRepository(DirectoryBackend(memo_dir))


class TestLoadAll:
    @pytest.mark.asyncio
    async def test_skips_undecodable_records(self, repo: MemoRepository, memo_dir: Path):
        write_record(memo_dir, make_memo("second", order=1))
        write_record(memo_dir, make_memo("first", order=0))
        (memo_dir / "broken.md").write_text("no front matter at all", encoding="utf-8")

        memos = await repo.load_all()
        assert [m.id for m in memos] == ["first", "second"]
        assert [m.order for m in memos] == [0, 1]

    @pytest.mark.asyncio
    async def test_not_ready_returns_empty(self):
        repo = MemoRepository(DirectoryBackend(None))
        assert await repo.load_all() == []
        assert await repo.ensure_location_accessible() is False

    @pytest.mark.asyncio
    async def test_duplicate_ids_keep_newest(
        self, repo: MemoRepository, memo_dir: Path, tmp_path: Path
    ):
        write_record(memo_dir, make_memo("dup", title="old"))
        newer = make_memo("dup", title="new")
        newer.updated_at += 10
        write_record(tmp_path / "elsewhere", newer).rename(memo_dir / "copy-of-dup.md")

        memos = await repo.load_all()
        assert len(memos) == 1
        assert memos[0].title == "new"
        assert sorted(p.name for p in memo_dir.iterdir()) == ["dup.md"]
        assert (await repo.load_all())[0].title == "new"

    @pytest.mark.asyncio
    async def test_foreign_key_moved_to_own_key(
        self, repo: MemoRepository, memo_dir: Path, tmp_path: Path
    ):
        write_record(memo_dir, make_memo("keep", order=0))
        write_record(tmp_path / "elsewhere", make_memo("abc", order=1)).rename(
            memo_dir / "other.md"
        )

        assert [m.id for m in await repo.load_all()] == ["keep", "abc"]
        assert sorted(p.name for p in memo_dir.iterdir()) == ["abc.md", "keep.md"]

        await repo.delete_one("abc")
        assert [m.id for m in await repo.load_all()] == ["keep"]

    @pytest.mark.asyncio
    async def test_foreign_key_in_blob(self, tmp_path: Path):
        blob = tmp_path / "memos.json"
        memo = make_memo("abc")
        blob.write_text(json.dumps({"other.md": codec.encode(memo)}), encoding="utf-8")
        repo = MemoRepository(BlobBackend(blob))

        assert await repo.load_all() == [memo]
        assert list(json.loads(blob.read_text(encoding="utf-8"))) == ["abc.md"]

    @pytest.mark.asyncio
    async def test_id_unusable_as_key_skipped(self, tmp_path: Path):
        blob = tmp_path / "memos.json"
        blob.write_text(
            json.dumps({
                "other.md": codec.encode(make_memo("a/b")),
                "ok.md": codec.encode(make_memo("ok")),
            }),
            encoding="utf-8",
        )
        repo = MemoRepository(BlobBackend(blob))
        assert [m.id for m in await repo.load_all()] == ["ok"]


class TestSaveDelete:
    @pytest.mark.asyncio
    async def test_save_then_load(self, repo: MemoRepository, memo_dir: Path):
        memo = make_memo("abc", order=0, title='with "quotes"', body="body\n")
        await repo.save_one(memo)
        assert (memo_dir / "abc.md").exists()
        assert await repo.load_all() == [memo]

    @pytest.mark.asyncio
    async def test_save_not_ready_propagates(self):
        repo = MemoRepository(DirectoryBackend(None))
        with pytest.raises(NotReadyError):
            await repo.save_one(make_memo("a"))

    @pytest.mark.asyncio
    async def test_delete_absent_is_success(self, repo: MemoRepository):
        await repo.delete_one("does-not-exist")

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, repo: MemoRepository, memo_dir: Path):
        await repo.save_one(make_memo("gone"))
        await repo.delete_one("gone")
        assert not (memo_dir / "gone.md").exists()

    @pytest.mark.asyncio
    async def test_blob_backend(self, tmp_path: Path):
        repo = MemoRepository(BlobBackend(tmp_path / "memos.json"))
        await repo.save_all([make_memo("b", order=1), make_memo("a", order=0)])
        assert [m.id for m in await repo.load_all()] == ["a", "b"]


class TestConcurrentWrites:
    @pytest.mark.asyncio
    async def test_overlapping_blob_saves_all_land(self, tmp_path: Path):
        blob = tmp_path / "memos.json"
        repo = MemoRepository(BlobBackend(blob))
        memos = [make_memo(f"m{i:02d}", order=i) for i in range(40)]

        await asyncio.gather(*(repo.save_one(m) for m in memos))

        assert [m.id for m in await repo.load_all()] == [m.id for m in memos]
        assert sorted(p.name for p in tmp_path.iterdir()) == ["memos.json"]

    @pytest.mark.asyncio
    async def test_overlapping_saves_and_deletes(self, tmp_path: Path):
        repo = MemoRepository(BlobBackend(tmp_path / "memos.json"))
        await repo.save_all(make_memo(f"old{i}", order=i) for i in range(10))

        await asyncio.gather(
            *(repo.delete_one(f"old{i}") for i in range(10)),
            *(repo.save_one(make_memo(f"new{i}", order=i)) for i in range(10)),
        )

        assert [m.id for m in await repo.load_all()] == [f"new{i}" for i in range(10)]

    def test_blob_threads_do_not_lose_updates(self, tmp_path: Path):
        backend = BlobBackend(tmp_path / "memos.json")
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda i: backend.write(f"k{i}.md", str(i)), range(50)))
        assert len(backend.list()) == 50


class TestRequestLocation:
    @pytest.mark.asyncio
    async def test_cancelled(self):
        repo = MemoRepository(DirectoryBackend(None, picker=lambda: None))
        assert await repo.request_location() is False

    @pytest.mark.asyncio
    async def test_selected(self, tmp_path: Path):
        repo = MemoRepository(DirectoryBackend(None, picker=lambda: tmp_path / "picked"))
        assert await repo.request_location() is True
        await repo.save_one(make_memo("a"))
        assert (tmp_path / "picked" / "a.md").exists()


def _write_legacy(path: Path) -> Path:
    path.write_text(
        json.dumps([
            {"id": "x", "title": "X", "body": "bx", "createdAt": 1, "updatedAt": 1},
            {"id": "y", "title": "Y", "body": "by", "createdAt": 2, "updatedAt": 2},
        ]),
        encoding="utf-8",
    )
    return path


class TestLegacyMigration:
    @pytest.mark.asyncio
    async def test_import_writes_and_clears(self, repo: MemoRepository, tmp_path: Path):
        legacy = LegacyListSource(_write_legacy(tmp_path / "legacy.json"))
        migrated = await repo.migrate_from_legacy(legacy)

        assert [(m.id, m.order) for m in migrated] == [("x", 0), ("y", 1)]
        assert not legacy.exists()
        assert [m.id for m in await repo.load_all()] == ["x", "y"]

    @pytest.mark.asyncio
    async def test_not_ready_keeps_legacy(self, tmp_path: Path):
        repo = MemoRepository(DirectoryBackend(None))
        legacy = LegacyListSource(_write_legacy(tmp_path / "legacy.json"))
        migrated = await repo.migrate_from_legacy(legacy)

        assert [m.order for m in migrated] == [0, 1]
        assert legacy.exists()

    @pytest.mark.asyncio
    async def test_repeated_id_imported_once(self, repo: MemoRepository, tmp_path: Path):
        path = tmp_path / "legacy.json"
        path.write_text(
            json.dumps([
                {"id": "x", "title": "first x", "createdAt": 1, "updatedAt": 1},
                {"id": "y", "title": "Y", "createdAt": 2, "updatedAt": 2},
                {"id": "x", "title": "edited x", "createdAt": 1, "updatedAt": 5},
            ]),
            encoding="utf-8",
        )
        migrated = await repo.migrate_from_legacy(LegacyListSource(path))

        assert [(m.id, m.title, m.order) for m in migrated] == [
            ("x", "edited x", 0),
            ("y", "Y", 1),
        ]
        assert [m.id for m in await repo.load_all()] == ["x", "y"]

    @pytest.mark.asyncio
    async def test_appended_after_existing(self, repo: MemoRepository, tmp_path: Path):
        existing = [make_memo("a", order=0), make_memo("b", order=1), make_memo("x", order=2)]
        await repo.save_all(existing)
        legacy = LegacyListSource(_write_legacy(tmp_path / "legacy.json"))

        migrated = await repo.migrate_from_legacy(legacy, existing=existing)

        assert [(m.id, m.order) for m in migrated] == [("y", 3)]
        loaded = await repo.load_all()
        assert [(m.id, m.order) for m in loaded] == [("a", 0), ("b", 1), ("x", 2), ("y", 3)]
        assert loaded[2].title == "memo x"

    @pytest.mark.asyncio
    async def test_no_legacy(self, repo: MemoRepository, tmp_path: Path):
        assert await repo.migrate_from_legacy(LegacyListSource(tmp_path / "none.json")) == []

"""Tests for services/workspace_cache.py."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path

from stencila_action.core.result import Err, Ok, Result
from stencila_action.output.console import MockConsole
from stencila_action.services.workspace_cache import (
    CACHE_SUBDIR,
    CacheError,
    CacheStore,
    LocalCacheStore,
    WorkspaceCacheManager,
    cache_keys,
)


def _write_cache(workspace: Path, content: str) -> Path:
    cache = workspace / CACHE_SUBDIR
    cache.mkdir(parents=True, exist_ok=True)
    (cache / "db").write_text(content, encoding="utf-8")
    return cache


class TestCacheKeys:
    def test_shape(self) -> None:
        keys = cache_keys("linux", "x64", "v2.3.0", "abc123")
        assert keys.primary == "stencila-cache-linux-x64-v2.3.0-abc123"
        assert keys.fallbacks == (
            "stencila-cache-linux-x64-v2.3.0-",
            "stencila-cache-linux-x64-",
        )

    def test_candidates_most_specific_first(self) -> None:
        keys = cache_keys("darwin", "arm64", "v2.3.0", "sha")
        assert keys.candidates == (keys.primary, *keys.fallbacks)

    def test_every_candidate_prefixes_primary(self) -> None:
        keys = cache_keys("windows", "x64", "v2.3.0", "sha")
        assert all(keys.primary.startswith(c) for c in keys.candidates)


class TestLocalCacheStore:
    def test_protocol(self, tmp_path: Path) -> None:
        assert isinstance(LocalCacheStore(tmp_path, workspace=tmp_path), CacheStore)

    def test_save_then_restore_exact(self, tmp_path: Path) -> None:
        ws = tmp_path / "ws"
        cache = _write_cache(ws, "v1")
        store = LocalCacheStore(tmp_path / "store", workspace=ws)

        assert isinstance(store.save([cache], "k-1"), Ok)
        (cache / "db").unlink()

        assert store.restore([cache], "k-1") == Ok("k-1")
        assert (cache / "db").read_text(encoding="utf-8") == "v1"

    def test_restore_into_other_checkout(self, tmp_path: Path) -> None:
        store_dir = tmp_path / "store"
        first = tmp_path / "one"
        LocalCacheStore(store_dir, workspace=first).save([_write_cache(first, "x")], "k")

        second = tmp_path / "two"
        second.mkdir()
        store = LocalCacheStore(store_dir, workspace=second)

        assert store.restore([second / CACHE_SUBDIR], "k") == Ok("k")
        assert (second / CACHE_SUBDIR / "db").exists()

    def test_save_existing_key(self, tmp_path: Path) -> None:
        ws = tmp_path / "ws"
        cache = _write_cache(ws, "v1")
        store = LocalCacheStore(tmp_path / "store", workspace=ws)
        store.save([cache], "k")

        result = store.save([cache], "k")

        assert isinstance(result, Err)
        assert result.error.kind == "exists"

    def test_prefix_fallback_prefers_newest(self, tmp_path: Path) -> None:
        ws = tmp_path / "ws"
        store_dir = tmp_path / "store"
        store = LocalCacheStore(store_dir, workspace=ws)
        cache = _write_cache(ws, "old")
        store.save([cache], "p-v1-aaa")
        _write_cache(ws, "new")
        store.save([cache], "p-v1-bbb")

        index_path = store_dir / "index.json"
        index = json.loads(index_path.read_text(encoding="utf-8"))
        index["p-v1-aaa"]["created"] = "2026-01-01T00:00:00+00:00"
        index["p-v1-bbb"]["created"] = "2026-02-01T00:00:00+00:00"
        index_path.write_text(json.dumps(index), encoding="utf-8")

        result = store.restore([cache], "p-v1-ccc", ["p-v1-", "p-"])

        assert result == Ok("p-v1-bbb")
        assert (cache / "db").read_text(encoding="utf-8") == "new"

    def test_fallback_order(self, tmp_path: Path) -> None:
        """The version prefix is tried before the platform prefix."""
        ws = tmp_path / "ws"
        store = LocalCacheStore(tmp_path / "store", workspace=ws)
        cache = _write_cache(ws, "x")
        store.save([cache], "p-v0-zzz")
        store.save([cache], "p-v1-aaa")

        assert store.restore([cache], "p-v1-new", ["p-v1-", "p-"]) == Ok("p-v1-aaa")
        assert store.restore([cache], "p-v2-new", ["p-v2-", "p-"]).is_ok()

    def test_oldest_entries_evicted(self, tmp_path: Path) -> None:
        ws = tmp_path / "ws"
        store_dir = tmp_path / "store"
        store = LocalCacheStore(store_dir, workspace=ws, max_entries=2)
        cache = _write_cache(ws, "x")
        store.save([cache], "k-1")
        first_archive = json.loads((store_dir / "index.json").read_text(encoding="utf-8"))[
            "k-1"
        ]["archive"]

        store.save([cache], "k-2")
        store.save([cache], "k-3")

        index = json.loads((store_dir / "index.json").read_text(encoding="utf-8"))
        assert sorted(index) == ["k-2", "k-3"]
        assert not (store_dir / first_archive).exists()
        assert len(list(store_dir.glob("*.tar.gz"))) == 2
        assert store.restore([cache], "k-1") == Ok(None)

    def test_miss(self, tmp_path: Path) -> None:
        store = LocalCacheStore(tmp_path / "store", workspace=tmp_path)
        assert store.restore([tmp_path / CACHE_SUBDIR], "k", ["k-"]) == Ok(None)

    def test_corrupt_archive(self, tmp_path: Path) -> None:
        ws = tmp_path / "ws"
        store_dir = tmp_path / "store"
        store = LocalCacheStore(store_dir, workspace=ws)
        store.save([_write_cache(ws, "x")], "k")
        for archive in store_dir.glob("*.tar.gz"):
            archive.write_bytes(b"garbage")

        result = store.restore([ws / CACHE_SUBDIR], "k")

        assert isinstance(result, Err)
        assert result.error.kind == "corrupt"


class _FailingStore:
    def __init__(self, error: CacheError) -> None:
        self.error = error
        self.saved: list[str] = []

    def restore(
        self, paths: Sequence[Path], key: str, restore_keys: Sequence[str] = ()
    ) -> Result[str | None, CacheError]:
        return Err(self.error)

    def save(self, paths: Sequence[Path], key: str) -> Result[int, CacheError]:
        self.saved.append(key)
        return Err(self.error)


class TestWorkspaceCacheManager:
    def _manager(
        self, tmp_path: Path, store: CacheStore, console: MockConsole
    ) -> WorkspaceCacheManager:
        return WorkspaceCacheManager(
            store=store,
            keys=cache_keys("linux", "x64", "v2.3.0", "sha"),
            workdir=tmp_path,
            console=console,
        )

    def test_restore_miss_is_clean_state(self, tmp_path: Path) -> None:
        console = MockConsole()
        store = LocalCacheStore(tmp_path / "store", workspace=tmp_path)
        assert self._manager(tmp_path, store, console).restore() is None
        assert not console.has_warning()
        assert console.find("No Stencila cache found")

    def test_restore_failure_warns(self, tmp_path: Path) -> None:
        console = MockConsole()
        store = _FailingStore(CacheError(kind="io", message="disk full"))
        assert self._manager(tmp_path, store, console).restore() is None
        assert console.find("Failed to restore Stencila cache: disk full")

    def test_save_skipped_without_directory(self, tmp_path: Path) -> None:
        console = MockConsole()
        store = _FailingStore(CacheError(kind="io", message="unused"))
        assert self._manager(tmp_path, store, console).save() is False
        assert store.saved == []

    def test_save_twice_is_idempotent(self, tmp_path: Path) -> None:
        """A second save under the same key is a success, not a warning."""
        console = MockConsole()
        _write_cache(tmp_path, "x")
        store = LocalCacheStore(tmp_path / "store", workspace=tmp_path)
        manager = self._manager(tmp_path, store, console)

        assert manager.save() is True
        assert manager.save() is True
        assert not console.has_warning()
        assert console.find("already saved")

    def test_save_failure_warns(self, tmp_path: Path) -> None:
        console = MockConsole()
        _write_cache(tmp_path, "x")
        store = _FailingStore(CacheError(kind="io", message="quota"))
        assert self._manager(tmp_path, store, console).save() is False
        assert console.has_warning()

"""Tests for tools/tool_cache.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from stencila_action.tools.tool_cache import LocalToolCache, ToolCache


def _source(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "stencila").write_text("bin")
    return src


class TestLocalToolCache:
    def test_protocol(self, tmp_path: Path) -> None:
        assert isinstance(LocalToolCache(tmp_path), ToolCache)

    def test_miss(self, tmp_path: Path) -> None:
        assert LocalToolCache(tmp_path / "cache").find("stencila", "v2.3.0", "x64") is None

    def test_commit_then_find(self, tmp_path: Path) -> None:
        cache = LocalToolCache(tmp_path / "cache")
        committed = cache.cache_dir(_source(tmp_path), "stencila", "v2.3.0", "x64")

        assert committed == tmp_path / "cache" / "stencila" / "v2.3.0" / "x64"
        assert (committed / "stencila").read_text() == "bin"
        assert (tmp_path / "cache" / "stencila" / "v2.3.0" / "x64.complete").exists()
        assert cache.find("stencila", "v2.3.0", "x64") == committed

    def test_partial_install_ignored(self, tmp_path: Path) -> None:
        """A directory without its marker is not a hit."""
        partial = tmp_path / "cache" / "stencila" / "v2.3.0" / "x64"
        partial.mkdir(parents=True)
        assert LocalToolCache(tmp_path / "cache").find("stencila", "v2.3.0", "x64") is None

    def test_keyed_by_version_and_arch(self, tmp_path: Path) -> None:
        cache = LocalToolCache(tmp_path / "cache")
        cache.cache_dir(_source(tmp_path), "stencila", "v2.3.0", "x64")
        assert cache.find("stencila", "v2.4.0", "x64") is None
        assert cache.find("stencila", "v2.3.0", "arm64") is None

    def test_recommit_replaces(self, tmp_path: Path) -> None:
        cache = LocalToolCache(tmp_path / "cache")
        src = _source(tmp_path)
        committed = cache.cache_dir(src, "stencila", "v2.3.0", "x64")
        (committed / "stale").write_text("x")

        cache.cache_dir(src, "stencila", "v2.3.0", "x64")

        assert not (committed / "stale").exists()

    def test_copy_failure_leaves_no_marker(self, tmp_path: Path) -> None:
        cache = LocalToolCache(tmp_path / "cache")
        with pytest.raises(OSError):
            cache.cache_dir(tmp_path / "missing", "stencila", "v2.3.0", "x64")
        assert cache.find("stencila", "v2.3.0", "x64") is None

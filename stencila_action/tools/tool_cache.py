"""Versioned tool cache.

Installed tools live under ``{root}/{name}/{version}/{arch}/``, the layout the
hosted runners' ``RUNNER_TOOL_CACHE`` uses, with a ``{arch}.complete`` marker
written last. A directory without its marker is a partial install and is
never returned by :meth:`LocalToolCache.find`.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Protocol, runtime_checkable

__all__ = ["LocalToolCache", "ToolCache"]


@runtime_checkable
class ToolCache(Protocol):
    """Protocol for the tool/version cache."""

    def find(self, name: str, version: str, arch: str) -> Path | None:
        """Return the cached directory for (name, version, arch), or None."""
        ...

    def cache_dir(self, source: Path, name: str, version: str, arch: str) -> Path:
        """Copy ``source`` into the cache and return the committed directory."""
        ...


class LocalToolCache:
    """Tool cache rooted at a local directory.

    Usage:
        cache = LocalToolCache(Path(os.environ["RUNNER_TOOL_CACHE"]))
        hit = cache.find("stencila", "v2.3.0", "x64")
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def _dir(self, name: str, version: str, arch: str) -> Path:
        return self._root / name / version / arch

    def _marker(self, name: str, version: str, arch: str) -> Path:
        return self._root / name / version / f"{arch}.complete"

    def find(self, name: str, version: str, arch: str) -> Path | None:
        path = self._dir(name, version, arch)
        if self._marker(name, version, arch).exists() and path.is_dir():
            return path
        return None

    def cache_dir(self, source: Path, name: str, version: str, arch: str) -> Path:
        """Commit ``source`` under (name, version, arch).

        Raises:
            OSError: If copying fails. The marker is not written in that case.
        """
        dest = self._dir(name, version, arch)
        marker = self._marker(name, version, arch)

        marker.unlink(missing_ok=True)
        if dest.exists():
            shutil.rmtree(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)

        shutil.copytree(source, dest)
        marker.write_text("", encoding="utf-8")
        return dest

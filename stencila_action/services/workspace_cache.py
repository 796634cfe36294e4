"""Persisting Stencila's own working cache between runs.

Stencila keeps a cache under ``<working-directory>/.stencila/cache``. It is
restored before the user's command and saved after it, under keys scoped by
platform, concrete CLI version and build:

    stencila-cache-linux-x64-v2.3.0-<sha>     exact
    stencila-cache-linux-x64-v2.3.0-          same version, any build
    stencila-cache-linux-x64-                 same platform, any version

Restore takes the first candidate that matches. Failures never fail the run.
"""

from __future__ import annotations

import hashlib
import json
import tarfile
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

from stencila_action.core.result import Err, Ok, Result
from stencila_action.core.structured import as_str_dict
from stencila_action.platform.files import atomic_write_text

if TYPE_CHECKING:
    from stencila_action.output.console import ConsoleProtocol

__all__ = [
    "CACHE_SUBDIR",
    "CacheError",
    "CacheKeys",
    "CacheStore",
    "LocalCacheStore",
    "WorkspaceCacheManager",
    "cache_keys",
]

CACHE_SUBDIR = Path(".stencila") / "cache"
KEY_PREFIX = "stencila-cache"


@dataclass(frozen=True, slots=True)
class CacheKeys:
    """Primary key plus fallback prefixes, most specific first."""

    primary: str
    fallbacks: tuple[str, ...]

    @property
    def candidates(self) -> tuple[str, ...]:
        return (self.primary, *self.fallbacks)


def cache_keys(os_key: str, arch: str, version: str, build_identity: str) -> CacheKeys:
    """Build the workspace cache keys.

    ``version`` must be the concrete version; keying on "latest" would let a
    cache written by one release be restored for another.
    """
    platform_scope = f"{KEY_PREFIX}-{os_key}-{arch}-"
    version_scope = f"{platform_scope}{version}-"
    return CacheKeys(
        primary=f"{version_scope}{build_identity}",
        fallbacks=(version_scope, platform_scope),
    )


@dataclass(frozen=True, slots=True)
class CacheError:
    """Cache store failure. ``exists`` means the key was already saved."""

    kind: Literal["exists", "io", "corrupt"]
    message: str

    def __str__(self) -> str:
        return self.message


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for a key/value store of directory snapshots."""

    def restore(
        self,
        paths: Sequence[Path],
        key: str,
        restore_keys: Sequence[str] = (),
    ) -> Result[str | None, CacheError]:
        """Restore ``paths`` from ``key`` or the newest entry matching a prefix.

        Returns:
            Ok with the matched key, Ok(None) if nothing matched
        """
        ...

    def save(self, paths: Sequence[Path], key: str) -> Result[int, CacheError]:
        """Save ``paths`` under ``key``; Err(kind="exists") if already present.

        Returns:
            Ok with the stored size in bytes
        """
        ...


class LocalCacheStore:
    """Cache store backed by tar.gz files in a local directory.

    Paths are archived relative to ``workspace`` so an entry can be restored
    into a different checkout location. ``index.json`` maps keys to archives
    and creation times. Only the newest ``max_entries`` entries are kept;
    older ones are evicted after each save.
    """

    def __init__(self, store_dir: Path, *, workspace: Path, max_entries: int = 10) -> None:
        self._store_dir = store_dir
        self._workspace = workspace
        self._max_entries = max(1, max_entries)

    @property
    def store_dir(self) -> Path:
        return self._store_dir

    @property
    def _index_path(self) -> Path:
        return self._store_dir / "index.json"

    def _load_index(self) -> dict[str, dict[str, object]]:
        if not self._index_path.exists():
            return {}
        try:
            data = as_str_dict(json.loads(self._index_path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            return {}
        if data is None:
            return {}
        index: dict[str, dict[str, object]] = {}
        for key, entry in data.items():
            entry_dict = as_str_dict(entry)
            if entry_dict is not None:
                index[key] = entry_dict
        return index

    def _match(
        self,
        index: dict[str, dict[str, object]],
        key: str,
        restore_keys: Sequence[str],
    ) -> str | None:
        if key in index:
            return key
        for prefix in restore_keys:
            matches = [k for k in index if k.startswith(prefix)]
            if matches:
                return max(matches, key=lambda k: (str(index[k].get("created", "")), k))
        return None

    def restore(
        self,
        paths: Sequence[Path],
        key: str,
        restore_keys: Sequence[str] = (),
    ) -> Result[str | None, CacheError]:
        index = self._load_index()
        matched = self._match(index, key, restore_keys)
        if matched is None:
            return Ok(None)

        archive = self._store_dir / str(index[matched].get("archive", ""))
        try:
            with tarfile.open(archive, "r:gz") as tar:
                tar.extractall(self._workspace, filter="data")
        except tarfile.TarError as e:
            return Err(CacheError(kind="corrupt", message=f"Cache archive unreadable: {e}"))
        except OSError as e:
            return Err(CacheError(kind="io", message=f"Cache restore failed: {e}"))

        return Ok(matched)

    def save(self, paths: Sequence[Path], key: str) -> Result[int, CacheError]:
        index = self._load_index()
        if key in index:
            return Err(CacheError(kind="exists", message=f"Cache entry already exists: {key}"))

        name = hashlib.sha256(key.encode()).hexdigest()[:16] + ".tar.gz"
        archive = self._store_dir / name
        workspace = self._workspace.resolve()
        try:
            self._store_dir.mkdir(parents=True, exist_ok=True)
            with tarfile.open(archive, "w:gz") as tar:
                for path in paths:
                    if path.exists():
                        arcname = path.resolve().relative_to(workspace).as_posix()
                        tar.add(path, arcname=arcname)
            size = archive.stat().st_size
            index[key] = {
                "archive": name,
                "created": datetime.now(UTC).isoformat(),
                "size": size,
            }
            evicted = self._evict(index)
            atomic_write_text(self._index_path, json.dumps(index, indent=2))
            for stale in evicted:
                (self._store_dir / stale).unlink(missing_ok=True)
        except (OSError, ValueError, tarfile.TarError) as e:
            archive.unlink(missing_ok=True)
            return Err(CacheError(kind="io", message=f"Cache save failed: {e}"))

        return Ok(size)

    def _evict(self, index: dict[str, dict[str, object]]) -> list[str]:
        """Drop the oldest entries beyond ``max_entries``; returns their archive names."""
        excess = len(index) - self._max_entries
        if excess <= 0:
            return []
        # Stable sort: equal timestamps keep insertion order, so the entry just saved stays.
        oldest = sorted(index, key=lambda k: str(index[k].get("created", "")))[:excess]
        archives: list[str] = []
        for key in oldest:
            archive = str(index.pop(key).get("archive", ""))
            if archive:
                archives.append(archive)
        return archives


class WorkspaceCacheManager:
    """Restores and saves ``.stencila/cache`` around the user's command."""

    def __init__(
        self,
        *,
        store: CacheStore,
        keys: CacheKeys,
        workdir: Path,
        console: ConsoleProtocol,
    ) -> None:
        self._store = store
        self._keys = keys
        self._workdir = workdir
        self._console = console

    @property
    def keys(self) -> CacheKeys:
        return self._keys

    @property
    def cache_path(self) -> Path:
        return self._workdir / CACHE_SUBDIR

    def restore(self) -> str | None:
        """Restore the cache; returns the matched key or None (clean state)."""
        result = self._store.restore([self.cache_path], self._keys.primary, self._keys.fallbacks)
        if isinstance(result, Err):
            self._console.warning(f"Failed to restore Stencila cache: {result.error}")
            return None

        if result.value is None:
            self._console.info(f"No Stencila cache found for key {self._keys.primary}")
            return None

        self._console.info(f"Restored Stencila cache from key {result.value}")
        return result.value

    def save(self) -> bool:
        """Save the cache if it exists on disk.

        An entry that already exists under the same key counts as saved.
        """
        if not self.cache_path.exists():
            self._console.info("No Stencila cache directory to save")
            return False

        result = self._store.save([self.cache_path], self._keys.primary)
        if isinstance(result, Err):
            if result.error.kind == "exists":
                self._console.info(f"Stencila cache already saved for key {self._keys.primary}")
                return True
            self._console.warning(f"Failed to save Stencila cache: {result.error}")
            return False

        self._console.info(f"Saved Stencila cache with key {self._keys.primary}")
        return True

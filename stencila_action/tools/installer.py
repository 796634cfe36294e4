"""Archive extraction and binary discovery.

This module provides:
- extract_archive: safe tar.gz / zip extraction, format chosen by the caller
- DirectoryListing / list_directory: a snapshot of an extracted tree's top level
- locate_binary: pure search for the executable in such a snapshot

Release archives usually wrap the binary in one folder
(``cli-v2.3.0-x86_64-unknown-linux-gnu/stencila``) but some put it at the
root, so the location is discovered rather than assumed.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import stat
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from stencila_action.core.result import Err, Ok, Result
from stencila_action.platform.target import ArchiveFormat

__all__ = [
    "DirectoryListing",
    "ExtractResult",
    "InstallError",
    "ListingEntry",
    "extract_archive",
    "list_directory",
    "locate_binary",
]


@dataclass(frozen=True, slots=True)
class InstallError:
    """Extraction error details.

    Attributes:
        archive: Path to the archive that failed
        message: Human-readable error message
    """

    archive: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.archive}"


@dataclass(frozen=True, slots=True)
class ExtractResult:
    """Result of an extraction.

    Attributes:
        dest: Directory the archive was expanded into
        files_count: Number of regular files written
    """

    dest: Path
    files_count: int


@dataclass(frozen=True, slots=True)
class ListingEntry:
    """One first-level entry of an extracted tree.

    ``children`` holds the names directly inside a directory entry and is
    empty for files.
    """

    name: str
    is_dir: bool
    children: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class DirectoryListing:
    """First-level snapshot of a directory, in listing order."""

    root: Path
    entries: tuple[ListingEntry, ...]


def list_directory(root: Path) -> DirectoryListing:
    """Snapshot the first level of ``root`` (and the names inside each subdirectory)."""
    entries: list[ListingEntry] = []
    for item in sorted(root.iterdir(), key=lambda p: p.name):
        if item.is_dir():
            children = frozenset(child.name for child in item.iterdir())
            entries.append(ListingEntry(name=item.name, is_dir=True, children=children))
        else:
            entries.append(ListingEntry(name=item.name, is_dir=False))
    return DirectoryListing(root=root, entries=tuple(entries))


def locate_binary(listing: DirectoryListing, exe_name: str) -> Path | None:
    """Find ``exe_name`` in an extracted archive.

    The first first-level directory that directly contains ``exe_name`` wins;
    files at the first level are ignored by that search. Failing that, the
    archive root itself is checked. Returns None when neither has it.
    """
    for entry in listing.entries:
        if entry.is_dir and exe_name in entry.children:
            return listing.root / entry.name / exe_name

    for entry in listing.entries:
        if not entry.is_dir and entry.name == exe_name:
            return listing.root / exe_name

    return None


def _safe_relative_path(member_name: str) -> Path | None:
    """Return a sanitized relative extraction path, or None if unsafe."""
    normalized = member_name.replace("\\", "/")
    if normalized.startswith("/"):
        return None

    parts = PurePosixPath(normalized).parts
    if not parts:
        return None
    if any(part in {"", ".", ".."} for part in parts):
        return None
    if parts[0].endswith(":"):
        return None

    return Path(*parts)


def _is_within_root(root: Path, target: Path) -> bool:
    try:
        return target.resolve().is_relative_to(root.resolve())
    except OSError:
        return False


def extract_archive(
    archive: Path,
    dest: Path,
    fmt: ArchiveFormat,
) -> Result[ExtractResult, InstallError]:
    """Extract ``archive`` into ``dest`` using the given format.

    The format comes from the platform target, never from the file name or
    content. ``dest`` is emptied first.

    Returns:
        Ok with ExtractResult, or Err with InstallError
    """
    if not archive.exists():
        return Err(InstallError(archive=archive, message="Archive not found"))

    if fmt == "zip":
        return _extract_zip(archive, dest)
    return _extract_tar(archive, dest)


def _prepare(dest: Path) -> Path:
    if dest.exists():
        shutil.rmtree(dest)
    dest.mkdir(parents=True, exist_ok=True)
    return dest.resolve()


def _extract_tar(archive: Path, dest: Path) -> Result[ExtractResult, InstallError]:
    try:
        root = _prepare(dest)
        files_count = 0

        with tarfile.open(archive, "r:gz") as tar:
            for member in tar.getmembers():
                # Skip directories and non-regular entries (symlink, hardlink, device, fifo)
                if member.isdir() or not member.isreg():
                    continue

                rel_path = _safe_relative_path(member.name)
                if rel_path is None:
                    continue

                full_path = dest / rel_path
                if not _is_within_root(root, full_path):
                    continue

                src = tar.extractfile(member)
                if src is None:
                    continue

                full_path.parent.mkdir(parents=True, exist_ok=True)
                with src, open(full_path, "wb") as out:
                    shutil.copyfileobj(src, out)

                mode = member.mode & 0o777
                if mode:
                    with contextlib.suppress(OSError):
                        os.chmod(full_path, mode)

                files_count += 1

        return Ok(ExtractResult(dest=dest, files_count=files_count))

    except tarfile.TarError as e:
        return Err(InstallError(archive=archive, message=f"Tar extraction failed: {e}"))
    except OSError as e:
        return Err(InstallError(archive=archive, message=f"IO error: {e}"))


def _extract_zip(archive: Path, dest: Path) -> Result[ExtractResult, InstallError]:
    try:
        root = _prepare(dest)
        files_count = 0

        with zipfile.ZipFile(archive, "r") as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue

                rel_path = _safe_relative_path(info.filename)
                if rel_path is None:
                    continue

                file_type_bits = (info.external_attr >> 16) & 0o170000
                if file_type_bits == stat.S_IFLNK:
                    continue

                full_path = dest / rel_path
                if not _is_within_root(root, full_path):
                    continue

                full_path.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(full_path, "wb") as out:
                    shutil.copyfileobj(src, out)

                unix_attrs = (info.external_attr >> 16) & 0o777
                if unix_attrs:
                    with contextlib.suppress(OSError):
                        full_path.chmod(unix_attrs)

                files_count += 1

        return Ok(ExtractResult(dest=dest, files_count=files_count))

    except zipfile.BadZipFile as e:
        return Err(InstallError(archive=archive, message=f"Invalid zip file: {e}"))
    except OSError as e:
        return Err(InstallError(archive=archive, message=f"IO error: {e}"))

"""Filesystem helpers."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

__all__ = ["append_text", "atomic_write_text", "expand_glob"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def append_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Append text to a file shared with other writers (runner command files)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding=encoding, newline="") as handle:
        handle.write(content)


def expand_glob(root: Path, pattern: str) -> list[Path]:
    """Expand a glob pattern rooted at ``root`` into sorted absolute file paths.

    ``**`` matches any number of directories. Directories themselves are
    never returned. Patterns that try to escape the root match nothing.
    """
    pattern = pattern.strip()
    if not pattern:
        return []

    base = root.resolve()
    try:
        matches = base.glob(pattern)
        files = [p.resolve() for p in matches if p.is_file()]
    except (NotImplementedError, ValueError):
        # Absolute or otherwise non-relative patterns.
        return []

    return sorted(p for p in files if p.is_relative_to(base))

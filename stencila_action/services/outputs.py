"""Uploading command outputs as a build artifact.

Best-effort: nothing here can fail the run. A failed command, a pattern with
no matches or a failed upload each end with a message and no artifact.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from zipfile import ZIP_DEFLATED, ZipFile

from stencila_action.core.result import Err, Ok, Result
from stencila_action.core.structured import as_str_dict, get_str
from stencila_action.platform.files import atomic_write_text, expand_glob

if TYPE_CHECKING:
    from stencila_action.output.console import ConsoleProtocol

__all__ = [
    "ARTIFACT_RETENTION_DAYS",
    "ArtifactError",
    "ArtifactInfo",
    "ArtifactStore",
    "LocalArtifactStore",
    "OutputPublisher",
]

ARTIFACT_RETENTION_DAYS = 30


@dataclass(frozen=True, slots=True)
class ArtifactInfo:
    id: int
    size: int


@dataclass(frozen=True, slots=True)
class ArtifactError:
    message: str

    def __str__(self) -> str:
        return self.message


@runtime_checkable
class ArtifactStore(Protocol):
    """Protocol for build artifact storage."""

    def upload(
        self,
        name: str,
        files: Sequence[Path],
        root_dir: Path,
        retention_days: int,
    ) -> Result[ArtifactInfo, ArtifactError]:
        """Store ``files`` (paths inside ``root_dir``) as one named artifact."""
        ...


class LocalArtifactStore:
    """Artifact store writing zip files plus a ``manifest.json`` to a directory.

    Artifacts are scoped by ``run_id``: the same name may be uploaded once per
    run, and each run's zips live under ``<store_dir>/<run_id>/``. Entries
    whose retention has passed are removed on the next upload.
    """

    def __init__(self, store_dir: Path, *, run_id: str = "local") -> None:
        self._store_dir = store_dir
        self._run_id = run_id

    @property
    def manifest_path(self) -> Path:
        return self._store_dir / "manifest.json"

    def _load_manifest(self) -> dict[str, dict[str, object]]:
        if not self.manifest_path.exists():
            return {}
        try:
            data = as_str_dict(json.loads(self.manifest_path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            return {}
        manifest: dict[str, dict[str, object]] = {}
        for key, entry in (data or {}).items():
            entry_dict = as_str_dict(entry)
            if entry_dict is not None:
                manifest[key] = entry_dict
        return manifest

    def _prune_expired(self, manifest: dict[str, dict[str, object]], now: datetime) -> None:
        for key, entry in list(manifest.items()):
            expires = get_str(entry, "expires")
            try:
                expired = expires is not None and datetime.fromisoformat(expires) <= now
            except ValueError:
                expired = True
            if not expired:
                continue
            archive = get_str(entry, "archive")
            if archive:
                (self._store_dir / archive).unlink(missing_ok=True)
            del manifest[key]

    def upload(
        self,
        name: str,
        files: Sequence[Path],
        root_dir: Path,
        retention_days: int,
    ) -> Result[ArtifactInfo, ArtifactError]:
        created = datetime.now(UTC)
        manifest = self._load_manifest()
        self._prune_expired(manifest, created)

        key = f"{self._run_id}/{name}"
        if key in manifest:
            return Err(ArtifactError(f"An artifact named '{name}' already exists"))

        archive = f"{self._run_id}/{name}.zip"
        zip_path = self._store_dir / archive
        root = root_dir.resolve()
        try:
            zip_path.parent.mkdir(parents=True, exist_ok=True)
            with ZipFile(zip_path, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
                for file in files:
                    zf.write(file, arcname=file.resolve().relative_to(root).as_posix())
            size = zip_path.stat().st_size
        except (OSError, ValueError) as e:
            zip_path.unlink(missing_ok=True)
            return Err(ArtifactError(f"Failed to write artifact '{name}': {e}"))

        ids = [entry.get("id") for entry in manifest.values()]
        artifact_id = max((i for i in ids if isinstance(i, int)), default=0) + 1
        manifest[key] = {
            "id": artifact_id,
            "archive": archive,
            "size": size,
            "files": len(files),
            "created": created.isoformat(),
            "expires": (created + timedelta(days=retention_days)).isoformat(),
        }
        try:
            atomic_write_text(self.manifest_path, json.dumps(manifest, indent=2))
        except OSError as e:
            return Err(ArtifactError(f"Failed to record artifact '{name}': {e}"))

        return Ok(ArtifactInfo(id=artifact_id, size=size))


class OutputPublisher:
    """Uploads files matching a glob as one artifact."""

    def __init__(
        self,
        *,
        store: ArtifactStore,
        workdir: Path,
        console: ConsoleProtocol,
        retention_days: int = ARTIFACT_RETENTION_DAYS,
    ) -> None:
        self._store = store
        self._workdir = workdir
        self._console = console
        self._retention_days = retention_days

    def publish(self, pattern: str, name: str, *, exit_code: int) -> ArtifactInfo | None:
        """Upload matches of ``pattern`` if the command exited zero."""
        if exit_code != 0:
            self._console.info("Skipping output upload because the command failed")
            return None

        files = expand_glob(self._workdir, pattern)
        if not files:
            self._console.warning(f"No files found matching pattern: {pattern}")
            return None

        self._console.info(f"Uploading {len(files)} file(s) as artifact '{name}'")
        result = self._store.upload(name, files, self._workdir, self._retention_days)
        if isinstance(result, Err):
            self._console.warning(f"Failed to upload outputs: {result.error}")
            return None

        info = result.value
        self._console.success(f"Uploaded artifact '{name}' (id {info.id}, {info.size} bytes)")
        return info

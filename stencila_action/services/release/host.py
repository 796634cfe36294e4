"""Release hosting: creating a GitHub release and attaching assets.

:class:`GhReleaseHost` drives the REST API through ``gh api`` with the job
token in ``GH_TOKEN``. Creation and uploads are not idempotent, so neither is
retried.
"""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import quote

from stencila_action.core.result import Err, Ok, Result
from stencila_action.core.structured import as_str_dict, get_str
from stencila_action.platform.process import run as run_process
from stencila_action.services.release.errors import ReleaseError

__all__ = [
    "CreatedRelease",
    "GhReleaseHost",
    "NewRelease",
    "ReleaseHost",
    "ensure_gh_available",
]

GH_TIMEOUT_SECONDS = 60.0
GH_UPLOAD_TIMEOUT_SECONDS = 600.0
UPLOADS_URL = "https://uploads.github.com"


@dataclass(frozen=True, slots=True)
class NewRelease:
    owner: str
    repo: str
    tag: str
    name: str
    body: str
    draft: bool = False
    prerelease: bool = False


@dataclass(frozen=True, slots=True)
class CreatedRelease:
    id: int
    url: str


@runtime_checkable
class ReleaseHost(Protocol):
    """Protocol for the service that stores releases."""

    def create_release(self, release: NewRelease) -> Result[CreatedRelease, ReleaseError]: ...

    def upload_asset(
        self,
        *,
        owner: str,
        repo: str,
        release_id: int,
        name: str,
        data: bytes,
    ) -> Result[None, ReleaseError]: ...


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


class GhReleaseHost:
    """Release host backed by the GitHub CLI."""

    def __init__(
        self,
        *,
        token: str,
        cwd: Path,
        uploads_url: str = UPLOADS_URL,
    ) -> None:
        self._token = token
        self._cwd = cwd
        self._uploads_url = uploads_url.rstrip("/")

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["GH_TOKEN"] = self._token
        return env

    def create_release(self, release: NewRelease) -> Result[CreatedRelease, ReleaseError]:
        available = ensure_gh_available()
        if isinstance(available, Err):
            return available

        payload = {
            "tag_name": release.tag,
            "name": release.name,
            "body": release.body,
            "draft": release.draft,
            "prerelease": release.prerelease,
        }
        endpoint = f"repos/{release.owner}/{release.repo}/releases"
        result = run_process(
            ["gh", "api", "--method", "POST", endpoint, "--input", "-"],
            cwd=self._cwd,
            env=self._env(),
            input=json.dumps(payload),
            timeout=GH_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="create_failed",
                    message=f"Failed to create release {release.tag}",
                    hint=result.error.stderr.strip() or str(result.error),
                )
            )

        try:
            obj = as_str_dict(json.loads(result.value))
        except json.JSONDecodeError as e:
            return Err(
                ReleaseError(
                    kind="invalid_response",
                    message=f"gh api returned invalid JSON: {e}",
                    hint=endpoint,
                )
            )
        release_id = obj.get("id") if obj is not None else None
        if obj is None or not isinstance(release_id, int) or isinstance(release_id, bool):
            return Err(
                ReleaseError(
                    kind="invalid_response",
                    message="Release response has no id",
                    hint=endpoint,
                )
            )

        return Ok(CreatedRelease(id=release_id, url=get_str(obj, "html_url") or ""))

    def upload_asset(
        self,
        *,
        owner: str,
        repo: str,
        release_id: int,
        name: str,
        data: bytes,
    ) -> Result[None, ReleaseError]:
        url = (
            f"{self._uploads_url}/repos/{owner}/{repo}/releases/{release_id}/assets"
            f"?name={quote(name)}"
        )
        result = run_process(
            [
                "gh",
                "api",
                "--method",
                "POST",
                url,
                "-H",
                "Content-Type: application/octet-stream",
                "--input",
                "-",
            ],
            cwd=self._cwd,
            env=self._env(),
            input=data,
            timeout=GH_UPLOAD_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="upload_failed",
                    message=f"Failed to upload asset {name}",
                    hint=result.error.stderr.strip() or str(result.error),
                )
            )
        return Ok(None)

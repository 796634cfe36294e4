"""Job runner environment.

The runner describes the current job through ``GITHUB_*`` and ``RUNNER_*``
variables. They are read once into an immutable :class:`RunEnvironment`;
nothing else in the package reads them from ``os.environ``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

__all__ = ["RunEnvironment", "TAG_REF_PREFIX"]

TAG_REF_PREFIX = "refs/tags/"


def _path(env: Mapping[str, str], key: str) -> Path | None:
    value = env.get(key, "").strip()
    return Path(value) if value else None


@dataclass(frozen=True, slots=True)
class RunEnvironment:
    """Identity of the current job and the files it reports through."""

    ref: str = ""
    sha: str = ""
    repository: str = ""
    workflow: str = ""
    run_number: str = ""
    run_id: str = ""
    output_file: Path | None = None
    path_file: Path | None = None
    tool_cache: Path | None = None
    temp_dir: Path | None = None
    in_actions: bool = False

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> RunEnvironment:
        env = os.environ if environ is None else environ
        return cls(
            ref=env.get("GITHUB_REF", ""),
            sha=env.get("GITHUB_SHA", ""),
            repository=env.get("GITHUB_REPOSITORY", ""),
            workflow=env.get("GITHUB_WORKFLOW", ""),
            run_number=env.get("GITHUB_RUN_NUMBER", ""),
            run_id=env.get("GITHUB_RUN_ID", ""),
            output_file=_path(env, "GITHUB_OUTPUT"),
            path_file=_path(env, "GITHUB_PATH"),
            tool_cache=_path(env, "RUNNER_TOOL_CACHE"),
            temp_dir=_path(env, "RUNNER_TEMP"),
            in_actions=env.get("GITHUB_ACTIONS", "").lower() == "true",
        )

    @property
    def is_tag(self) -> bool:
        """True when the run was triggered by a tag reference."""
        return self.ref.startswith(TAG_REF_PREFIX)

    @property
    def tag(self) -> str | None:
        if not self.is_tag:
            return None
        return self.ref[len(TAG_REF_PREFIX) :]

    @property
    def owner(self) -> str:
        return self.repository.partition("/")[0]

    @property
    def repo(self) -> str:
        return self.repository.partition("/")[2]

    @property
    def build_identity(self) -> str:
        """Token that makes a workspace cache key unique to this build.

        The commit SHA, or the run id when no SHA is known (local runs).
        """
        return self.sha or self.run_id or "local"

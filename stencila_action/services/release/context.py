"""Values available to every release template.

A :class:`ReleaseContext` is built once per run from the job environment and
the current time, then passed explicitly to whatever renders templates.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from stencila_action.core.environment import RunEnvironment

__all__ = ["ReleaseContext", "file_variables", "is_prerelease"]

_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

PRERELEASE_MARKERS = ("alpha", "beta", "rc")


def is_prerelease(tag: str) -> bool:
    """True if the tag contains "alpha", "beta" or "rc" anywhere.

    Plain substring containment; the tag is not parsed as a version.
    """
    return any(marker in tag for marker in PRERELEASE_MARKERS)


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Tag, commit, repository and time of a tag-triggered run."""

    tag: str
    commit: str
    owner: str
    repo: str
    workflow: str
    build: str
    now: datetime

    @classmethod
    def from_environment(
        cls,
        env: RunEnvironment,
        *,
        now: datetime | None = None,
    ) -> ReleaseContext | None:
        """Build the context, or None when the run was not triggered by a tag."""
        tag = env.tag
        if tag is None:
            return None
        return cls(
            tag=tag,
            commit=env.sha,
            owner=env.owner,
            repo=env.repo,
            workflow=env.workflow,
            build=env.run_number,
            now=now or datetime.now(UTC),
        )

    @property
    def commit_short(self) -> str:
        return self.commit[:7]

    @property
    def prerelease(self) -> bool:
        return is_prerelease(self.tag)

    def variables(self) -> dict[str, str]:
        """The fixed variable set passed to every render."""
        now = self.now
        return {
            "tag": self.tag,
            "datetime": now.strftime("%Y-%m-%dT%H:%M"),
            "date": now.strftime("%Y-%m-%d"),
            "year": f"{now.year:04d}",
            "month": f"{now.month:02d}",
            "month_name": _MONTH_NAMES[now.month - 1],
            "day": f"{now.day:02d}",
            "commit": self.commit_short,
            "repo": self.repo,
            "owner": self.owner,
            "workflow": self.workflow,
            "build": self.build,
        }


def file_variables(path: Path) -> dict[str, str]:
    """Per-file variables added when rendering an asset filename.

    ``file_ext`` has no leading dot ("csv" for ``report.csv``).
    """
    return {
        "file_path": str(path),
        "file_dir": str(path.parent),
        "file_name": path.name,
        "file_stem": path.stem,
        "file_ext": path.suffix.removeprefix("."),
    }

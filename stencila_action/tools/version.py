"""Stencila CLI version resolution.

"latest" is resolved by reading where GitHub's latest-release page redirects
to, which costs one unauthenticated request and no API rate limit. Literal
versions are used as given.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from stencila_action.core.errors import ActionError
from stencila_action.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from stencila_action.platform.target import PlatformTarget
    from stencila_action.tools.http import HttpClient

__all__ = [
    "LATEST",
    "LATEST_RELEASE_URL",
    "RELEASES_URL",
    "ResolvedVersion",
    "download_url",
    "resolve_version",
]

LATEST = "latest"
RELEASES_URL = "https://github.com/stencila/stencila/releases"
LATEST_RELEASE_URL = f"{RELEASES_URL}/latest"

_TAG_PATTERN = re.compile(r"/tag/(v[\d.]+)$")


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    """A version request pinned to a concrete release.

    Attributes:
        requested: What the user asked for ("latest" or a literal version)
        concrete: The release tag, always ``v``-prefixed (e.g. "v2.3.0")
        download_url: Archive URL for the target platform
    """

    requested: str
    concrete: str
    download_url: str


def download_url(concrete: str, target: PlatformTarget) -> str:
    """Archive URL for a concrete version and target."""
    return f"{RELEASES_URL}/download/{concrete}/cli-{concrete}-{target.triple}.{target.archive_ext}"


def _latest_tag(http: HttpClient) -> Result[str, ActionError]:
    result = http.get_redirect(LATEST_RELEASE_URL)
    if isinstance(result, Err):
        return Err(
            ActionError(
                kind="version_resolution",
                message="Could not reach the latest release URL",
                hint=str(result.error),
            )
        )

    redirect = result.value
    if redirect.status != 302 or not redirect.location:
        return Err(
            ActionError(
                kind="version_resolution",
                message="Expected redirect from latest release URL",
                hint=f"HTTP {redirect.status} from {LATEST_RELEASE_URL}",
            )
        )

    match = _TAG_PATTERN.search(redirect.location)
    if match is None:
        return Err(
            ActionError(
                kind="version_resolution",
                message="Could not parse version from redirect",
                hint=redirect.location,
            )
        )

    return Ok(match.group(1))


def resolve_version(
    http: HttpClient,
    requested: str,
    target: PlatformTarget,
) -> Result[ResolvedVersion, ActionError]:
    """Resolve ``requested`` into a concrete version and download URL.

    Args:
        http: HTTP client (only used for "latest")
        requested: "latest", "" (same as latest), "2.3.0" or "v2.3.0"
        target: Platform target selecting the archive

    Literal versions that already start with ``v`` (e.g. ``v2.3.0-rc1``) are
    used as given; any other literal gets a ``v`` prefix. No further
    validation is done, so a bad version fails at download time.

    Returns:
        Ok with ResolvedVersion, or Err with a version_resolution ActionError.
        There is no retry: one failed lookup aborts the run.
    """
    requested = requested.strip() or LATEST

    if requested == LATEST:
        tag = _latest_tag(http)
        if isinstance(tag, Err):
            return tag
        concrete = tag.value
    else:
        concrete = requested if requested.startswith("v") else f"v{requested}"

    return Ok(
        ResolvedVersion(
            requested=requested,
            concrete=concrete,
            download_url=download_url(concrete, target),
        )
    )

"""Stencila CLI installation.

Installs one concrete Stencila version into the tool cache:

1. cache hit -> reuse the committed directory as-is
2. cache miss -> download, extract, locate the binary, chmod, commit

Nothing is committed unless every step of (2) succeeded.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from stencila_action.core.errors import ActionError
from stencila_action.core.result import Err, Ok, Result
from stencila_action.output.console import Style
from stencila_action.tools.installer import extract_archive, list_directory, locate_binary

if TYPE_CHECKING:
    from stencila_action.output.console import ConsoleProtocol
    from stencila_action.platform.target import PlatformTarget
    from stencila_action.tools.http import HttpClient
    from stencila_action.tools.tool_cache import ToolCache
    from stencila_action.tools.version import ResolvedVersion

__all__ = ["Installation", "StencilaInstaller", "TOOL_NAME"]

TOOL_NAME = "stencila"


@dataclass(frozen=True, slots=True)
class Installation:
    """An installed Stencila CLI.

    Attributes:
        version: Concrete version (e.g. "v2.3.0")
        bin_dir: Committed tool cache directory holding the binary
        binary: Path to the executable inside bin_dir
        from_cache: True if no download happened
    """

    version: str
    bin_dir: Path
    binary: Path
    from_cache: bool


class StencilaInstaller:
    """Downloads and caches the Stencila CLI.

    Usage:
        installer = StencilaInstaller(http=http, tool_cache=cache, console=console)
        result = installer.install(resolved, target)
    """

    def __init__(
        self,
        *,
        http: HttpClient,
        tool_cache: ToolCache,
        console: ConsoleProtocol,
        temp_root: Path | None = None,
    ) -> None:
        """Initialize installer.

        Args:
            http: HTTP client for the archive download
            tool_cache: Cache the installation is committed to
            console: Output sink
            temp_root: Parent for scratch directories (system temp if None)
        """
        self._http = http
        self._tool_cache = tool_cache
        self._console = console
        self._temp_root = temp_root

    def install(
        self,
        resolved: ResolvedVersion,
        target: PlatformTarget,
    ) -> Result[Installation, ActionError]:
        """Return a cached installation, installing it first on a miss."""
        exe_name = target.exe_name

        cached = self._tool_cache.find(TOOL_NAME, resolved.concrete, target.arch_key)
        if cached is not None:
            # Cache entries are trusted once written; no re-verification.
            self._console.info(f"Using cached Stencila CLI {resolved.concrete}")
            return Ok(
                Installation(
                    version=resolved.concrete,
                    bin_dir=cached,
                    binary=cached / exe_name,
                    from_cache=True,
                )
            )

        if self._temp_root is not None:
            self._temp_root.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix="stencila-", dir=self._temp_root) as tmp:
            return self._install_fresh(resolved, target, Path(tmp))

    def _install_fresh(
        self,
        resolved: ResolvedVersion,
        target: PlatformTarget,
        scratch: Path,
    ) -> Result[Installation, ActionError]:
        self._console.info(f"Downloading Stencila CLI from {resolved.download_url}")

        archive = scratch / f"cli-{resolved.concrete}-{target.triple}.{target.archive_ext}"
        downloaded = self._http.download(resolved.download_url, archive)
        if isinstance(downloaded, Err):
            return Err(
                ActionError(
                    kind="download_failed",
                    message=f"Failed to download Stencila CLI {resolved.concrete}",
                    hint=str(downloaded.error),
                )
            )

        extracted = extract_archive(archive, scratch / "extract", target.archive_ext)
        if isinstance(extracted, Err):
            return Err(
                ActionError(
                    kind="extract_failed",
                    message="Failed to extract Stencila CLI archive",
                    hint=str(extracted.error),
                )
            )

        binary = locate_binary(list_directory(extracted.value.dest), target.exe_name)
        if binary is None:
            return Err(
                ActionError(
                    kind="binary_not_found",
                    message="Could not find stencila binary in extracted archive",
                    hint=f"Looked for {target.exe_name} in {resolved.download_url}",
                )
            )
        self._console.print(f"found {binary.relative_to(extracted.value.dest)}", Style.DIM)

        if target.platform.is_unix:
            try:
                binary.chmod(0o755)
            except OSError as e:
                return Err(
                    ActionError(
                        kind="install_failed",
                        message="Failed to make stencila binary executable",
                        hint=str(e),
                    )
                )

        try:
            committed = self._tool_cache.cache_dir(
                binary.parent, TOOL_NAME, resolved.concrete, target.arch_key
            )
        except OSError as e:
            return Err(
                ActionError(
                    kind="install_failed",
                    message="Failed to add Stencila CLI to the tool cache",
                    hint=str(e),
                )
            )

        return Ok(
            Installation(
                version=resolved.concrete,
                bin_dir=committed,
                binary=committed / target.exe_name,
                from_cache=False,
            )
        )

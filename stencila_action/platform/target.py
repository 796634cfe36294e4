"""Download targets for prebuilt Stencila CLI archives."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from stencila_action.core.errors import ActionError
from stencila_action.core.result import Err, Ok, Result
from stencila_action.platform.detection import Arch, Platform

__all__ = ["ArchiveFormat", "PlatformTarget", "SUPPORTED_TARGETS", "resolve_target"]

ArchiveFormat = Literal["tar.gz", "zip"]


@dataclass(frozen=True, slots=True)
class PlatformTarget:
    """A supported (platform, arch) pair and the archive built for it."""

    platform: Platform
    arch: Arch
    triple: str
    archive_ext: ArchiveFormat

    @property
    def os(self) -> str:
        return self.platform.key

    @property
    def arch_key(self) -> str:
        return self.arch.key

    @property
    def exe_name(self) -> str:
        return self.platform.exe_name("stencila")


SUPPORTED_TARGETS: dict[tuple[Platform, Arch], tuple[str, ArchiveFormat]] = {
    (Platform.LINUX, Arch.X64): ("x86_64-unknown-linux-gnu", "tar.gz"),
    (Platform.MACOS, Arch.X64): ("x86_64-apple-darwin", "tar.gz"),
    (Platform.MACOS, Arch.ARM64): ("aarch64-apple-darwin", "tar.gz"),
    (Platform.WINDOWS, Arch.X64): ("x86_64-pc-windows-msvc", "zip"),
}


def resolve_target(platform: Platform, arch: Arch) -> Result[PlatformTarget, ActionError]:
    """Map a host (platform, arch) to its target triple and archive format.

    Pure lookup in :data:`SUPPORTED_TARGETS`; any other pair is a
    configuration error.
    """
    entry = SUPPORTED_TARGETS.get((platform, arch))
    if entry is None:
        return Err(
            ActionError(
                kind="unsupported_platform",
                message=f"Unsupported platform: {platform.key}-{arch.key}",
                hint="Supported: linux-x64, darwin-x64, darwin-arm64, windows-x64",
            )
        )

    triple, archive_ext = entry
    return Ok(PlatformTarget(platform=platform, arch=arch, triple=triple, archive_ext=archive_ext))

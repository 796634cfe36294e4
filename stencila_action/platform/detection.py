"""Host platform and architecture detection.

Detection is done lazily and cached; the enums also carry the short keys
(``linux``/``darwin``/``windows``, ``x64``/``arm64``) used in download target
lookup, tool cache layout and workspace cache keys.
"""

from __future__ import annotations

import os as _os
import platform as _platform
import sys as _sys
from dataclasses import dataclass
from enum import Enum, auto
from functools import lru_cache

__all__ = [
    "Platform",
    "Arch",
    "PlatformInfo",
    "detect",
    "detect_arch",
    "detect_platform",
    "is_windows",
]


class Platform(Enum):
    """Operating system platform."""

    LINUX = auto()
    MACOS = auto()
    WINDOWS = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def key(self) -> str:
        """Short OS key (``darwin`` for macOS)."""
        return {
            Platform.LINUX: "linux",
            Platform.MACOS: "darwin",
            Platform.WINDOWS: "windows",
        }.get(self, "unknown")

    @property
    def is_unix(self) -> bool:
        """Check if this is a Unix-like platform (Linux or macOS)."""
        return self in (Platform.LINUX, Platform.MACOS)

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self == Platform.WINDOWS else ""

    def exe_name(self, name: str) -> str:
        """Get executable name with platform-appropriate suffix.

        Example: exe_name("stencila") -> "stencila.exe" on Windows.
        """
        return f"{name}{self.exe_suffix}"

    @classmethod
    def from_key(cls, key: str) -> Platform:
        """Parse an OS key; ``macos``/``darwin`` and ``win32``/``windows`` are aliases."""
        value = key.strip().lower()
        if value == "linux":
            return cls.LINUX
        if value in ("darwin", "macos"):
            return cls.MACOS
        if value in ("windows", "win32"):
            return cls.WINDOWS
        return cls.UNKNOWN


class Arch(Enum):
    """CPU architecture."""

    X64 = auto()
    ARM64 = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def key(self) -> str:
        return {Arch.X64: "x64", Arch.ARM64: "arm64"}.get(self, "unknown")

    @classmethod
    def from_key(cls, key: str) -> Arch:
        """Parse an architecture key or a machine name (``x86_64``, ``aarch64``)."""
        value = key.strip().lower()
        if value in ("x64", "x86_64", "amd64"):
            return cls.X64
        if value in ("arm64", "aarch64"):
            return cls.ARM64
        return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    """Detected host platform."""

    platform: Platform
    arch: Arch

    @property
    def is_windows(self) -> bool:
        return self.platform == Platform.WINDOWS

    def __str__(self) -> str:
        return f"{self.platform.key}-{self.arch.key}"


@lru_cache(maxsize=1)
def detect_platform() -> Platform:
    """Detect the current operating system (cached)."""
    # NOTE: avoid platform.system() on Windows, it may query WMI.
    system = _sys.platform.lower()
    if system.startswith("linux"):
        return Platform.LINUX
    if system.startswith("darwin"):
        return Platform.MACOS
    if system.startswith(("win32", "cygwin", "msys")):
        return Platform.WINDOWS
    return Platform.UNKNOWN


@lru_cache(maxsize=1)
def detect_arch() -> Arch:
    """Detect the current CPU architecture (cached)."""
    if detect_platform() == Platform.WINDOWS:
        machine = (
            _os.environ.get("PROCESSOR_ARCHITEW6432")
            or _os.environ.get("PROCESSOR_ARCHITECTURE")
            or ""
        )
    else:
        machine = _platform.machine()
    return Arch.from_key(machine)


@lru_cache(maxsize=1)
def detect() -> PlatformInfo:
    """Detect platform and architecture (cached)."""
    return PlatformInfo(platform=detect_platform(), arch=detect_arch())


def is_windows() -> bool:
    """Check if running on Windows."""
    return detect_platform() == Platform.WINDOWS

"""Tests for stencila_action.platform.target module."""

from __future__ import annotations

import pytest

from stencila_action.core.result import Err, Ok
from stencila_action.platform.detection import Arch, Platform
from stencila_action.platform.target import SUPPORTED_TARGETS, resolve_target


class TestResolveTarget:
    """The platform table is a pure lookup."""

    @pytest.mark.parametrize(
        ("platform", "arch", "triple", "ext"),
        [
            (Platform.LINUX, Arch.X64, "x86_64-unknown-linux-gnu", "tar.gz"),
            (Platform.MACOS, Arch.X64, "x86_64-apple-darwin", "tar.gz"),
            (Platform.MACOS, Arch.ARM64, "aarch64-apple-darwin", "tar.gz"),
            (Platform.WINDOWS, Arch.X64, "x86_64-pc-windows-msvc", "zip"),
        ],
    )
    def test_supported(self, platform: Platform, arch: Arch, triple: str, ext: str) -> None:
        result = resolve_target(platform, arch)
        assert isinstance(result, Ok)
        assert result.value.triple == triple
        assert result.value.archive_ext == ext

    @pytest.mark.parametrize(
        ("platform", "arch"),
        [
            (Platform.LINUX, Arch.ARM64),
            (Platform.WINDOWS, Arch.ARM64),
            (Platform.UNKNOWN, Arch.X64),
            (Platform.LINUX, Arch.UNKNOWN),
        ],
    )
    def test_unsupported(self, platform: Platform, arch: Arch) -> None:
        result = resolve_target(platform, arch)
        assert isinstance(result, Err)
        assert result.error.kind == "unsupported_platform"

    def test_table_size(self) -> None:
        assert len(SUPPORTED_TARGETS) == 4

    def test_exe_name(self) -> None:
        windows = resolve_target(Platform.WINDOWS, Arch.X64).unwrap()
        linux = resolve_target(Platform.LINUX, Arch.X64).unwrap()
        assert windows is not None and windows.exe_name == "stencila.exe"
        assert linux is not None and linux.exe_name == "stencila"

    def test_keys(self) -> None:
        target = resolve_target(Platform.MACOS, Arch.ARM64).unwrap()
        assert target is not None
        assert target.os == "darwin"
        assert target.arch_key == "arm64"

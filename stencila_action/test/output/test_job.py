"""Tests for stencila_action.output.job module."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from stencila_action.output.console import MockConsole
from stencila_action.output.job import JobOutputs, format_output


class TestFormatOutput:
    def test_single_line(self) -> None:
        assert format_output("version", "stencila 2.3.0") == "version=stencila 2.3.0\n"

    def test_multi_line_uses_heredoc(self) -> None:
        text = format_output("notes", "a\nb")
        first, *body = text.splitlines()
        name, delimiter = first.split("<<")
        assert name == "notes"
        assert delimiter.startswith("ghadelimiter_")
        assert body == ["a", "b", delimiter]


class TestJobOutputs:
    def test_writes_output_file(self, tmp_path: Path) -> None:
        out = tmp_path / "github_output"
        outputs = JobOutputs(console=MockConsole(), output_file=out)

        outputs.set_output("version", "v2.3.0")
        outputs.set_output("exit-code", "0")

        assert out.read_text(encoding="utf-8") == "version=v2.3.0\nexit-code=0\n"
        assert outputs.values == {"version": "v2.3.0", "exit-code": "0"}

    def test_without_output_file_only_logs(self) -> None:
        console = MockConsole()
        outputs = JobOutputs(console=console)
        outputs.set_output("exit-code", "3")
        assert console.find("exit-code=3")

    def test_add_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PATH", "/usr/bin")
        path_file = tmp_path / "github_path"
        outputs = JobOutputs(console=MockConsole(), path_file=path_file)

        outputs.add_path(tmp_path / "bin")

        assert os.environ["PATH"].split(os.pathsep)[0] == str(tmp_path / "bin")
        assert path_file.read_text(encoding="utf-8") == f"{tmp_path / 'bin'}\n"

"""Job outputs and PATH additions.

The runner collects step outputs from the file named by ``GITHUB_OUTPUT`` and
PATH entries from ``GITHUB_PATH``. Outside a runner those variables are unset
and values are only echoed to the console.
"""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from stencila_action.output.console import Style
from stencila_action.platform.files import append_text

if TYPE_CHECKING:
    from stencila_action.output.console import ConsoleProtocol

__all__ = ["JobOutputs", "format_output"]


def format_output(name: str, value: str) -> str:
    """Format one ``GITHUB_OUTPUT`` entry; multi-line values use a heredoc."""
    if "\n" not in value and "\r" not in value:
        return f"{name}={value}\n"
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


@dataclass
class JobOutputs:
    """Writer for step outputs and PATH additions.

    ``values`` keeps everything that was set, for the CLI summary and tests.
    """

    console: ConsoleProtocol
    output_file: Path | None = None
    path_file: Path | None = None
    values: dict[str, str] = field(default_factory=dict)

    def set_output(self, name: str, value: str) -> None:
        self.values[name] = value
        if self.output_file is None:
            self.console.print(f"output {name}={value}", Style.DIM)
            return
        append_text(self.output_file, format_output(name, value))

    def add_path(self, directory: Path) -> None:
        """Prepend ``directory`` to PATH for this process and later steps."""
        entry = str(directory)
        current = os.environ.get("PATH", "")
        os.environ["PATH"] = f"{entry}{os.pathsep}{current}" if current else entry
        if self.path_file is not None:
            append_text(self.path_file, f"{entry}\n")

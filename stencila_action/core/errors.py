"""Exit codes and the fatal error type of an action run.

Only configuration and resolution problems abort a run. Everything layered on
top of "install the CLI and run the command" (caching, artifact upload,
release publishing) reports its own error type and is downgraded to a warning
by the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = ["ActionError", "ActionErrorKind", "ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes of ``stencila-action``.

    - 0: Success
    - 1: Configuration error (unsupported platform, conflicting inputs)
    - 2: Resolution error (version lookup, binary missing from archive)
    - 3: The user's Stencila command exited non-zero
    - 4: Network error (archive download failed)
    - 5: I/O error (extraction, permissions)
    """

    OK = 0
    CONFIG_ERROR = 1
    RESOLUTION_ERROR = 2
    COMMAND_FAILED = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


ActionErrorKind = Literal[
    "unsupported_platform",
    "conflicting_command",
    "invalid_config",
    "version_resolution",
    "download_failed",
    "extract_failed",
    "binary_not_found",
    "install_failed",
]


_EXIT_CODES: dict[str, ErrorCode] = {
    "unsupported_platform": ErrorCode.CONFIG_ERROR,
    "conflicting_command": ErrorCode.CONFIG_ERROR,
    "invalid_config": ErrorCode.CONFIG_ERROR,
    "version_resolution": ErrorCode.RESOLUTION_ERROR,
    "binary_not_found": ErrorCode.RESOLUTION_ERROR,
    "download_failed": ErrorCode.NETWORK_ERROR,
    "extract_failed": ErrorCode.IO_ERROR,
    "install_failed": ErrorCode.IO_ERROR,
}


@dataclass(frozen=True, slots=True)
class ActionError:
    """A fatal failure of the install/run pipeline."""

    kind: ActionErrorKind
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        return self.message

    @property
    def exit_code(self) -> ErrorCode:
        return _EXIT_CODES[self.kind]

"""Running the installed Stencila CLI.

The runner never treats a non-zero exit as an exception: it hands the exit
code back and the caller decides what a failure means.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from stencila_action.platform.process import execute

__all__ = ["CommandOutcome", "CommandRunner", "split_args"]


def split_args(args: str) -> list[str]:
    """Split a raw argument string on single spaces.

    There is no quoting or escaping: ``"a b"`` becomes two arguments and two
    consecutive spaces produce an empty argument. An empty string yields no
    arguments.
    """
    return args.split(" ") if args else []


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    """How a Stencila invocation ended.

    Attributes:
        exit_code: Process exit code (-1 if it could not be started)
        stdout: Captured standard output ("" unless captured)
        stderr: Captured standard error or launch error
    """

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner:
    """Invokes one Stencila binary.

    Usage:
        runner = CommandRunner(installation.binary)
        outcome = runner.run("render", split_args(args), cwd=workdir)
    """

    def __init__(self, binary: Path, env: dict[str, str] | None = None) -> None:
        self._binary = binary
        self._env = env

    @property
    def binary(self) -> Path:
        return self._binary

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        cwd: Path,
        capture: bool = False,
        stdin: str | None = None,
    ) -> CommandOutcome:
        """Run ``stencila <command> <args...>`` in ``cwd``.

        Args:
            command: Subcommand (or a flag such as "--version")
            args: Further arguments, passed verbatim
            cwd: Working directory
            capture: Capture stdout/stderr instead of streaming them
            stdin: Text piped to standard input
        """
        outcome = execute(
            [str(self._binary), command, *args],
            cwd=cwd,
            env=self._env,
            input=stdin,
            capture=capture,
        )
        return CommandOutcome(
            exit_code=outcome.returncode,
            stdout=outcome.stdout,
            stderr=outcome.stderr,
        )

    def query_version(self, cwd: Path) -> CommandOutcome:
        """Run ``stencila --version`` and return its trimmed output."""
        outcome = self.run("--version", cwd=cwd, capture=True)
        return CommandOutcome(
            exit_code=outcome.exit_code,
            stdout=outcome.stdout.strip(),
            stderr=outcome.stderr,
        )

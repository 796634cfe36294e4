"""Subprocess execution.

Two entry points:

- :func:`execute` always returns a :class:`ProcessOutcome`, whatever the exit
  code. Callers that must keep going after a failing command use it.
- :func:`run` wraps :func:`execute` into ``Ok(stdout)`` / ``Err(ProcessError)``
  for commands whose failure is an error (``gh api`` calls).

Usage:
    outcome = execute(["stencila", "--version"], cwd=Path("."))
    if outcome.returncode == 0:
        print(outcome.stdout.strip())
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from stencila_action.core.result import Err, Ok, Result

__all__ = ["LAUNCH_FAILED", "ProcessError", "ProcessOutcome", "execute", "run"]

# Exit code reported when the process could not be started or timed out.
LAUNCH_FAILED = -1


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """Completed (or unlaunchable) process.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or LAUNCH_FAILED.
        stdout: Captured standard output ("" when not captured).
        stderr: Captured standard error, or the launch error message.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def execute(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    input: str | bytes | None = None,
    capture: bool = True,
    timeout: float | None = None,
) -> ProcessOutcome:
    """Execute a command and report how it ended. Never raises.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        input: Text or bytes piped to standard input.
        capture: Capture stdout/stderr; otherwise they stream to the terminal.
        timeout: Maximum seconds to wait (None for no limit).
    """
    command = tuple(cmd)
    binary_input = isinstance(input, bytes)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            input=input,
            capture_output=capture,
            text=not binary_input,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return ProcessOutcome(
            command=command,
            returncode=LAUNCH_FAILED,
            stdout="",
            stderr=f"Command timed out after {timeout}s",
        )
    except OSError as e:
        return ProcessOutcome(command=command, returncode=LAUNCH_FAILED, stdout="", stderr=str(e))

    stdout = proc.stdout or ""
    stderr = proc.stderr or ""
    if isinstance(stdout, bytes):
        stdout = stdout.decode("utf-8", errors="replace")
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")

    return ProcessOutcome(command=command, returncode=proc.returncode, stdout=stdout, stderr=stderr)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    input: str | bytes | None = None,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Returns:
        Ok(stdout) on exit code 0, Err(ProcessError) otherwise.
    """
    outcome = execute(cmd, cwd, env, input=input, capture=True, timeout=timeout)
    if not outcome.ok:
        return Err(
            ProcessError(
                command=outcome.command,
                returncode=outcome.returncode,
                stdout=outcome.stdout,
                stderr=outcome.stderr,
            )
        )
    return Ok(outcome.stdout)

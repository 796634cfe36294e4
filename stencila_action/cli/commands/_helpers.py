"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from stencila_action.core.errors import ErrorCode
from stencila_action.core.result import Err, Result
from stencila_action.output.console import Style

if TYPE_CHECKING:
    from stencila_action.cli.context import CLIContext


def exit_on_error(
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.CONFIG_ERROR,
) -> None:
    """Exit with error if result is Err, otherwise return.

    Uses the error's own ``exit_code`` when it has one, else ``error_code``.
    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        code: int = int(getattr(error, "exit_code", error_code))
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=code)


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)


def collect_overrides(**options: object) -> dict[str, object]:
    """Map CLI option values to input names, dropping options left unset."""
    return {
        name.replace("_", "-"): value for name, value in options.items() if value is not None
    }

from __future__ import annotations

import typer

from stencila_action import __version__
from stencila_action.cli.commands.resolve_cmd import resolve
from stencila_action.cli.commands.run_cmd import run


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(run)
app.command()(resolve)


def _about(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    about: bool = typer.Option(
        False,
        "--about",
        help="Show version and exit.",
        callback=_about,
        is_eager=True,
    ),
) -> None:
    """Install the Stencila CLI and run it in CI."""


def main() -> None:
    app()

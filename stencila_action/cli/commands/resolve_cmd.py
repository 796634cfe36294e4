"""Resolve command - show what would be installed."""

from __future__ import annotations

from pathlib import Path

import typer

from stencila_action.cli.commands._helpers import collect_overrides, exit_on_error
from stencila_action.cli.context import build_backends, build_context, build_outputs
from stencila_action.core.result import Ok
from stencila_action.output.console import Style
from stencila_action.services.action import ActionService


def resolve(
    config: Path | None = typer.Option(
        None, "--config", help="TOML file with an [inputs] table", show_default=False
    ),
    version: str | None = typer.Option(
        None, "--version", help="Stencila version (e.g. v2.3.0, latest)", show_default=False
    ),
) -> None:
    """Print the target, concrete version and download URL without installing."""
    ctx = build_context(config_path=config, overrides=collect_overrides(version=version))
    service = ActionService(
        config=ctx.config,
        env=ctx.env,
        platform=ctx.platform,
        backends=build_backends(ctx),
        outputs=build_outputs(ctx),
        console=ctx.console,
    )

    result = service.resolve()
    exit_on_error(result, ctx)
    if isinstance(result, Ok):
        target, resolved = result.value
        ctx.console.print(f"platform: {ctx.platform}", Style.DIM)
        ctx.console.print(f"target:   {target.triple}")
        ctx.console.print(f"version:  {resolved.concrete}")
        ctx.console.print(f"url:      {resolved.download_url}")

"""Run command - install the Stencila CLI and run one command with it."""

from __future__ import annotations

from pathlib import Path

import typer

from stencila_action.cli.commands._helpers import collect_overrides, exit_with_code
from stencila_action.cli.context import build_backends, build_context, build_outputs
from stencila_action.services.action import ActionService


def run(
    config: Path | None = typer.Option(
        None, "--config", help="TOML file with an [inputs] table", show_default=False
    ),
    version: str | None = typer.Option(
        None, "--version", help="Stencila version (e.g. v2.3.0, latest)", show_default=False
    ),
    command: str | None = typer.Option(
        None, "--command", help="Stencila subcommand (e.g. render)", show_default=False
    ),
    args: str | None = typer.Option(
        None, "--args", help="Arguments, split on single spaces", show_default=False
    ),
    run_line: str | None = typer.Option(
        None,
        "--run",
        help="Whole command line (e.g. 'render report.smd report.html')",
        show_default=False,
    ),
    working_directory: str | None = typer.Option(
        None, "--working-directory", help="Directory to run in", show_default=False
    ),
    cache: bool | None = typer.Option(
        None, "--cache/--no-cache", help="Restore and save .stencila/cache", show_default=False
    ),
    upload_outputs: str | None = typer.Option(
        None, "--upload-outputs", help="Glob of outputs to upload", show_default=False
    ),
    artifact_name: str | None = typer.Option(
        None, "--artifact-name", help="Artifact name for uploaded outputs", show_default=False
    ),
    release: bool | None = typer.Option(
        None, "--release/--no-release", help="Publish a release on tag runs", show_default=False
    ),
    release_name: str | None = typer.Option(
        None, "--release-name", help="Release name template", show_default=False
    ),
    release_notes: str | None = typer.Option(
        None, "--release-notes", help="Release notes template", show_default=False
    ),
    release_files: str | None = typer.Option(
        None, "--release-files", help="Glob of release assets", show_default=False
    ),
    release_filename: str | None = typer.Option(
        None, "--release-filename", help="Asset filename template", show_default=False
    ),
    github_token: str | None = typer.Option(
        None,
        "--github-token",
        envvar="GITHUB_TOKEN",
        help="Token for release creation",
        show_default=False,
    ),
) -> None:
    """Install the Stencila CLI and run a command.

    Unset options fall back to INPUT_* environment variables, then to the
    config file, then to defaults.
    """
    overrides = collect_overrides(
        version=version,
        command=command,
        args=args,
        run=run_line,
        working_directory=working_directory,
        cache=cache,
        upload_outputs=upload_outputs,
        artifact_name=artifact_name,
        release=release,
        release_name=release_name,
        release_notes=release_notes,
        release_files=release_files,
        release_filename=release_filename,
        github_token=github_token,
    )
    ctx = build_context(config_path=config, overrides=overrides)

    service = ActionService(
        config=ctx.config,
        env=ctx.env,
        platform=ctx.platform,
        backends=build_backends(ctx),
        outputs=build_outputs(ctx),
        console=ctx.console,
    )
    code = service.run()
    if not code.is_success:
        exit_with_code(int(code))

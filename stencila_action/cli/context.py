from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import typer

from stencila_action.core.config import ActionConfig, config_from_env, load_config
from stencila_action.core.environment import RunEnvironment
from stencila_action.core.errors import ErrorCode
from stencila_action.core.result import Err
from stencila_action.output.console import ConsoleProtocol, RichConsole
from stencila_action.output.job import JobOutputs
from stencila_action.platform.detection import PlatformInfo, detect
from stencila_action.platform.paths import user_cache_dir
from stencila_action.services.action import ActionBackends
from stencila_action.services.outputs import LocalArtifactStore
from stencila_action.services.release import GhReleaseHost, ReleaseHost
from stencila_action.services.workspace_cache import LocalCacheStore
from stencila_action.tools.http import RealHttpClient
from stencila_action.tools.tool_cache import LocalToolCache


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ActionConfig
    env: RunEnvironment
    platform: PlatformInfo
    console: ConsoleProtocol


def build_context(
    *,
    config_path: Path | None = None,
    overrides: Mapping[str, object] | None = None,
) -> CLIContext:
    """Collect inputs: config file, then ``INPUT_*`` variables, then CLI options."""
    env = RunEnvironment.from_environ()

    base = ActionConfig()
    if config_path is not None:
        config_result = load_config(config_path)
        if isinstance(config_result, Err):
            typer.echo(f"error: {config_result.error.message}", err=True)
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
        base = config_result.value

    config = config_from_env(base=base).merged(overrides or {})

    return CLIContext(
        config=config,
        env=env,
        platform=detect(),
        console=RichConsole(annotations=env.in_actions),
    )


def _run_id(env: RunEnvironment) -> str:
    """Run scope for local artifacts; outside a runner every invocation is its own run."""
    if env.run_id:
        return env.run_id
    return datetime.now(UTC).strftime("local-%Y%m%dT%H%M%S%f")


def build_backends(ctx: CLIContext) -> ActionBackends:
    """Backends for a run: the runner's tool cache, local stores, the GitHub CLI."""
    state_dir = user_cache_dir()
    workdir = ctx.config.workdir

    def release_host(token: str) -> ReleaseHost:
        return GhReleaseHost(token=token, cwd=workdir)

    return ActionBackends(
        http=RealHttpClient(),
        tool_cache=LocalToolCache(ctx.env.tool_cache or state_dir / "tool-cache"),
        cache_store=LocalCacheStore(state_dir / "cache", workspace=workdir),
        artifact_store=LocalArtifactStore(state_dir / "artifacts", run_id=_run_id(ctx.env)),
        release_host=release_host,
    )


def build_outputs(ctx: CLIContext) -> JobOutputs:
    return JobOutputs(
        console=ctx.console,
        output_file=ctx.env.output_file,
        path_file=ctx.env.path_file,
    )

"""The action run: install the Stencila CLI and run one command with it.

Steps, strictly in order:

1. resolve the platform target and the concrete version
2. install (or reuse) the CLI and put it on PATH
3. query ``stencila --version`` -> ``version`` output
4. if a command was requested: restore the workspace cache, run the command
   (``exit-code`` output), save the cache
5. upload outputs, publish a release

Steps 1-2 are fatal on error. A failing command makes the run fail but does
not skip step 4's cache save or step 5. Everything in step 5 only warns.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from stencila_action.core.errors import ActionError, ErrorCode
from stencila_action.core.result import Err, Ok, Result
from stencila_action.output.console import Style
from stencila_action.platform.target import PlatformTarget, resolve_target
from stencila_action.services.outputs import OutputPublisher
from stencila_action.services.release import (
    ReleaseContext,
    ReleasePublisher,
    ReleaseSettings,
    TemplateRenderer,
)
from stencila_action.services.workspace_cache import WorkspaceCacheManager, cache_keys
from stencila_action.tools.runner import CommandOutcome, CommandRunner, split_args
from stencila_action.tools.stencila import Installation, StencilaInstaller
from stencila_action.tools.version import ResolvedVersion, resolve_version

if TYPE_CHECKING:
    from stencila_action.core.config import ActionConfig, CommandLine
    from stencila_action.core.environment import RunEnvironment
    from stencila_action.output.console import ConsoleProtocol
    from stencila_action.output.job import JobOutputs
    from stencila_action.platform.detection import PlatformInfo
    from stencila_action.services.outputs import ArtifactStore
    from stencila_action.services.release import ReleaseHost
    from stencila_action.services.workspace_cache import CacheStore
    from stencila_action.tools.http import HttpClient
    from stencila_action.tools.tool_cache import ToolCache

__all__ = ["ActionBackends", "ActionService"]


@dataclass(frozen=True, slots=True)
class ActionBackends:
    """External services an action run talks to."""

    http: HttpClient
    tool_cache: ToolCache
    cache_store: CacheStore
    artifact_store: ArtifactStore
    release_host: Callable[[str], ReleaseHost]


class ActionService:
    def __init__(
        self,
        *,
        config: ActionConfig,
        env: RunEnvironment,
        platform: PlatformInfo,
        backends: ActionBackends,
        outputs: JobOutputs,
        console: ConsoleProtocol,
        now: datetime | None = None,
    ) -> None:
        self._config = config
        self._env = env
        self._platform = platform
        self._backends = backends
        self._outputs = outputs
        self._console = console
        self._now = now

    def _fail(self, error: ActionError) -> ErrorCode:
        self._console.error(error.message)
        if error.hint:
            self._console.print(f"hint: {error.hint}", Style.DIM)
        return error.exit_code

    def resolve(self) -> Result[tuple[PlatformTarget, ResolvedVersion], ActionError]:
        """Resolve the platform target and concrete version without installing."""
        target = resolve_target(self._platform.platform, self._platform.arch)
        if isinstance(target, Err):
            return target

        resolved = resolve_version(self._backends.http, self._config.version, target.value)
        if isinstance(resolved, Err):
            return resolved

        return Ok((target.value, resolved.value))

    def install(self) -> Result[Installation, ActionError]:
        resolution = self.resolve()
        if isinstance(resolution, Err):
            return resolution
        target, resolved = resolution.value

        self._console.info(f"Installing Stencila CLI {resolved.concrete} for {target.triple}")
        installer = StencilaInstaller(
            http=self._backends.http,
            tool_cache=self._backends.tool_cache,
            console=self._console,
            temp_root=self._env.temp_dir,
        )
        return installer.install(resolved, target)

    def run(self) -> ErrorCode:
        # Conflicting inputs abort before anything is downloaded.
        command_line = self._config.command_line()
        if isinstance(command_line, Err):
            return self._fail(command_line.error)

        self._console.header("Setup")
        installed = self.install()
        if isinstance(installed, Err):
            return self._fail(installed.error)
        installation = installed.value

        self._outputs.add_path(installation.bin_dir)

        workdir = self._config.workdir
        runner = CommandRunner(installation.binary.resolve())
        self._report_version(runner, installation)

        outcome: CommandOutcome | None = None
        if command_line.value is not None:
            outcome = self._run_command(runner, installation, command_line.value)

        exit_code = outcome.exit_code if outcome is not None else 0

        if self._config.upload_outputs:
            self._console.header("Outputs")
            OutputPublisher(
                store=self._backends.artifact_store,
                workdir=workdir,
                console=self._console,
            ).publish(self._config.upload_outputs, self._config.artifact_name, exit_code=exit_code)

        if self._config.release:
            self._console.header("Release")
            # Releases only publish after a successful command.
            if exit_code != 0:
                self._console.info("Skipping release because the command failed")
            else:
                self._publish_release(runner)

        if outcome is not None and not outcome.ok:
            self._console.error(f"Stencila command failed with exit code {outcome.exit_code}")
            return ErrorCode.COMMAND_FAILED

        return ErrorCode.OK

    def _report_version(self, runner: CommandRunner, installation: Installation) -> None:
        reported = runner.query_version(self._config.workdir)
        if reported.ok and reported.stdout:
            version = reported.stdout
        else:
            self._console.warning(
                f"stencila --version failed (exit {reported.exit_code}); "
                f"reporting {installation.version}"
            )
            version = installation.version

        self._outputs.set_output("version", version)
        self._console.success(f"Stencila CLI {version} installed")

    def _run_command(
        self,
        runner: CommandRunner,
        installation: Installation,
        command_line: CommandLine,
    ) -> CommandOutcome:
        workdir = self._config.workdir
        cache: WorkspaceCacheManager | None = None
        if self._config.cache:
            keys = cache_keys(
                self._platform.platform.key,
                self._platform.arch.key,
                installation.version,
                self._env.build_identity,
            )
            cache = WorkspaceCacheManager(
                store=self._backends.cache_store,
                keys=keys,
                workdir=workdir,
                console=self._console,
            )
            cache.restore()

        self._console.header("Command")
        self._console.info(f"Running: stencila {command_line.command} {command_line.args}".rstrip())
        outcome = runner.run(command_line.command, split_args(command_line.args), cwd=workdir)
        if outcome.exit_code < 0 and outcome.stderr:
            self._console.print(outcome.stderr, Style.DIM)
        self._outputs.set_output("exit-code", str(outcome.exit_code))

        if cache is not None:
            cache.save()

        return outcome

    def _publish_release(self, runner: CommandRunner) -> None:
        workdir = self._config.workdir
        publisher = ReleasePublisher(
            settings=ReleaseSettings.from_config(self._config),
            renderer=TemplateRenderer(runner=runner, workdir=workdir, console=self._console),
            host_factory=self._backends.release_host,
            workdir=workdir,
            console=self._console,
        )
        publisher.publish(ReleaseContext.from_environment(self._env, now=self._now))

"""Publishing a release for a tag-triggered run.

Sequence: render the name, render the notes, create the release, then upload
each matched asset under its (optionally rendered) filename. Every failure is
a warning and ends at most the release step; the run's exit status is never
touched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from stencila_action.core.result import Err
from stencila_action.platform.files import expand_glob
from stencila_action.services.release.context import ReleaseContext, file_variables
from stencila_action.services.release.host import CreatedRelease, NewRelease, ReleaseHost
from stencila_action.services.release.templates import TemplateRenderer, resolve_template

if TYPE_CHECKING:
    from stencila_action.core.config import ActionConfig
    from stencila_action.output.console import ConsoleProtocol

__all__ = ["ReleaseAsset", "ReleaseOutcome", "ReleasePublisher", "ReleaseSettings"]

HostFactory = Callable[[str], ReleaseHost]


@dataclass(frozen=True, slots=True)
class ReleaseSettings:
    """Release-related inputs."""

    enabled: bool = False
    token: str | None = None
    name: str | None = None
    notes: str | None = None
    filename: str | None = None
    files: str | None = None

    @classmethod
    def from_config(cls, config: ActionConfig) -> ReleaseSettings:
        return cls(
            enabled=config.release,
            token=config.github_token,
            name=config.release_name,
            notes=config.release_notes,
            filename=config.release_filename,
            files=config.release_files,
        )


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    """A file to attach and the name it is attached under."""

    source_path: Path
    original_filename: str
    rendered_filename: str


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    release: CreatedRelease
    name: str
    uploaded: tuple[str, ...]
    failed: tuple[str, ...]


class ReleasePublisher:
    """Creates a release and attaches assets.

    ``host_factory`` receives the token and returns the host to talk to, so
    nothing is constructed unless a release is actually published.
    """

    def __init__(
        self,
        *,
        settings: ReleaseSettings,
        renderer: TemplateRenderer,
        host_factory: HostFactory,
        workdir: Path,
        console: ConsoleProtocol,
    ) -> None:
        self._settings = settings
        self._renderer = renderer
        self._host_factory = host_factory
        self._workdir = workdir
        self._console = console

    def publish(self, context: ReleaseContext | None) -> ReleaseOutcome | None:
        settings = self._settings
        if not settings.enabled:
            return None

        if context is None:
            self._console.info("Not a tag push, skipping release")
            return None

        if not settings.token:
            self._console.warning("No GitHub token provided, skipping release")
            return None

        variables = context.variables()
        name_template = resolve_template("name", settings.name, self._workdir)
        notes_template = resolve_template("notes", settings.notes, self._workdir)
        filename_template = resolve_template("filename", settings.filename, self._workdir)

        name = self._renderer.render(name_template, variables, context.tag)
        notes = self._renderer.render(notes_template, variables, "", allow_empty=True)

        host = self._host_factory(settings.token)
        self._console.info(f"Creating release {name} for tag {context.tag}")
        created = host.create_release(
            NewRelease(
                owner=context.owner,
                repo=context.repo,
                tag=context.tag,
                name=name,
                body=notes,
                draft=False,
                prerelease=context.prerelease,
            )
        )
        if isinstance(created, Err):
            self._console.warning(f"Failed to create release: {created.error}")
            return None

        release = created.value
        self._console.success(f"Created release {release.url or release.id}")

        uploaded: list[str] = []
        failed: list[str] = []
        if settings.files:
            files = expand_glob(self._workdir, settings.files)
            if not files:
                self._console.warning(f"No files found matching pattern: {settings.files}")

            for path in files:
                asset = ReleaseAsset(
                    source_path=path,
                    original_filename=path.name,
                    rendered_filename=self._renderer.render(
                        filename_template,
                        {**variables, **file_variables(path)},
                        path.name,
                    ),
                )
                if self._upload(host, context, release, asset):
                    uploaded.append(asset.rendered_filename)
                else:
                    failed.append(asset.rendered_filename)

        return ReleaseOutcome(
            release=release,
            name=name,
            uploaded=tuple(uploaded),
            failed=tuple(failed),
        )

    def _upload(
        self,
        host: ReleaseHost,
        context: ReleaseContext,
        release: CreatedRelease,
        asset: ReleaseAsset,
    ) -> bool:
        try:
            data = asset.source_path.read_bytes()
        except OSError as e:
            self._console.warning(f"Failed to read {asset.source_path}: {e}")
            return False

        name = asset.rendered_filename
        result = host.upload_asset(
            owner=context.owner,
            repo=context.repo,
            release_id=release.id,
            name=name,
            data=data,
        )
        if isinstance(result, Err):
            self._console.warning(f"Failed to upload {name}: {result.error}")
            return False

        if name != asset.original_filename:
            self._console.info(f"Uploaded {asset.original_filename} as {name}")
        else:
            self._console.info(f"Uploaded {name}")
        return True

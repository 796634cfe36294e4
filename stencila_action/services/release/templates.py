"""Release templates: discovery and rendering through the Stencila CLI.

A template is either a file (``RELEASE_NOTES.md``) or an inline string from
the action inputs. Both are rendered by Stencila itself, with the release
variables passed as trailing ``name=value`` arguments:

    stencila render RELEASE_NOTES.md --to md -- tag=v1.0.0 date=2026-10-19 ...
    echo "Report {{ tag }}" | stencila render --from md --to md -- tag=v1.0.0 ...

Rendering never raises: a failed render falls back to the template's default.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from stencila_action.output.console import ConsoleProtocol
    from stencila_action.tools.runner import CommandRunner

__all__ = [
    "CANONICAL_NAMES",
    "ReleaseTemplate",
    "TemplateKind",
    "TemplateRenderer",
    "detect_template_file",
    "resolve_template",
]

TemplateKind = Literal["name", "notes", "filename"]

CANONICAL_NAMES: dict[TemplateKind, str] = {
    "name": "release-name",
    "notes": "release-notes",
    "filename": "release-filename",
}


@dataclass(frozen=True, slots=True)
class ReleaseTemplate:
    """Where a template comes from.

    Attributes:
        kind: Which release field it renders
        value: A path (relative to the working directory) or inline text
        detected: True if found by scanning the working directory
    """

    kind: TemplateKind
    value: str
    detected: bool = False

    def file(self, workdir: Path) -> Path | None:
        """The template file, if ``value`` names an existing file."""
        if "\n" in self.value:
            return None
        try:
            candidate = workdir / self.value
            return candidate if candidate.is_file() else None
        except (OSError, ValueError):
            return None


def _normalize_stem(stem: str) -> str:
    return stem.lower().replace("_", "-")


def detect_template_file(workdir: Path, canonical: str) -> Path | None:
    """Find a top-level file whose stem equals ``canonical``.

    Case-insensitive, with ``-`` and ``_`` interchangeable: ``RELEASE_NOTES.md``
    matches "release-notes". First match in name order wins.
    """
    if not workdir.is_dir():
        return None
    target = _normalize_stem(canonical)
    for entry in sorted(workdir.iterdir(), key=lambda p: p.name):
        if entry.is_file() and _normalize_stem(entry.stem) == target:
            return entry
    return None


def resolve_template(
    kind: TemplateKind,
    explicit: str | None,
    workdir: Path,
) -> ReleaseTemplate | None:
    """Explicit input, else an auto-detected file, else None (default applies)."""
    if explicit:
        return ReleaseTemplate(kind=kind, value=explicit)

    found = detect_template_file(workdir, CANONICAL_NAMES[kind])
    if found is None:
        return None
    return ReleaseTemplate(kind=kind, value=found.name, detected=True)


class TemplateRenderer:
    """Renders templates with the installed Stencila CLI."""

    def __init__(
        self,
        *,
        runner: CommandRunner,
        workdir: Path,
        console: ConsoleProtocol,
    ) -> None:
        self._runner = runner
        self._workdir = workdir
        self._console = console

    def render(
        self,
        template: ReleaseTemplate | None,
        variables: Mapping[str, str],
        default: str,
        *,
        allow_empty: bool = False,
    ) -> str:
        """Render ``template``, or return ``default`` if unset or rendering fails.

        Args:
            template: Template to render (None -> default)
            variables: Values passed as ``name=value`` arguments
            default: Fallback value
            allow_empty: Accept an empty render instead of falling back
        """
        if template is None:
            return default

        var_args = [f"{name}={value}" for name, value in variables.items()]
        path = template.file(self._workdir)
        if path is not None:
            outcome = self._runner.run(
                "render",
                [template.value, "--to", "md", "--", *var_args],
                cwd=self._workdir,
                capture=True,
            )
        else:
            outcome = self._runner.run(
                "render",
                ["--from", "md", "--to", "md", "--", *var_args],
                cwd=self._workdir,
                capture=True,
                stdin=template.value,
            )

        if not outcome.ok:
            self._console.warning(
                f"Failed to render release {template.kind} (exit {outcome.exit_code}); "
                f"using default"
            )
            return default

        rendered = outcome.stdout.strip()
        if not rendered and not allow_empty:
            return default
        return rendered

"""Publishing a release for tag-triggered runs."""

from stencila_action.services.release.context import (
    ReleaseContext,
    file_variables,
    is_prerelease,
)
from stencila_action.services.release.errors import ReleaseError
from stencila_action.services.release.host import (
    CreatedRelease,
    GhReleaseHost,
    NewRelease,
    ReleaseHost,
)
from stencila_action.services.release.publisher import (
    ReleaseAsset,
    ReleaseOutcome,
    ReleasePublisher,
    ReleaseSettings,
)
from stencila_action.services.release.templates import (
    ReleaseTemplate,
    TemplateRenderer,
    detect_template_file,
    resolve_template,
)

__all__ = [
    "CreatedRelease",
    "GhReleaseHost",
    "NewRelease",
    "ReleaseAsset",
    "ReleaseContext",
    "ReleaseError",
    "ReleaseHost",
    "ReleaseOutcome",
    "ReleasePublisher",
    "ReleaseSettings",
    "ReleaseTemplate",
    "TemplateRenderer",
    "detect_template_file",
    "file_variables",
    "is_prerelease",
    "resolve_template",
]

"""Typed action inputs.

Inputs arrive from three places, lowest precedence first:

1. defaults on :class:`ActionConfig`
2. an optional TOML file with an ``[inputs]`` table
3. ``INPUT_*`` environment variables set by the job runner

The CLI applies its own options on top with :meth:`ActionConfig.merged`.
Keys are matched case-insensitively with ``-`` and ``_`` interchangeable, so
``working-directory``, ``working_directory`` and ``INPUT_WORKING-DIRECTORY``
all address the same input.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from .errors import ActionError
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_table

__all__ = [
    "ActionConfig",
    "ConfigError",
    "CommandLine",
    "DEFAULT_ARTIFACT_NAME",
    "config_from_env",
    "load_config",
]

DEFAULT_VERSION = "latest"
DEFAULT_ARTIFACT_NAME = "stencila-outputs"

ENV_PREFIX = "INPUT_"

# input key -> attribute
_STR_FIELDS: dict[str, str] = {
    "version": "version",
    "command": "command",
    "args": "args",
    "run": "run",
    "working-directory": "working_directory",
    "upload-outputs": "upload_outputs",
    "artifact-name": "artifact_name",
    "release-name": "release_name",
    "release-notes": "release_notes",
    "release-files": "release_files",
    "release-filename": "release_filename",
    "github-token": "github_token",
}

_BOOL_FIELDS: dict[str, str] = {
    "cache": "cache",
    "release": "release",
}


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when a config file cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class CommandLine:
    """The Stencila subcommand to run and its raw argument string."""

    command: str
    args: str = ""


def _normalize_keys(data: Mapping[str, object]) -> StrDict:
    return {key.strip().lower().replace("_", "-"): value for key, value in data.items()}


@dataclass(frozen=True, slots=True)
class ActionConfig:
    """All inputs of one action run."""

    version: str = DEFAULT_VERSION
    command: str | None = None
    args: str | None = None
    run: str | None = None
    working_directory: str = "."
    cache: bool = True
    upload_outputs: str | None = None
    artifact_name: str = DEFAULT_ARTIFACT_NAME
    release: bool = False
    release_name: str | None = None
    release_notes: str | None = None
    release_files: str | None = None
    release_filename: str | None = None
    github_token: str | None = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ActionConfig:
        """Create a config from a mapping of input names to values."""
        return cls().merged(data)

    def merged(self, data: Mapping[str, object]) -> ActionConfig:
        """Return a copy with every non-empty input in ``data`` applied.

        Empty strings are ignored: the runner exports every declared input,
        including the ones the workflow left blank.
        """
        normalized = _normalize_keys(data)
        changes: dict[str, object] = {}

        for key, attr in _STR_FIELDS.items():
            value = get_str(normalized, key)
            if value is not None:
                changes[attr] = value

        for key, attr in _BOOL_FIELDS.items():
            flag = get_bool(normalized, key)
            if flag is not None:
                changes[attr] = flag

        return replace(self, **changes)

    @property
    def workdir(self) -> Path:
        return Path(self.working_directory)

    def command_line(self) -> Result[CommandLine | None, ActionError]:
        """Resolve ``command``/``args`` or ``run`` into a :class:`CommandLine`.

        ``run`` holds a whole command line ("render report.smd report.html");
        its first space-separated token is the subcommand. Setting both
        ``command`` and ``run`` is a configuration error.
        """
        if self.command and self.run:
            return Err(
                ActionError(
                    kind="conflicting_command",
                    message="both 'command' and 'run' are set",
                    hint="Use either command + args, or run, not both.",
                )
            )

        if self.run:
            command, _, args = self.run.partition(" ")
            return Ok(CommandLine(command=command, args=args))

        if self.command:
            return Ok(CommandLine(command=self.command, args=self.args or ""))

        return Ok(None)


def config_from_env(
    environ: Mapping[str, str] | None = None,
    *,
    base: ActionConfig | None = None,
) -> ActionConfig:
    """Apply ``INPUT_*`` variables from ``environ`` on top of ``base``."""
    env = os.environ if environ is None else environ
    inputs: StrDict = {
        key[len(ENV_PREFIX) :]: value
        for key, value in env.items()
        if key.upper().startswith(ENV_PREFIX)
    }
    return (base or ActionConfig()).merged(inputs)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, mapping read and syntax errors to ConfigError."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ActionConfig, ConfigError]:
    """Load inputs from the ``[inputs]`` table of a TOML file.

    Args:
        path: Path to the TOML file

    Returns:
        Ok(ActionConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    inputs = get_table(result.value, "inputs")
    if inputs is None:
        return Err(ConfigError("Missing [inputs] table", path=path))

    return Ok(ActionConfig.from_dict(inputs))

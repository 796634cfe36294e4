"""Platform-aware user directories.

Used as fallbacks when the job runner does not provide ``RUNNER_TOOL_CACHE``
(local or self-hosted runs).
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from .detection import is_windows

__all__ = [
    "home",
    "user_cache_dir",
    "clear_caches",
]

APP_NAME = "stencila-action"


@lru_cache(maxsize=1)
def home() -> Path:
    """Get user's home directory.

    Uses USERPROFILE on Windows, HOME on Unix.
    """
    if is_windows():
        userprofile = os.environ.get("USERPROFILE")
        if userprofile:
            return Path(userprofile)
    else:
        home_env = os.environ.get("HOME")
        if home_env:
            return Path(home_env)

    return Path.home()


@lru_cache(maxsize=1)
def user_cache_dir() -> Path:
    """Get the user-level cache directory for the action.

    ``STENCILA_ACTION_HOME`` wins when set. Otherwise
    ``~/.cache/stencila-action`` (Unix, honouring ``XDG_CACHE_HOME``) or
    ``%LOCALAPPDATA%/stencila-action`` (Windows).
    """
    override = os.environ.get("STENCILA_ACTION_HOME")
    if override:
        return Path(override)

    if is_windows():
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / APP_NAME
        return home() / "AppData" / "Local" / APP_NAME

    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache) / APP_NAME
    return home() / ".cache" / APP_NAME


def clear_caches() -> None:
    """Clear cached paths (tests change the environment)."""
    home.cache_clear()
    user_cache_dir.cache_clear()

"""Stencila CLI provisioning.

This package provides:
- HTTP client for release discovery and downloads (http.py)
- Version resolution (version.py)
- Archive extraction and binary discovery (installer.py)
- Tool cache (tool_cache.py)
- Install orchestration (stencila.py)
- Command execution (runner.py)
"""

from stencila_action.tools.http import (
    HttpClient,
    HttpError,
    MockHttpClient,
    RealHttpClient,
    Redirect,
)
from stencila_action.tools.installer import (
    DirectoryListing,
    InstallError,
    ListingEntry,
    extract_archive,
    list_directory,
    locate_binary,
)
from stencila_action.tools.runner import CommandOutcome, CommandRunner, split_args
from stencila_action.tools.stencila import Installation, StencilaInstaller
from stencila_action.tools.tool_cache import LocalToolCache, ToolCache
from stencila_action.tools.version import ResolvedVersion, resolve_version

__all__ = [
    # HTTP
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "Redirect",
    # Extraction
    "DirectoryListing",
    "InstallError",
    "ListingEntry",
    "extract_archive",
    "list_directory",
    "locate_binary",
    # Runner
    "CommandOutcome",
    "CommandRunner",
    "split_args",
    # Install
    "Installation",
    "StencilaInstaller",
    # Cache
    "LocalToolCache",
    "ToolCache",
    # Version
    "ResolvedVersion",
    "resolve_version",
]

"""Platform abstraction layer."""

from .detection import (
    Arch,
    Platform,
    PlatformInfo,
    detect,
    is_windows,
)
from .paths import (
    home,
    user_cache_dir,
)
from .process import (
    ProcessError,
    ProcessOutcome,
    execute,
    run,
)
from .target import (
    PlatformTarget,
    resolve_target,
)

__all__ = [
    # detection
    "Arch",
    "Platform",
    "PlatformInfo",
    "detect",
    "is_windows",
    # paths
    "home",
    "user_cache_dir",
    # process
    "ProcessError",
    "ProcessOutcome",
    "execute",
    "run",
    # target
    "PlatformTarget",
    "resolve_target",
]

"""Action services.

- action.py: the full run (install, command, outputs, release)
- workspace_cache.py: restoring and saving ``.stencila/cache``
- outputs.py: uploading command outputs as an artifact
- release/: release creation from templates
"""

from stencila_action.services.action import ActionBackends, ActionService
from stencila_action.services.outputs import (
    ArtifactStore,
    LocalArtifactStore,
    OutputPublisher,
)
from stencila_action.services.workspace_cache import (
    CacheStore,
    LocalCacheStore,
    WorkspaceCacheManager,
    cache_keys,
)

__all__ = [
    "ActionBackends",
    "ActionService",
    "ArtifactStore",
    "CacheStore",
    "LocalArtifactStore",
    "LocalCacheStore",
    "OutputPublisher",
    "WorkspaceCacheManager",
    "cache_keys",
]

"""Data model shared by resolution, fetching and reporting.

All public names are re-exported here so callers can write
``from depfetch.core.model import Dependency, Module``.
"""

from depfetch.core.model.modules import (
    DEFAULT_CONFIGURATION,
    TRANSITIVE_SCOPES,
    Artifact,
    Attributes,
    Dependency,
    Module,
    Project,
    Publication,
)
from depfetch.core.model.versions import (
    compare_versions,
    highest,
    is_snapshot,
    version_key,
)

__all__ = [
    "DEFAULT_CONFIGURATION",
    "TRANSITIVE_SCOPES",
    "Artifact",
    "Attributes",
    "Dependency",
    "Module",
    "Project",
    "Publication",
    "compare_versions",
    "highest",
    "is_snapshot",
    "version_key",
]

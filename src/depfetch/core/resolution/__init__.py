"""Dependency resolution: root request, repository chain and engine.

Submodules:
    root          -- RootRequest, build_root_request, force-version folding
    repositories  -- WorkspaceSource, RemoteSource, RepositoryChain
    descriptors   -- Maven POM and ivy.xml parsers
    state         -- ResolutionState and its derived views
    engine        -- ResolutionEngine and EngineOutcome

All public names are re-exported here.
"""

from depfetch.core.resolution.descriptors import parse_ivy, parse_pom
from depfetch.core.resolution.engine import EngineOutcome, EngineStatus, ResolutionEngine
from depfetch.core.resolution.repositories import (
    LookupResult,
    RemoteSource,
    Repository,
    RepositoryChain,
    RepositoryDeclaration,
    RepositoryKind,
    WorkspaceSource,
    artifacts_for,
    default_properties,
    descriptor_artifact,
    substitute_properties,
)
from depfetch.core.resolution.root import (
    RootRequest,
    build_root_request,
    exclude_optional,
    force_versions_from,
)
from depfetch.core.resolution.state import ResolutionState

__all__ = [
    "EngineOutcome",
    "EngineStatus",
    "LookupResult",
    "RemoteSource",
    "Repository",
    "RepositoryChain",
    "RepositoryDeclaration",
    "RepositoryKind",
    "ResolutionEngine",
    "ResolutionState",
    "RootRequest",
    "WorkspaceSource",
    "artifacts_for",
    "build_root_request",
    "default_properties",
    "descriptor_artifact",
    "exclude_optional",
    "force_versions_from",
    "parse_ivy",
    "parse_pom",
    "substitute_properties",
]

"""ResolutionState: everything the engine knows about one resolution.

The state holds only what was *learned* (projects found, lookups that
failed); the dependency set, conflicts, errors and artifacts are derived
from it on demand. The engine is the only writer. Once the engine returns,
callers treat the state as read-only.

Reconciliation rule: a module resolves to its forced version if the
force-version map pins it, otherwise to the highest version requested
anywhere in the dependency set.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field, replace
from typing import Iterable

from depfetch.core.model import (
    TRANSITIVE_SCOPES,
    Artifact,
    Dependency,
    Module,
    Project,
    compare_versions,
    highest,
)
from depfetch.core.resolution.repositories import Repository, artifacts_for
from depfetch.core.resolution.root import DependencyFilter, RootRequest, exclude_optional

logger = logging.getLogger(__name__)

ModuleVersion = tuple[Module, str]


@dataclass
class ResolutionState:
    """Mutable resolution state.

    Attributes:
        root_dependencies: Dependencies the resolution starts from.
        filter: Predicate a transitive dependency must pass to be expanded.
        force_versions: Module to pinned version.
        iteration: Number of lookup rounds performed so far.
        done: True once a fixed point was reached.
        project_cache: ``(module, version)`` to the repository and project
            that answered for it.
        failures: ``(module, version)`` to the messages of every repository
            that could not answer for it.
    """

    root_dependencies: frozenset[Dependency]
    filter: DependencyFilter = exclude_optional
    force_versions: dict[Module, str] = field(default_factory=dict)
    iteration: int = 0
    done: bool = False
    project_cache: dict[ModuleVersion, tuple[Repository, Project]] = field(default_factory=dict)
    failures: dict[ModuleVersion, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: RootRequest) -> ResolutionState:
        return cls(
            root_dependencies=request.dependencies,
            filter=request.filter,
            force_versions=dict(request.force_versions),
        )

    # -- Reconciliation and expansion ----------------------------------------

    def reconcile(self, dependencies: Iterable[Dependency]) -> dict[Module, str]:
        """Pick one version per module among *dependencies*."""
        requested: dict[Module, set[str]] = defaultdict(set)
        for dep in dependencies:
            requested[dep.module].add(dep.version)
        return {
            module: self.force_versions.get(module) or highest(versions)
            for module, versions in requested.items()
        }

    def _version_for(self, dep: Dependency, versions: dict[Module, str]) -> str:
        return self.force_versions.get(dep.module) or versions.get(dep.module, dep.version)

    def _children(self, dep: Dependency, version: str) -> list[Dependency]:
        entry = self.project_cache.get((dep.module, version))
        if entry is None:
            return []
        _, project = entry
        children: list[Dependency] = []
        for scope, child in project.dependencies:
            if scope not in TRANSITIVE_SCOPES or child.optional:
                continue
            if not self.filter(child) or dep.excludes(child.module):
                continue
            if dep.exclusions:
                child = replace(child, exclusions=child.exclusions | dep.exclusions)
            children.append(child)
        return children

    def _expand_once(
        self, roots: Iterable[Dependency], versions: dict[Module, str]
    ) -> frozenset[Dependency]:
        seen: set[Dependency] = set()
        queue: deque[Dependency] = deque(sorted(roots, key=Dependency.sort_key))
        while queue:
            dep = queue.popleft()
            if dep in seen:
                continue
            seen.add(dep)
            queue.extend(self._children(dep, self._version_for(dep, versions)))
        return frozenset(seen)

    def expand(self, roots: Iterable[Dependency]) -> frozenset[Dependency]:
        """Transitive dependency set of *roots* given the projects known so far.

        Expansion and reconciliation feed each other (a newly reached
        dependency may raise a module's version, which changes what that
        module brings in), so both are iterated until the set is stable.
        """
        roots = frozenset(roots)
        current = roots
        visited = {current}
        while True:
            following = self._expand_once(roots, self.reconcile(current))
            if following == current:
                return current
            if following in visited:
                logger.warning("Dependency set oscillates; keeping the union of both sides")
                return current | following
            visited.add(following)
            current = following

    @property
    def dependencies(self) -> frozenset[Dependency]:
        """The reconciled transitive dependency set of the roots."""
        return self.expand(self.root_dependencies)

    def versions(self) -> dict[Module, str]:
        """Reconciled version of every module in the dependency set."""
        return self.reconcile(self.dependencies)

    def missing(self) -> list[ModuleVersion]:
        """Reconciled ``(module, version)`` pairs not looked up yet, sorted."""
        pending = [
            (module, version)
            for module, version in self.versions().items()
            if (module, version) not in self.project_cache
            and (module, version) not in self.failures
        ]
        return sorted(pending)

    # -- Derived views ------------------------------------------------------

    @property
    def conflicts(self) -> frozenset[Dependency]:
        """Dependencies whose request lost reconciliation to another version.

        Modules pinned in the force-version map never conflict.
        """
        deps = self.dependencies
        versions = self.reconcile(deps)
        return frozenset(
            dep
            for dep in deps
            if dep.module not in self.force_versions
            and compare_versions(dep.version, versions[dep.module]) != 0
        )

    @property
    def errors(self) -> dict[Dependency, tuple[str, ...]]:
        """Every dependency whose reconciled version no repository could answer."""
        deps = self.dependencies
        versions = self.reconcile(deps)
        return {
            dep: self.failures[(dep.module, versions[dep.module])]
            for dep in sorted(deps, key=Dependency.sort_key)
            if (dep.module, versions[dep.module]) in self.failures
        }

    def resolved_version(self, dep: Dependency, versions: dict[Module, str] | None = None) -> str:
        """Version *dep* resolved to, or its requested version if it did not."""
        versions = self.versions() if versions is None else versions
        entry = self.project_cache.get((dep.module, self._version_for(dep, versions)))
        if entry is None:
            return dep.version
        return entry[1].version

    def subset(self, roots: Iterable[Dependency]) -> frozenset[Dependency]:
        """Transitive closure of *roots* using this resolution's versions."""
        return self._expand_once(roots, self.versions())

    def dependency_artifacts(
        self, dependencies: Iterable[Dependency]
    ) -> list[tuple[Dependency, Artifact]]:
        """``(dependency, artifact)`` pairs for *dependencies*, sorted by dependency."""
        versions = self.versions()
        pairs: list[tuple[Dependency, Artifact]] = []
        for dep in sorted(dependencies, key=Dependency.sort_key):
            entry = self.project_cache.get((dep.module, self._version_for(dep, versions)))
            if entry is None:
                continue
            repository, project = entry
            pairs.extend((dep, artifact) for artifact in artifacts_for(repository, dep, project))
        return pairs

    @property
    def artifacts(self) -> frozenset[Artifact]:
        """Every artifact required by the reconciled dependency set."""
        return frozenset(artifact for _, artifact in self.dependency_artifacts(self.dependencies))

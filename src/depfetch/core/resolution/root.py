"""Root request builder.

Derives the initial resolution request of one project from its declared
dependencies and the sibling projects of its workspace. Siblings pin their
own module to their own version, so every project in the workspace sees
the same version of every other project.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from depfetch.core.model import Dependency, Module, Project
from depfetch.exceptions import ForceVersionConflict

DependencyFilter = Callable[[Dependency], bool]


def exclude_optional(dependency: Dependency) -> bool:
    """Default resolution filter: keep every non-optional dependency."""
    return not dependency.optional


@dataclass(frozen=True)
class RootRequest:
    """Initial input of the resolution engine.

    Attributes:
        dependencies: Root dependencies that passed the filter.
        force_versions: Module to pinned version.
        filter: Predicate applied to root and transitive dependencies.
    """

    dependencies: frozenset[Dependency]
    force_versions: dict[Module, str] = field(default_factory=dict)
    filter: DependencyFilter = exclude_optional


def force_versions_from(siblings: list[Project] | tuple[Project, ...]) -> dict[Module, str]:
    """Fold sibling projects into a module-to-version map.

    Siblings are visited in ``(organization, name, version)`` order so the
    result never depends on the order the caller listed them in.

    Raises:
        ForceVersionConflict: If two siblings share a module but not a version.
    """
    forced: dict[Module, str] = {}
    for project in sorted(siblings, key=lambda p: (p.module, p.version)):
        pinned = forced.get(project.module)
        if pinned is not None and pinned != project.version:
            raise ForceVersionConflict(
                f"Workspace projects pin {project.module} to both "
                f"{pinned!r} and {project.version!r}"
            )
        forced[project.module] = project.version
    return forced


def build_root_request(
    project: Project,
    siblings: list[Project] | tuple[Project, ...],
    include: DependencyFilter | None = None,
    overrides: dict[Module, str] | None = None,
) -> RootRequest:
    """Build the root request of *project*.

    Args:
        project: The project being resolved.
        siblings: All workspace projects (may include *project* itself).
        include: Dependency predicate; defaults to excluding optional ones.
        overrides: Explicit pins applied after the sibling pins; they win.

    Returns:
        The ``RootRequest`` for the resolution engine.
    """
    predicate = include or exclude_optional
    roots = frozenset(dep for _, dep in project.dependencies if predicate(dep))
    forced = force_versions_from(siblings)
    if overrides:
        forced.update(overrides)
    return RootRequest(dependencies=roots, force_versions=forced, filter=predicate)

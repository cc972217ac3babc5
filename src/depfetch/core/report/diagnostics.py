"""Human-readable conflict and error summaries.

Lines are sorted so two runs over the same resolution print the same
text. A dependency is rendered as::

    org:name:type[:classifier]:version[ (resolved for requested)]
"""

from __future__ import annotations

from depfetch.core.model import Dependency
from depfetch.core.resolution.state import ResolutionState


def dependency_repr(dep: Dependency, resolved: str | None = None) -> str:
    version = resolved or dep.version
    parts = [dep.module.organization, dep.module.name, dep.attributes.type]
    if dep.attributes.classifier:
        parts.append(dep.attributes.classifier)
    parts.append(version)
    extra = "" if version == dep.version else f" ({version} for {dep.version})"
    return ":".join(parts) + extra


def render_conflicts(state: ResolutionState) -> list[str]:
    """One line per conflicting dependency request."""
    versions = state.versions()
    return sorted(
        dependency_repr(dep, versions.get(dep.module)) for dep in state.conflicts
    )


def render_errors(state: ResolutionState) -> list[str]:
    """One line per unresolved dependency, its messages joined by ``"; "``."""
    lines = [
        f"{dep.module}:{dep.version}: " + "; ".join(m.replace("\n", " ") for m in messages)
        for dep, messages in state.errors.items()
    ]
    return sorted(lines)


def project_summary(
    organization: str, name: str, version: str, dependencies: list[tuple[str, Dependency]]
) -> list[str]:
    """Header lines announcing what is being resolved."""
    lines = [f"Resolving {organization}:{name}:{version}"]
    lines.extend(
        sorted(
            f"  {dep.module}:{dep.version}:{scope}->{dep.configuration}"
            for scope, dep in dependencies
        )
    )
    return lines

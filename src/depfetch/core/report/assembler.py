"""Report assembly: joins resolution, fetch results and configuration closures.

For every configuration, the dependencies declared under the
configuration and everything it extends are expanded through the
resolution, and each resulting dependency gets a ``ModuleReport`` whose
artifacts are split into fetched files and failures.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from pathlib import Path

from depfetch.core.configurations import ConfigurationGraph
from depfetch.core.fetch.results import FailureKind, FetchFailure, FetchResult
from depfetch.core.model import Artifact, Dependency, Module, Project
from depfetch.core.report.diagnostics import render_conflicts, render_errors
from depfetch.core.report.models import ConfigurationReport, ModuleReport, UpdateReport
from depfetch.core.resolution.state import ResolutionState
from depfetch.exceptions import InvariantViolation

NOT_DOWNLOADED = FetchFailure("not downloaded", FailureKind.NOT_FOUND)


def ensure_local_file(path: Path) -> Path:
    """Reject fetch results that are not plain local paths.

    Raises:
        InvariantViolation: If *path* still looks like a URL.
    """
    text = str(path)
    if "file:/" in text or "://" in text:
        raise InvariantViolation(f"Wrong path: {text}")
    return path


def _report_key(dep: Dependency, version: str) -> Dependency:
    return replace(dep, version=version, exclusions=frozenset())


def module_reports(
    state: ResolutionState,
    dependencies: frozenset[Dependency],
    fetch_results: dict[Artifact, FetchResult],
    versions: dict[Module, str] | None = None,
) -> tuple[ModuleReport, ...]:
    """One ``ModuleReport`` per distinct resolved dependency in *dependencies*."""
    versions = state.versions() if versions is None else versions
    grouped: dict[Dependency, list[Artifact]] = {}
    for dep in sorted(dependencies, key=Dependency.sort_key):
        grouped.setdefault(_report_key(dep, state.resolved_version(dep, versions)), [])
    for dep, artifact in state.dependency_artifacts(dependencies):
        artifacts = grouped[_report_key(dep, state.resolved_version(dep, versions))]
        if artifact not in artifacts:
            artifacts.append(artifact)

    reports: list[ModuleReport] = []
    for dep in sorted(grouped, key=Dependency.sort_key):
        fetched: list[tuple[Artifact, Path]] = []
        failed: list[tuple[Artifact, str]] = []
        for artifact in sorted(grouped[dep], key=lambda a: a.url):
            result = fetch_results.get(artifact, NOT_DOWNLOADED)
            if result.ok:
                fetched.append((artifact, ensure_local_file(result.path)))
            else:
                failed.append((artifact, result.reason))
        reports.append(ModuleReport(dep, tuple(fetched), tuple(failed)))
    return tuple(reports)


def assemble_report(
    project: Project,
    graph: ConfigurationGraph,
    state: ResolutionState,
    fetch_results: dict[Artifact, FetchResult],
) -> UpdateReport:
    """Build the update report of *project*.

    Args:
        project: The resolved project (its declared dependencies and scopes).
        graph: Configurations to report on, in report order.
        state: A finished resolution.
        fetch_results: Outcome of fetching ``state.artifacts``.

    Raises:
        InvariantViolation: If a fetch result is not a local path.
    """
    declared: dict[str, list[Dependency]] = defaultdict(list)
    for scope, dep in project.dependencies:
        declared[scope].append(dep)

    versions = state.versions()
    configurations: list[ConfigurationReport] = []
    for name in graph.names:
        roots = [dep for scope in sorted(graph.closure(name)) for dep in declared.get(scope, [])]
        modules = module_reports(state, state.subset(roots), fetch_results, versions)
        configurations.append(ConfigurationReport(name=name, modules=modules))

    return UpdateReport(
        configurations=tuple(configurations),
        conflicts=tuple(render_conflicts(state)),
        errors=tuple(render_errors(state)),
    )

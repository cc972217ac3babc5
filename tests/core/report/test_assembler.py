"""Tests for update report assembly, diagnostics and serialization."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from depfetch.core.configurations import ConfigurationGraph
from depfetch.core.fetch import FailureKind, FetchFailure, FetchSuccess
from depfetch.core.model import Dependency
from depfetch.core.report import (
    assemble_report,
    dependency_repr,
    ensure_local_file,
    project_summary,
)
from depfetch.core.resolution import RepositoryChain, ResolutionEngine, build_root_request
from depfetch.exceptions import InvariantViolation
from tests.helpers import FakeMavenRepository, dep, local_miss, project


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app():
    return project(
        "org.app:app:1.0",
        dep("org.a:a:1.0"),
        ("test", dep("org.t:t:1.0")),
        ("provided", dep("org.p:p:1.0")),
    )


@pytest.fixture
def resolved(repo: FakeMavenRepository, tmp_path: Path, app):
    repo.add_module("org.a", "a", "1.0", [("org.b", "b", "1.0")])
    repo.add_module("org.b", "b", "1.0")
    repo.add_module("org.t", "t", "1.0")
    repo.add_module("org.p", "p", "1.0")
    chain = RepositoryChain.for_workspace([app], [repo.source])
    engine = ResolutionEngine(chain, local_miss, repo.fetch(tmp_path))
    outcome = asyncio.run(engine.resolve(build_root_request(app, [app]), 50))
    assert outcome.done
    return outcome.state


def _all_fetched(state, directory: Path) -> dict:
    return {
        artifact: FetchSuccess(directory / artifact.url.rsplit("/", 1)[-1])
        for artifact in state.artifacts
    }


def _names(configuration) -> list[str]:
    return [m.dependency.module.name for m in configuration.modules]


# ---------------------------------------------------------------------------
# Per-configuration content
# ---------------------------------------------------------------------------


class TestAssembleReport:
    """Configurations see their own and inherited dependencies."""

    def test_configurations_in_graph_order(self, app, resolved, tmp_path: Path) -> None:
        report = assemble_report(app, ConfigurationGraph.standard(), resolved, _all_fetched(resolved, tmp_path))
        assert [c.name for c in report.configurations] == [
            "compile", "runtime", "test", "provided", "optional", "default",
        ]

    def test_scope_inheritance(self, app, resolved, tmp_path: Path) -> None:
        report = assemble_report(app, ConfigurationGraph.standard(), resolved, _all_fetched(resolved, tmp_path))
        assert _names(report.configuration("compile")) == ["a", "b"]
        assert _names(report.configuration("runtime")) == ["a", "b"]
        assert _names(report.configuration("test")) == ["a", "b", "t"]
        assert _names(report.configuration("provided")) == ["p"]
        assert _names(report.configuration("optional")) == []

    def test_files_reported(self, app, resolved, tmp_path: Path) -> None:
        report = assemble_report(app, ConfigurationGraph.standard(), resolved, _all_fetched(resolved, tmp_path))
        module = report.configuration("runtime").module("org.b", "b")
        assert module.files == [tmp_path / "b-1.0.jar"]
        assert module.failed == ()
        assert report.failed_count == 0

    def test_unfetched_artifact_is_failed(self, app, resolved, repo: FakeMavenRepository, tmp_path: Path) -> None:
        results = _all_fetched(resolved, tmp_path)
        b_jar = next(a for a in results if a.url == repo.url("org.b", "b", "1.0", "jar"))
        results[b_jar] = FetchFailure("checksum mismatch", FailureKind.CHECKSUM_MISMATCH)

        report = assemble_report(app, ConfigurationGraph.standard(), resolved, results)

        module = report.configuration("compile").module("org.b", "b")
        assert module.files == []
        assert module.failed_artifacts == [b_jar]
        assert report.configuration("compile").module("org.a", "a").files

    def test_missing_result_reported_as_not_downloaded(self, app, resolved, tmp_path: Path) -> None:
        report = assemble_report(app, ConfigurationGraph.standard(), resolved, {})
        module = report.configuration("compile").module("org.a", "a")
        assert [reason for _, reason in module.failed] == ["not downloaded"]

    def test_url_shaped_path_is_an_invariant_violation(self, app, resolved, tmp_path: Path) -> None:
        results = {artifact: FetchSuccess(Path("file:/tmp/x.jar")) for artifact in resolved.artifacts}
        with pytest.raises(InvariantViolation, match="Wrong path"):
            assemble_report(app, ConfigurationGraph.standard(), resolved, results)

    def test_custom_graph(self, app, resolved, tmp_path: Path) -> None:
        graph = ConfigurationGraph.from_mapping({"everything": ["compile", "test", "provided"]})
        report = assemble_report(app, graph, resolved, _all_fetched(resolved, tmp_path))
        assert _names(report.configuration("everything")) == ["a", "b", "p", "t"]


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


class TestDiagnostics:
    def test_conflicts_and_errors(self, repo: FakeMavenRepository, tmp_path: Path) -> None:
        repo.add_module("org.a", "a", "1.0", [("org.c", "c", "1.0")])
        repo.add_module("org.c", "c", "2.0")
        app = project("org.app:app:1.0", dep("org.a:a:1.0"), dep("org.c:c:2.0"), dep("org.m:missing:1.0"))
        chain = RepositoryChain.for_workspace([app], [repo.source])
        engine = ResolutionEngine(chain, local_miss, repo.fetch(tmp_path))
        state = asyncio.run(engine.resolve(build_root_request(app, [app]), 50)).state

        report = assemble_report(app, ConfigurationGraph.standard(), state, _all_fetched(state, tmp_path))

        assert report.conflicts == ("org.c:c:jar:2.0 (2.0 for 1.0)",)
        assert len(report.errors) == 1
        assert report.errors[0].startswith("org.m:missing:1.0: fake: not found")
        # the unresolved dependency is still listed, without artifacts
        missing = report.configuration("compile").module("org.m", "missing")
        assert missing.artifacts == () and missing.failed == ()

    def test_dependency_repr_with_classifier(self) -> None:
        from depfetch.core.model import Attributes

        wanted = dep("org.a:a:1.0", attributes=Attributes(classifier="sources"))
        assert dependency_repr(wanted) == "org.a:a:jar:sources:1.0"

    def test_project_summary_sorted(self) -> None:
        lines = project_summary(
            "org.app", "app", "1.0",
            [("test", dep("org.z:z:1.0")), ("compile", dep("org.a:a:2.0"))],
        )
        assert lines == [
            "Resolving org.app:app:1.0",
            "  org.a:a:2.0:compile->default(compile)",
            "  org.z:z:1.0:test->default(compile)",
        ]

    def test_ensure_local_file(self, tmp_path: Path) -> None:
        assert ensure_local_file(tmp_path / "x.jar") == tmp_path / "x.jar"
        with pytest.raises(InvariantViolation):
            ensure_local_file(Path("file:/opt/x.jar"))


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerialization:
    def test_json_is_deterministic(self, app, resolved, tmp_path: Path) -> None:
        results = _all_fetched(resolved, tmp_path)
        reversed_results = dict(reversed(list(results.items())))
        first = assemble_report(app, ConfigurationGraph.standard(), resolved, results)
        second = assemble_report(app, ConfigurationGraph.standard(), resolved, reversed_results)
        assert first.to_json() == second.to_json()

    def test_json_shape(self, app, resolved, tmp_path: Path) -> None:
        report = assemble_report(app, ConfigurationGraph.standard(), resolved, _all_fetched(resolved, tmp_path))
        data = json.loads(report.to_json())
        assert data["report_version"] == "1.0"
        compile_modules = data["configurations"][0]["modules"]
        assert [m["name"] for m in compile_modules] == ["a", "b"]
        assert compile_modules[0]["artifacts"][0]["path"] == str(tmp_path / "a-1.0.jar")

    def test_write(self, app, resolved, tmp_path: Path) -> None:
        report = assemble_report(app, ConfigurationGraph.standard(), resolved, _all_fetched(resolved, tmp_path))
        target = tmp_path / "out" / "report.json"
        report.write(target)
        assert target.read_text(encoding="utf-8") == report.to_json()

    def test_module_report_carries_resolved_version(self, repo: FakeMavenRepository, tmp_path: Path) -> None:
        repo.add_module("org.a", "a", "1.0", [("org.c", "c", "1.0")])
        repo.add_module("org.c", "c", "2.0")
        app = project("org.app:app:1.0", dep("org.a:a:1.0"), ("test", dep("org.c:c:2.0")))
        chain = RepositoryChain.for_workspace([app], [repo.source])
        engine = ResolutionEngine(chain, local_miss, repo.fetch(tmp_path))
        state = asyncio.run(engine.resolve(build_root_request(app, [app]), 50)).state

        report = assemble_report(app, ConfigurationGraph.standard(), state, _all_fetched(state, tmp_path))

        module = report.configuration("compile").module("org.c", "c")
        assert isinstance(module.dependency, Dependency)
        assert module.dependency.version == "2.0"
        assert module.files == [tmp_path / "c-2.0.jar"]

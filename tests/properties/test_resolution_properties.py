"""Property-based tests for resolution invariants.

Verifies on randomly generated repositories that:
- Termination: every generated graph reaches a fixed point
- Single version: each module resolves to exactly one version, the
  highest one requested anywhere in the dependency set
- Determinism: declaration order of the roots never changes the result
- Forcing: a pinned module always resolves to its pin and never conflicts
"""
from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from depfetch.core.model import Module, highest
from depfetch.core.resolution import RepositoryChain, ResolutionEngine, build_root_request
from tests.helpers import FakeMavenRepository, dep, local_miss, project


# ---------------------------------------------------------------------------
# Strategies for generating random repositories
# ---------------------------------------------------------------------------

MODULE_NAMES = ["alpha", "beta", "gamma", "delta", "epsilon"]
VERSIONS = ["1.0", "1.1", "2.0"]

coordinates = st.tuples(st.sampled_from(MODULE_NAMES), st.sampled_from(VERSIONS))


@st.composite
def repositories(draw: st.DrawFn) -> dict[tuple[str, str], list[tuple[str, str]]]:
    """Every (name, version) with a random list of dependencies (cycles allowed)."""
    graph: dict[tuple[str, str], list[tuple[str, str]]] = {}
    for name in MODULE_NAMES:
        for version in VERSIONS:
            graph[(name, version)] = draw(st.lists(coordinates, max_size=3, unique=True))
    return graph


roots_strategy = st.lists(coordinates, min_size=1, max_size=4, unique=True)


def _publish(graph: dict[tuple[str, str], list[tuple[str, str]]]) -> FakeMavenRepository:
    repo = FakeMavenRepository()
    for (name, version), deps in graph.items():
        repo.add_module("org.p", name, version, [("org.p", d, v) for d, v in deps])
    return repo


def _resolve(graph, roots, overrides=None):
    repo = _publish(graph)
    app = project("org.app:app:1.0", *(dep(f"org.p:{name}:{version}") for name, version in roots))
    with tempfile.TemporaryDirectory() as directory:
        chain = RepositoryChain.for_workspace([app], [repo.source])
        engine = ResolutionEngine(chain, local_miss, repo.fetch(Path(directory)))
        request = build_root_request(app, [app], overrides=overrides)
        return asyncio.run(engine.resolve(request, 50))


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestResolutionProperties:
    """Invariants that hold for every generated repository."""

    @given(graph=repositories(), roots=roots_strategy)
    @settings(max_examples=50, deadline=None)
    def test_terminates(self, graph, roots) -> None:
        outcome = _resolve(graph, roots)
        assert outcome.done
        assert outcome.state.errors == {}

    @given(graph=repositories(), roots=roots_strategy)
    @settings(max_examples=50, deadline=None)
    def test_highest_requested_version_wins(self, graph, roots) -> None:
        state = _resolve(graph, roots).state
        requested: dict[Module, set[str]] = {}
        for d in state.dependencies:
            requested.setdefault(d.module, set()).add(d.version)
        versions = state.versions()
        assert set(versions) == set(requested)
        for module, version in versions.items():
            assert version == highest(requested[module])

    @given(graph=repositories(), roots=roots_strategy, data=st.data())
    @settings(max_examples=50, deadline=None)
    def test_root_order_irrelevant(self, graph, roots, data) -> None:
        shuffled = data.draw(st.permutations(roots))
        first = _resolve(graph, roots).state
        second = _resolve(graph, shuffled).state
        assert first.versions() == second.versions()
        assert first.conflicts == second.conflicts
        assert first.iteration == second.iteration
        assert {a.url for a in first.artifacts} == {a.url for a in second.artifacts}

    @given(graph=repositories(), roots=roots_strategy, pinned=coordinates)
    @settings(max_examples=50, deadline=None)
    def test_pin_always_wins(self, graph, roots, pinned) -> None:
        name, version = pinned
        module = Module("org.p", name)
        state = _resolve(graph, roots, overrides={module: version}).state
        if module in state.versions():
            assert state.versions()[module] == version
        assert all(d.module != module for d in state.conflicts)

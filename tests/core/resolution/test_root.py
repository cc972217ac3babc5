"""Tests for the root request builder and workspace force versions."""

from __future__ import annotations

import pytest

from depfetch.core.model import Module
from depfetch.core.resolution import build_root_request, force_versions_from
from depfetch.exceptions import ConfigurationError, ForceVersionConflict
from tests.helpers import dep, project


class TestBuildRootRequest:
    def test_optional_dependencies_dropped(self) -> None:
        app = project("org.app:app:1.0", dep("org.a:a:1.0"), dep("org.b:b:1.0", optional=True))
        request = build_root_request(app, [app])
        assert request.dependencies == frozenset({dep("org.a:a:1.0")})

    def test_custom_filter(self) -> None:
        app = project("org.app:app:1.0", dep("org.a:a:1.0"), dep("org.b:b:1.0"))
        request = build_root_request(app, [app], include=lambda d: d.module.name == "b")
        assert request.dependencies == frozenset({dep("org.b:b:1.0")})
        assert request.filter(dep("org.b:b:2.0"))

    def test_all_scopes_are_roots(self) -> None:
        app = project("org.app:app:1.0", dep("org.a:a:1.0"), ("test", dep("org.t:t:1.0")))
        request = build_root_request(app, [app])
        assert dep("org.t:t:1.0") in request.dependencies

    def test_siblings_pin_their_version(self) -> None:
        app = project("org.app:app:1.0", dep("org.lib:lib:1.0"))
        lib = project("org.lib:lib:1.5")
        request = build_root_request(app, [app, lib])
        assert request.force_versions == {
            Module("org.app", "app"): "1.0",
            Module("org.lib", "lib"): "1.5",
        }

    def test_overrides_win_over_siblings(self) -> None:
        app = project("org.app:app:1.0")
        lib = project("org.lib:lib:1.5")
        request = build_root_request(app, [app, lib], overrides={Module("org.lib", "lib"): "2.0"})
        assert request.force_versions[Module("org.lib", "lib")] == "2.0"


class TestForceVersionsFrom:
    def test_order_independent(self) -> None:
        siblings = [project("org.a:a:1.0"), project("org.b:b:2.0"), project("org.c:c:3.0")]
        assert force_versions_from(siblings) == force_versions_from(list(reversed(siblings)))

    def test_same_pin_twice_is_fine(self) -> None:
        assert force_versions_from([project("org.a:a:1.0"), project("org.a:a:1.0")]) == {
            Module("org.a", "a"): "1.0"
        }

    def test_conflicting_pins_raise(self) -> None:
        with pytest.raises(ForceVersionConflict, match="org.a:a"):
            force_versions_from([project("org.a:a:1.0"), project("org.a:a:2.0")])

    def test_conflict_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            force_versions_from([project("org.a:a:2.0"), project("org.a:a:1.0")])

"""Shared fixtures for CLI tests.

Provides a Maven repository laid out on disk (reached through ``file:``
URLs, so no HTTP is involved) and build files pointing at it.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers import pom


def _publish(root: Path, org: str, name: str, version: str, dependencies=()) -> None:
    directory = root.joinpath(*org.split("."), name, version)
    directory.mkdir(parents=True)
    (directory / f"{name}-{version}.pom").write_bytes(pom(org, name, version, dependencies))
    (directory / f"{name}-{version}.jar").write_bytes(f"jar of {name}".encode())


@pytest.fixture
def file_repository(tmp_path: Path) -> Path:
    """``org.a:a:1.0`` depending on ``org.b:b:1.0``, plus ``org.t:t:1.0``."""
    root = tmp_path / "m2"
    _publish(root, "org.a", "a", "1.0", [("org.b", "b", "1.0")])
    _publish(root, "org.b", "b", "1.0")
    _publish(root, "org.t", "t", "1.0")
    return root


@pytest.fixture
def build_file(tmp_path: Path, file_repository: Path) -> Path:
    """A valid build file resolving against ``file_repository``."""
    path = tmp_path / "depfetch.yaml"
    path.write_text(
        "project:\n"
        "  organization: org.app\n"
        "  name: app\n"
        "  version: 1.0.0\n"
        "  dependencies:\n"
        "    - org.a:a:1.0\n"
        "    - org.t:t:1.0:test\n"
        "repositories:\n"
        f"  - {{name: local, url: \"{file_repository.as_uri()}\"}}\n"
        "settings:\n"
        f"  cache: \"{tmp_path / 'cache'}\"\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def missing_dependency_build_file(tmp_path: Path, file_repository: Path) -> Path:
    path = tmp_path / "missing.yaml"
    path.write_text(
        "project:\n"
        "  organization: org.app\n"
        "  name: app\n"
        "  version: 1.0.0\n"
        "  dependencies:\n"
        "    - org.a:a:1.0\n"
        "    - org.gone:gone:9.9\n"
        "repositories:\n"
        f"  - {{name: local, url: \"{file_repository.as_uri()}\"}}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def invalid_build_file(tmp_path: Path) -> Path:
    path = tmp_path / "invalid.yaml"
    path.write_text("project:\n  name: app\n", encoding="utf-8")
    return path

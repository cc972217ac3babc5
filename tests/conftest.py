"""Shared fixtures for depfetch tests."""

import pathlib

import pytest

from depfetch.core.scheduler import OperationQueue
from tests.helpers import FakeMavenRepository


@pytest.fixture
def repo() -> FakeMavenRepository:
    """An empty in-memory Maven repository."""
    return FakeMavenRepository()


@pytest.fixture
def cache_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """A fresh artifact cache root."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def queue() -> OperationQueue:
    """An operation queue private to the test."""
    return OperationQueue()


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> None:
    """Keep tests away from the real cache and terminal settings."""
    monkeypatch.setenv("DEPFETCH_CACHE", str(tmp_path / "default-cache"))
    monkeypatch.delenv("DEPFETCH_NO_TERM", raising=False)

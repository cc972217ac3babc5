"""Shared test helpers: POM builders and an in-memory Maven repository.

``FakeMavenRepository`` holds files keyed by absolute URL. It can serve
them through ``httpx.MockTransport`` (for the real fetcher) or directly
as an ``ArtifactFetch`` function (for resolution tests that do not care
about HTTP).
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable

import httpx

from depfetch.core.fetch import FailureKind, FetchFailure, FetchResult, FetchSuccess
from depfetch.core.model import Artifact, Dependency, Module, Project
from depfetch.core.resolution import RemoteSource, RepositoryKind

BASE_URL = "https://repo.example.com/maven2/"

DepCoordinates = tuple  # (org, name, version) or (org, name, version, scope) or (..., scope, optional)


def pom(
    org: str,
    name: str,
    version: str,
    dependencies: Iterable[DepCoordinates] = (),
    packaging: str = "jar",
) -> bytes:
    """Build a minimal POM."""
    deps = []
    for entry in dependencies:
        dep_org, dep_name, dep_version = entry[:3]
        scope = entry[3] if len(entry) > 3 else "compile"
        optional = entry[4] if len(entry) > 4 else False
        deps.append(
            "<dependency>"
            f"<groupId>{dep_org}</groupId><artifactId>{dep_name}</artifactId>"
            f"<version>{dep_version}</version><scope>{scope}</scope>"
            f"<optional>{'true' if optional else 'false'}</optional>"
            "</dependency>"
        )
    return (
        '<?xml version="1.0"?>'
        '<project xmlns="http://maven.apache.org/POM/4.0.0">'
        f"<groupId>{org}</groupId><artifactId>{name}</artifactId>"
        f"<version>{version}</version><packaging>{packaging}</packaging>"
        f"<dependencies>{''.join(deps)}</dependencies>"
        "</project>"
    ).encode()


def sha1(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


def dep(coordinates: str, **kwargs) -> Dependency:
    """``dep("org:name:1.0")`` shorthand."""
    org, name, version = coordinates.split(":")
    return Dependency(Module(org, name), version, **kwargs)


def project(coordinates: str, *deps: Dependency | tuple[str, Dependency]) -> Project:
    """``project("org:name:1.0", dep(...), ("test", dep(...)))`` shorthand."""
    org, name, version = coordinates.split(":")
    pairs = tuple(d if isinstance(d, tuple) else ("compile", d) for d in deps)
    return Project(Module(org, name), version, dependencies=pairs)


class FakeMavenRepository:
    """A Maven repository living in a dict.

    Args:
        base: Repository root URL.
    """

    def __init__(self, base: str = BASE_URL) -> None:
        self.base = base
        self.files: dict[str, bytes] = {}
        self.requests: list[str] = []
        self.broken: set[str] = set()

    @property
    def source(self) -> RemoteSource:
        return RemoteSource(name="fake", kind=RepositoryKind.MAVEN, root=self.base)

    def url(self, org: str, name: str, version: str, ext: str, classifier: str = "") -> str:
        suffix = f"-{classifier}" if classifier else ""
        path = org.replace(".", "/")
        return f"{self.base}{path}/{name}/{version}/{name}-{version}{suffix}.{ext}"

    def add_file(self, url: str, content: bytes, checksum: str | None = "auto") -> None:
        """Publish *content* at *url*, with a ``.sha1`` unless *checksum* is None."""
        self.files[url] = content
        if checksum is not None:
            value = sha1(content) if checksum == "auto" else checksum
            self.files[url + ".sha1"] = f"{value}  {url.rsplit('/', 1)[-1]}\n".encode()

    def add_module(
        self,
        org: str,
        name: str,
        version: str,
        dependencies: Iterable[DepCoordinates] = (),
        packaging: str = "jar",
        jar: bytes | None = None,
    ) -> None:
        self.add_file(self.url(org, name, version, "pom"), pom(org, name, version, dependencies, packaging))
        if packaging != "pom":
            content = jar if jar is not None else f"jar of {org}:{name}:{version}".encode()
            self.add_file(self.url(org, name, version, "jar"), content)

    # -- Serving -------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.broken:
            raise httpx.ConnectError("connection refused", request=request)
        content = self.files.get(url)
        if content is None:
            return httpx.Response(404)
        return httpx.Response(200, content=content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def fetch(self, directory: Path):
        """An ``ArtifactFetch`` reading straight from ``files`` into *directory*."""

        async def fetch(artifact: Artifact) -> FetchResult:
            self.requests.append(artifact.url)
            content = self.files.get(artifact.url)
            if content is None:
                return FetchFailure(f"not found: {artifact.url}", FailureKind.NOT_FOUND)
            path = directory / hashlib.sha1(artifact.url.encode()).hexdigest()
            path.write_bytes(content)
            return FetchSuccess(path)

        return fetch


async def local_miss(artifact: Artifact) -> FetchResult:
    """``ArtifactFetch`` for an empty cache."""
    return FetchFailure(f"not found in cache: {artifact.url}", FailureKind.NOT_FOUND)


class RecordingDownloadLogger:
    """DownloadLogger that remembers every event and the peak concurrency."""

    def __init__(self) -> None:
        self.initialized = 0
        self.started: list[str] = []
        self.finished: list[tuple[str, bool]] = []
        self.in_flight = 0
        self.peak = 0

    def init(self) -> None:
        self.initialized += 1

    def downloading_artifact(self, url: str, destination: Path) -> None:
        self.started.append(url)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)

    def downloaded_artifact(self, url: str, success: bool) -> None:
        self.finished.append((url, success))
        self.in_flight -= 1

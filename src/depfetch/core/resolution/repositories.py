"""Repository chain: where module descriptors and artifacts come from.

A repository is one of two strategies, told apart by an explicit ``kind``
tag rather than by subclassing:

- ``WorkspaceSource`` answers for modules built in the same workspace.
  It never touches the network and publishes no artifacts; the build tool
  wires sibling outputs itself. Being first in the chain, it also breaks
  resolution cycles between modules under active development.
- ``RemoteSource`` is a Maven layout or an Ivy pattern layout reachable
  over ``http``, ``https`` or ``file`` URLs.

The chain is queried in order and the first repository that produces a
project for a ``(module, version)`` request is authoritative.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from depfetch.core.fetch.results import ArtifactFetch
from depfetch.core.model import Artifact, Dependency, Module, Project, is_snapshot
from depfetch.core.resolution.descriptors import parse_ivy, parse_pom
from depfetch.exceptions import ConfigurationError, DescriptorError

logger = logging.getLogger(__name__)

CHECKSUM_EXTENSIONS: tuple[tuple[str, str], ...] = (
    ("SHA-1", ".sha1"),
    ("SHA-256", ".sha256"),
    ("MD5", ".md5"),
)

_PROPERTY_RE = re.compile(r"\$\{([^}]+)\}")
_PATTERN_TOKEN_RE = re.compile(r"\[([A-Za-z]+)\]")
_PATTERN_OPTIONAL_RE = re.compile(r"\(([^()]*)\)")

PATTERN_TOKENS: frozenset[str] = frozenset(
    {"organisation", "organization", "module", "revision", "artifact", "type", "ext", "classifier"}
)

# Maven type -> (extension, implied classifier)
_MAVEN_TYPES: dict[str, tuple[str, str]] = {
    "jar": ("jar", ""),
    "bundle": ("jar", ""),
    "ejb": ("jar", ""),
    "maven-plugin": ("jar", ""),
    "test-jar": ("jar", "tests"),
    "pom": ("pom", ""),
    "war": ("war", ""),
    "ear": ("ear", ""),
}


class RepositoryKind(str, Enum):
    WORKSPACE = "workspace"
    MAVEN = "maven"
    IVY = "ivy"


@dataclass(frozen=True)
class WorkspaceSource:
    """In-memory source backed by the workspace's own projects."""

    projects: tuple[Project, ...]
    name: str = "workspace"
    kind: RepositoryKind = field(default=RepositoryKind.WORKSPACE, init=False)

    def lookup(self, module: Module) -> Project | None:
        for project in self.projects:
            if project.module == module:
                return project
        return None


@dataclass(frozen=True)
class RemoteSource:
    """A Maven or Ivy repository.

    Attributes:
        name: Display name used in error messages.
        kind: ``RepositoryKind.MAVEN`` or ``RepositoryKind.IVY``.
        root: Maven base URL, or the Ivy artifact pattern.
        descriptor_pattern: Ivy descriptor pattern; derived from *root* when
            empty. Unused for Maven.
    """

    name: str
    kind: RepositoryKind
    root: str
    descriptor_pattern: str = ""

    def __post_init__(self) -> None:
        if self.kind is RepositoryKind.WORKSPACE:
            raise ConfigurationError(f"Repository {self.name!r}: remote kind required")
        if self.kind is RepositoryKind.MAVEN and not self.root.endswith("/"):
            object.__setattr__(self, "root", self.root + "/")
        if self.kind is RepositoryKind.IVY:
            if not self.descriptor_pattern:
                object.__setattr__(self, "descriptor_pattern", _ivy_descriptor_pattern(self.root))
            for pattern in (self.root, self.descriptor_pattern):
                unknown = set(_PATTERN_TOKEN_RE.findall(pattern)) - PATTERN_TOKENS
                if unknown:
                    raise ConfigurationError(
                        f"Repository {self.name!r}: unknown pattern tokens {sorted(unknown)}"
                    )


Repository = Union[WorkspaceSource, RemoteSource]


@dataclass(frozen=True)
class LookupResult:
    """Outcome of querying the chain for one ``(module, version)``."""

    repository: Repository | None
    project: Project | None
    messages: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Declarations and property substitution
# ---------------------------------------------------------------------------


def default_properties() -> dict[str, str]:
    """Property table for ``${...}`` placeholders in repository declarations."""
    home = str(Path.home())
    return {"user.home": home, "ivy.home": f"{home}/.ivy2"}


def substitute_properties(text: str, properties: dict[str, str]) -> str:
    """Replace ``${name}`` placeholders in *text*.

    Raises:
        ConfigurationError: If a placeholder has no entry in *properties*.
    """

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in properties:
            raise ConfigurationError(f"Unknown property ${{{key}}} in {text!r}")
        return properties[key]

    return _PROPERTY_RE.sub(replace, text)


@dataclass(frozen=True)
class RepositoryDeclaration:
    """A repository as written in the build file, before substitution."""

    name: str
    url: str = ""
    kind: str = "maven"
    pattern: str = ""
    descriptor_pattern: str = ""

    def to_source(self, properties: dict[str, str]) -> RemoteSource:
        try:
            kind = RepositoryKind(self.kind)
        except ValueError as exc:
            raise ConfigurationError(
                f"Repository {self.name!r}: unknown kind {self.kind!r}"
            ) from exc
        if kind is RepositoryKind.IVY:
            if not self.pattern:
                raise ConfigurationError(f"Ivy repository {self.name!r} needs a pattern")
            return RemoteSource(
                name=self.name,
                kind=kind,
                root=substitute_properties(self.pattern, properties),
                descriptor_pattern=substitute_properties(self.descriptor_pattern, properties),
            )
        if not self.url:
            raise ConfigurationError(f"Maven repository {self.name!r} needs a url")
        return RemoteSource(
            name=self.name, kind=kind, root=substitute_properties(self.url, properties)
        )


# ---------------------------------------------------------------------------
# Strategy dispatch
# ---------------------------------------------------------------------------


def _ivy_descriptor_pattern(artifact_pattern: str) -> str:
    head, sep, _ = artifact_pattern.rpartition("[type]s/")
    if sep:
        return f"{head}ivys/ivy.xml"
    directory = artifact_pattern.rsplit("/", 1)[0]
    return f"{directory}/ivy.xml"


def substitute_pattern(pattern: str, values: dict[str, str]) -> str:
    """Expand an Ivy pattern; ``(...)`` sections vanish when a token is empty."""

    def optional(match: re.Match[str]) -> str:
        section = match.group(1)
        tokens = _PATTERN_TOKEN_RE.findall(section)
        return section if all(values.get(t) for t in tokens) else ""

    expanded = _PATTERN_OPTIONAL_RE.sub(optional, pattern)
    return _PATTERN_TOKEN_RE.sub(lambda m: values.get(m.group(1), ""), expanded)


def _with_checksums(url: str, type_: str, classifier: str, version: str) -> Artifact:
    return Artifact(
        url=url,
        checksum_urls=tuple((algorithm, url + ext) for algorithm, ext in CHECKSUM_EXTENSIONS),
        type=type_,
        classifier=classifier,
        changing=is_snapshot(version),
    )


def _maven_base(repo: RemoteSource, module: Module, version: str) -> str:
    org_path = module.organization.replace(".", "/")
    return f"{repo.root}{org_path}/{module.name}/{version}/{module.name}-{version}"


def _ivy_values(module: Module, version: str) -> dict[str, str]:
    return {
        "organisation": module.organization,
        "organization": module.organization,
        "module": module.name,
        "revision": version,
    }


def descriptor_artifact(repo: RemoteSource, module: Module, version: str) -> Artifact:
    """The POM or ivy.xml artifact describing ``module:version`` in *repo*."""
    if repo.kind is RepositoryKind.MAVEN:
        url = _maven_base(repo, module, version) + ".pom"
        return _with_checksums(url, "pom", "", version)
    values = _ivy_values(module, version)
    values.update(artifact="ivy", type="ivy", ext="xml")
    return _with_checksums(substitute_pattern(repo.descriptor_pattern, values), "ivy", "", version)


def parse_descriptor(repo: RemoteSource, content: bytes) -> Project:
    if repo.kind is RepositoryKind.MAVEN:
        return parse_pom(content)
    return parse_ivy(content)


def artifacts_for(repo: Repository, dependency: Dependency, project: Project) -> list[Artifact]:
    """Artifacts *repo* offers for *dependency*, resolved to *project*."""
    if repo.kind is RepositoryKind.WORKSPACE:
        return []

    wanted_type = dependency.attributes.type
    classifier = dependency.attributes.classifier

    if repo.kind is RepositoryKind.MAVEN:
        if project.packaging == "pom" and wanted_type == "jar":
            return []
        ext, implied = _MAVEN_TYPES.get(wanted_type, (wanted_type, ""))
        classifier = classifier or implied
        suffix = f"-{classifier}" if classifier else ""
        url = f"{_maven_base(repo, project.module, project.version)}{suffix}.{ext}"
        return [_with_checksums(url, wanted_type, classifier, project.version)]

    artifacts: list[Artifact] = []
    for publication in project.publications:
        type_matches = publication.type == wanted_type or (
            wanted_type == "jar" and publication.type == "bundle"
        )
        if not type_matches or publication.classifier != classifier:
            continue
        values = _ivy_values(project.module, project.version)
        values.update(
            artifact=publication.name,
            type=publication.type,
            ext=publication.ext,
            classifier=publication.classifier,
        )
        url = substitute_pattern(repo.root, values)
        artifacts.append(_with_checksums(url, publication.type, publication.classifier, project.version))
    return artifacts


# ---------------------------------------------------------------------------
# RepositoryChain
# ---------------------------------------------------------------------------


class RepositoryChain:
    """Ordered repositories, queried first-match-wins.

    Args:
        repositories: The workspace source (if any) followed by remotes.
    """

    def __init__(self, repositories: list[Repository] | tuple[Repository, ...]) -> None:
        self._repositories = tuple(repositories)

    @classmethod
    def for_workspace(
        cls, siblings: list[Project] | tuple[Project, ...], remotes: list[RemoteSource]
    ) -> RepositoryChain:
        return cls([WorkspaceSource(tuple(siblings)), *remotes])

    @property
    def repositories(self) -> tuple[Repository, ...]:
        return self._repositories

    async def find(
        self,
        module: Module,
        version: str,
        fetch_local: ArtifactFetch,
        fetch: ArtifactFetch,
    ) -> LookupResult:
        """Look ``module:version`` up in each repository in turn.

        Remote descriptors are probed in the local cache first and only then
        fetched under the caller's policy.

        Returns:
            The first repository that produced a project, or the messages
            of every repository that did not.
        """
        messages: list[str] = []
        for repo in self._repositories:
            if repo.kind is RepositoryKind.WORKSPACE:
                project = repo.lookup(module)
                if project is not None:
                    return LookupResult(repo, project)
                continue

            descriptor = descriptor_artifact(repo, module, version)
            result = await fetch_local(descriptor)
            if not result.ok:
                result = await fetch(descriptor)
            if not result.ok:
                messages.append(f"{repo.name}: {result.reason}")
                continue

            try:
                project = parse_descriptor(repo, result.path.read_bytes())
            except (DescriptorError, OSError) as exc:
                messages.append(f"{repo.name}: {descriptor.url}: {exc}")
                continue
            if project.module != module:
                messages.append(
                    f"{repo.name}: {descriptor.url} describes {project.module}, not {module}"
                )
                continue
            logger.debug("Found %s:%s in %s", module, version, repo.name)
            return LookupResult(repo, project)

        if not messages:
            messages.append(f"{module}:{version} not found in any repository")
        return LookupResult(None, None, tuple(messages))

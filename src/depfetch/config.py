"""Settings and build-file loading.

``UpdateSettings`` holds the knobs of one operation, all with defaults.
``load_build_file`` reads a ``depfetch.yaml`` build file describing the
current project, its workspace siblings, repositories and settings; see
the README section "Build file" for the format.

Environment:
    DEPFETCH_CACHE    -- cache root (default ``~/.depfetch/cache``)
    DEPFETCH_NO_TERM  -- plain line-based download output instead of a
                         live progress display
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from depfetch.core.configurations import STANDARD_CONFIGURATIONS, ConfigurationGraph
from depfetch.core.fetch.cache import CachePolicy
from depfetch.core.fetch.checksums import DEFAULT_CHECKSUMS, parse_checksums
from depfetch.core.model import (
    DEFAULT_CONFIGURATION,
    Attributes,
    Dependency,
    Module,
    Project,
)
from depfetch.core.resolution.repositories import (
    RemoteSource,
    RepositoryDeclaration,
    default_properties,
)
from depfetch.exceptions import ConfigurationError, ForceVersionConflict

DEFAULT_PARALLEL_DOWNLOADS = 6
DEFAULT_MAX_ITERATIONS = 50
DEFAULT_SCOPE = "compile"

CACHE_ENV = "DEPFETCH_CACHE"
NO_TERM_ENV = "DEPFETCH_NO_TERM"


def default_cache_dir() -> Path:
    override = os.environ.get(CACHE_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".depfetch" / "cache"


def _plain_output_default() -> bool:
    return bool(os.environ.get(NO_TERM_ENV))


@dataclass(frozen=True)
class UpdateSettings:
    """Settings of one resolution + fetch operation.

    Attributes:
        parallel_downloads: Maximum concurrent artifact transfers.
        max_iterations: Resolution rounds before giving up.
        checksums: Checksum algorithm preference list (None = unverified).
        cache_policy: Network policy for artifacts and descriptors.
        cache_dir: Root of the on-disk cache.
        plain_output: Line-based download log instead of a progress display.
    """

    parallel_downloads: int = DEFAULT_PARALLEL_DOWNLOADS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    checksums: tuple[str | None, ...] = DEFAULT_CHECKSUMS
    cache_policy: CachePolicy = CachePolicy.FETCH_MISSING
    cache_dir: Path = field(default_factory=default_cache_dir)
    plain_output: bool = field(default_factory=_plain_output_default)

    def __post_init__(self) -> None:
        if self.parallel_downloads < 1:
            raise ConfigurationError(
                f"parallel_downloads must be at least 1, got {self.parallel_downloads}"
            )
        if self.max_iterations < 0:
            raise ConfigurationError(
                f"max_iterations must not be negative, got {self.max_iterations}"
            )

    def with_overrides(self, **overrides: Any) -> UpdateSettings:
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> UpdateSettings:
        data = dict(data or {})
        known = {"parallel_downloads", "max_iterations", "checksums", "cache_policy", "cache"}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        kwargs: dict[str, Any] = {}
        try:
            if "parallel_downloads" in data:
                kwargs["parallel_downloads"] = int(data["parallel_downloads"])
            if "max_iterations" in data:
                kwargs["max_iterations"] = int(data["max_iterations"])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc
        if "checksums" in data:
            kwargs["checksums"] = parse_checksums(data["checksums"] or [])
        if "cache_policy" in data:
            kwargs["cache_policy"] = CachePolicy.parse(str(data["cache_policy"]))
        if "cache" in data:
            kwargs["cache_dir"] = Path(str(data["cache"])).expanduser()
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Build descriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BuildDescriptor:
    """Everything one operation needs to know about the workspace.

    Attributes:
        project: The project being resolved.
        siblings: Other projects of the workspace.
        repositories: Remote repository declarations, in query order.
        force_versions: Explicit pins; they override sibling pins.
        properties: Extra ``${...}`` properties for repository declarations.
        settings: Operation settings from the build file.
    """

    project: Project
    siblings: tuple[Project, ...] = ()
    repositories: tuple[RepositoryDeclaration, ...] = ()
    force_versions: dict[Module, str] = field(default_factory=dict)
    properties: dict[str, str] = field(default_factory=dict)
    settings: UpdateSettings = field(default_factory=UpdateSettings)

    @property
    def workspace(self) -> tuple[Project, ...]:
        """The project and its siblings, the project's own entry first.

        A sibling repeating the project itself is dropped.

        Raises:
            ForceVersionConflict: If a sibling has the project's module at
                another version.
        """
        others: list[Project] = []
        for sibling in self.siblings:
            if sibling.module != self.project.module:
                others.append(sibling)
            elif sibling.version != self.project.version:
                raise ForceVersionConflict(
                    f"Workspace projects pin {sibling.module} to both "
                    f"{self.project.version!r} and {sibling.version!r}"
                )
        return (self.project, *others)

    @property
    def configuration_graph(self) -> ConfigurationGraph:
        """Declared configurations, or the standard ones, plus any used scope."""
        declared = list(self.project.configurations) or list(STANDARD_CONFIGURATIONS)
        names = {name for name, _ in declared}
        for scope, _ in self.project.dependencies:
            if scope not in names:
                declared.append((scope, ()))
                names.add(scope)
        return ConfigurationGraph(declared)

    def remote_sources(self) -> list[RemoteSource]:
        properties = {**default_properties(), **self.properties}
        return [declaration.to_source(properties) for declaration in self.repositories]


def _require(data: dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if value is None or str(value).strip() == "":
        raise ConfigurationError(f"{where}: missing {key!r}")
    return str(value).strip()


def parse_dependency(entry: Any, where: str = "dependency") -> tuple[str, Dependency]:
    """Parse one build-file dependency into ``(scope, Dependency)``.

    Accepts ``"org:name:version[:scope]"`` or a mapping with ``module``
    (or ``organization`` + ``name``), ``version`` and optional ``scope``,
    ``configuration``, ``optional``, ``type``, ``classifier`` and
    ``exclusions``.
    """
    if isinstance(entry, str):
        parts = entry.strip().split(":")
        if len(parts) not in (3, 4) or not all(parts):
            raise ConfigurationError(
                f"{where}: expected 'org:name:version[:scope]', got {entry!r}"
            )
        scope = parts[3] if len(parts) == 4 else DEFAULT_SCOPE
        return scope, Dependency(Module(parts[0], parts[1]), parts[2])

    if not isinstance(entry, dict):
        raise ConfigurationError(f"{where}: expected a string or a mapping")

    if "module" in entry:
        module = Module.parse(str(entry["module"]))
    else:
        module = Module(_require(entry, "organization", where), _require(entry, "name", where))
    exclusions = frozenset(
        Module.parse(str(item)) for item in entry.get("exclusions") or []
    )
    dependency = Dependency(
        module=module,
        version=_require(entry, "version", where),
        configuration=str(entry.get("configuration") or DEFAULT_CONFIGURATION),
        attributes=Attributes(
            type=str(entry.get("type") or "jar"),
            classifier=str(entry.get("classifier") or ""),
        ),
        optional=bool(entry.get("optional", False)),
        exclusions=exclusions,
    )
    return str(entry.get("scope") or DEFAULT_SCOPE), dependency


def parse_project(data: Any, where: str = "project") -> Project:
    """Parse a project mapping from the build file."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"{where}: expected a mapping")
    configurations = data.get("configurations") or {}
    if not isinstance(configurations, dict):
        raise ConfigurationError(f"{where}: 'configurations' must be a mapping")
    dependencies = tuple(
        parse_dependency(entry, f"{where} dependency #{index + 1}")
        for index, entry in enumerate(data.get("dependencies") or [])
    )
    return Project(
        module=Module(_require(data, "organization", where), _require(data, "name", where)),
        version=_require(data, "version", where),
        dependencies=dependencies,
        configurations=tuple(
            (str(name), tuple(str(s) for s in (supers or [])))
            for name, supers in configurations.items()
        ),
    )


def _parse_repository(entry: Any, index: int) -> RepositoryDeclaration:
    if isinstance(entry, str):
        return RepositoryDeclaration(name=f"repository-{index + 1}", url=entry)
    if not isinstance(entry, dict):
        raise ConfigurationError(f"repository #{index + 1}: expected a string or a mapping")
    return RepositoryDeclaration(
        name=str(entry.get("name") or f"repository-{index + 1}"),
        url=str(entry.get("url") or ""),
        kind=str(entry.get("kind") or "maven"),
        pattern=str(entry.get("pattern") or ""),
        descriptor_pattern=str(entry.get("descriptor_pattern") or ""),
    )


def load_build(data: Any) -> BuildDescriptor:
    """Build a ``BuildDescriptor`` from already-parsed YAML data.

    Raises:
        ConfigurationError: On any structural problem.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Build file must contain a mapping at the top level")
    if "project" not in data:
        raise ConfigurationError("Build file has no 'project' section")

    siblings = tuple(
        parse_project(entry, f"sibling #{index + 1}")
        for index, entry in enumerate(data.get("siblings") or [])
    )
    repositories = tuple(
        _parse_repository(entry, index)
        for index, entry in enumerate(data.get("repositories") or [])
    )
    force_versions = {
        Module.parse(str(module)): str(version)
        for module, version in (data.get("force_versions") or {}).items()
    }
    properties = {str(k): str(v) for k, v in (data.get("properties") or {}).items()}

    return BuildDescriptor(
        project=parse_project(data["project"]),
        siblings=siblings,
        repositories=repositories,
        force_versions=force_versions,
        properties=properties,
        settings=UpdateSettings.from_dict(data.get("settings")),
    )


def load_build_file(path: Path) -> BuildDescriptor:
    """Read and parse a YAML build file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read build file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    return load_build(data)

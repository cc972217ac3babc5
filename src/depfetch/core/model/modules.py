"""Core value types: modules, dependencies, projects and artifacts.

These are pure, immutable data holders with no I/O, safe to import from
every other layer without circular-dependency concerns. A single
``Module`` is shared by many ``Dependency`` edges; a ``Project`` is the
resolved descriptor of one module at one version.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from depfetch.exceptions import ConfigurationError

DEFAULT_CONFIGURATION = "default(compile)"

# Dependency scopes that propagate to dependents of a resolved project.
TRANSITIVE_SCOPES: frozenset[str] = frozenset({"", "compile", "runtime", "default"})


@dataclass(frozen=True, order=True)
class Module:
    """Organization and name of a dependency, without a version."""

    organization: str
    name: str

    def __str__(self) -> str:
        return f"{self.organization}:{self.name}"

    @classmethod
    def parse(cls, coordinates: str) -> Module:
        """Parse ``"org:name"`` into a Module.

        Raises:
            ConfigurationError: If the string is not two non-empty parts.
        """
        parts = coordinates.strip().split(":")
        if len(parts) != 2 or not all(parts):
            raise ConfigurationError(f"Invalid module coordinates: {coordinates!r}")
        return cls(parts[0], parts[1])

    def matches(self, pattern: Module) -> bool:
        """True if *pattern* (whose fields may be ``*``) selects this module."""
        return pattern.organization in ("*", self.organization) and pattern.name in (
            "*",
            self.name,
        )


@dataclass(frozen=True, order=True)
class Attributes:
    """Artifact selection attributes of a dependency."""

    type: str = "jar"
    classifier: str = ""


@dataclass(frozen=True)
class Dependency:
    """A requested module version, as declared by one project.

    Attributes:
        module: The requested module.
        version: The requested version (as written by the declaring project).
        configuration: Target configuration in the dependency's own project,
            Ivy style (e.g. ``"default(compile)"``).
        attributes: Artifact type and classifier.
        optional: Optional dependencies are excluded from resolution by the
            default filter.
        exclusions: Modules not to expand below this dependency. ``*`` in
            either field is a wildcard.
    """

    module: Module
    version: str
    configuration: str = DEFAULT_CONFIGURATION
    attributes: Attributes = field(default_factory=Attributes)
    optional: bool = False
    exclusions: frozenset[Module] = frozenset()

    def excludes(self, module: Module) -> bool:
        return any(module.matches(pattern) for pattern in self.exclusions)

    def sort_key(self) -> tuple:
        return (
            self.module.organization,
            self.module.name,
            self.version,
            self.configuration,
            self.attributes.type,
            self.attributes.classifier,
            self.optional,
            tuple(sorted(self.exclusions)),
        )


@dataclass(frozen=True)
class Publication:
    """An artifact published by an Ivy module."""

    name: str
    type: str = "jar"
    ext: str = "jar"
    classifier: str = ""


@dataclass(frozen=True)
class Project:
    """A resolvable unit: one module at one version with its dependencies.

    Attributes:
        module: Module identity.
        version: The project's own version.
        dependencies: Ordered ``(scope, Dependency)`` pairs.
        configurations: Ordered ``(name, extends)`` pairs, empty when the
            descriptor declares none.
        packaging: Maven packaging; ``pom`` projects publish no artifact.
        publications: Ivy publications; empty for Maven descriptors.
    """

    module: Module
    version: str
    dependencies: tuple[tuple[str, Dependency], ...] = ()
    configurations: tuple[tuple[str, tuple[str, ...]], ...] = ()
    packaging: str = "jar"
    publications: tuple[Publication, ...] = ()


@dataclass(frozen=True, eq=False)
class Artifact:
    """A downloadable file. Identity is the URL alone.

    Attributes:
        url: Absolute URL (``http``, ``https`` or ``file`` scheme).
        checksum_urls: Ordered ``(algorithm, url)`` pairs, e.g.
            ``("SHA-1", url + ".sha1")``.
        type: Artifact type (``jar``, ``pom``, ``src`` ...).
        classifier: Classifier, empty for the main artifact.
        changing: True if the file may change in place (snapshots).
    """

    url: str
    checksum_urls: tuple[tuple[str, str], ...] = ()
    type: str = "jar"
    classifier: str = ""
    changing: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Artifact):
            return NotImplemented
        return self.url == other.url

    def __hash__(self) -> int:
        return hash(self.url)

    def checksum_url(self, algorithm: str) -> str | None:
        for name, url in self.checksum_urls:
            if name == algorithm:
                return url
        return None

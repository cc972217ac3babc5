"""Module descriptor parsers: Maven POM and Ivy ``ivy.xml``.

Both parsers turn descriptor bytes into a ``Project``. They are strict
about structure (missing coordinates raise ``DescriptorError``) and
lenient about everything else: unknown elements are ignored.

POM support covers ``${...}`` property interpolation (``<properties>``,
``project.*`` and the parent's coordinates), parent coordinate
inheritance, and version/scope defaults from the POM's own
``<dependencyManagement>``. Parent POMs are not fetched.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

from depfetch.core.model import (
    DEFAULT_CONFIGURATION,
    Attributes,
    Dependency,
    Module,
    Project,
    Publication,
)
from depfetch.exceptions import DescriptorError

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

# Nested placeholders resolve in a few passes; bound them to stop self-references.
_MAX_INTERPOLATION_PASSES = 8


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element | None, name: str) -> ET.Element | None:
    if element is None:
        return None
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _children(element: ET.Element | None, name: str) -> list[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local(child.tag) == name]


def _text(element: ET.Element | None, name: str, default: str = "") -> str:
    child = _child(element, name)
    if child is None or child.text is None:
        return default
    return child.text.strip()


def _attribute(element: ET.Element, name: str, default: str = "") -> str:
    """Read an attribute by local name, ignoring its XML namespace."""
    for key, value in element.attrib.items():
        if _local(key) == name:
            return value
    return default


def _parse_root(content: bytes, expected: str) -> ET.Element:
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        raise DescriptorError(f"Malformed {expected} descriptor: {exc}") from exc
    if _local(root.tag) != expected:
        raise DescriptorError(
            f"Expected <{expected}> root element, found <{_local(root.tag)}>"
        )
    return root


# ---------------------------------------------------------------------------
# Maven POM
# ---------------------------------------------------------------------------


def _interpolate(value: str, properties: dict[str, str]) -> str:
    for _ in range(_MAX_INTERPOLATION_PASSES):
        substituted = _PLACEHOLDER_RE.sub(
            lambda m: properties.get(m.group(1), m.group(0)), value
        )
        if substituted == value:
            break
        value = substituted
    return value


def _pom_dependency(
    element: ET.Element,
    properties: dict[str, str],
    managed: dict[tuple[str, str, str, str], tuple[str, str]],
) -> tuple[str, Dependency]:
    def field(name: str, default: str = "") -> str:
        return _interpolate(_text(element, name, default), properties)

    organization = field("groupId")
    name = field("artifactId")
    if not organization or not name:
        raise DescriptorError("Dependency without groupId or artifactId")
    dep_type = field("type", "jar")
    classifier = field("classifier")
    managed_version, managed_scope = managed.get(
        (organization, name, dep_type, classifier), ("", "")
    )
    version = field("version") or managed_version
    scope = field("scope") or managed_scope or "compile"
    exclusions = frozenset(
        Module(
            _interpolate(_text(exclusion, "groupId", "*"), properties),
            _interpolate(_text(exclusion, "artifactId", "*"), properties),
        )
        for exclusion in _children(_child(element, "exclusions"), "exclusion")
    )
    dependency = Dependency(
        module=Module(organization, name),
        version=version,
        configuration=DEFAULT_CONFIGURATION,
        attributes=Attributes(type=dep_type, classifier=classifier),
        optional=field("optional").lower() == "true",
        exclusions=exclusions,
    )
    return scope, dependency


def parse_pom(content: bytes) -> Project:
    """Parse a Maven POM into a ``Project``.

    Raises:
        DescriptorError: On malformed XML or missing coordinates.
    """
    root = _parse_root(content, "project")
    parent = _child(root, "parent")

    organization = _text(root, "groupId") or _text(parent, "groupId")
    name = _text(root, "artifactId")
    version = _text(root, "version") or _text(parent, "version")

    properties: dict[str, str] = {
        "project.groupId": organization,
        "project.artifactId": name,
        "project.version": version,
        "pom.groupId": organization,
        "pom.artifactId": name,
        "pom.version": version,
        "groupId": organization,
        "artifactId": name,
        "version": version,
        "project.parent.groupId": _text(parent, "groupId"),
        "project.parent.version": _text(parent, "version"),
    }
    declared = _child(root, "properties")
    if declared is not None:
        for prop in declared:
            properties[_local(prop.tag)] = (prop.text or "").strip()

    organization = _interpolate(organization, properties)
    version = _interpolate(version, properties)
    if not organization or not name or not version:
        raise DescriptorError("POM is missing groupId, artifactId or version")

    managed: dict[tuple[str, str, str, str], tuple[str, str]] = {}
    management = _child(_child(root, "dependencyManagement"), "dependencies")
    for element in _children(management, "dependency"):
        scope, dep = _pom_dependency(element, properties, {})
        key = (
            dep.module.organization,
            dep.module.name,
            dep.attributes.type,
            dep.attributes.classifier,
        )
        managed[key] = (dep.version, _interpolate(_text(element, "scope"), properties))

    dependencies = tuple(
        _pom_dependency(element, properties, managed)
        for element in _children(_child(root, "dependencies"), "dependency")
    )

    return Project(
        module=Module(organization, name),
        version=version,
        dependencies=dependencies,
        packaging=_interpolate(_text(root, "packaging", "jar"), properties),
    )


# ---------------------------------------------------------------------------
# Ivy descriptor
# ---------------------------------------------------------------------------


def _conf_mappings(conf: str) -> list[tuple[str, str]]:
    """Expand ``"compile->default;test->test"`` into ``(scope, target)`` pairs."""
    mappings: list[tuple[str, str]] = []
    for entry in filter(None, (part.strip() for part in conf.split(";"))):
        left, _, right = entry.partition("->")
        target = right.strip() or DEFAULT_CONFIGURATION
        for scope in filter(None, (s.strip() for s in left.split(","))):
            mappings.append((scope, target))
    return mappings


def parse_ivy(content: bytes) -> Project:
    """Parse an ``ivy.xml`` descriptor into a ``Project``.

    Raises:
        DescriptorError: On malformed XML or a missing ``<info>`` element.
    """
    root = _parse_root(content, "ivy-module")
    info = _child(root, "info")
    if info is None:
        raise DescriptorError("ivy.xml has no <info> element")

    organization = info.get("organisation", "")
    name = info.get("module", "")
    version = info.get("revision", "")
    if not organization or not name or not version:
        raise DescriptorError("ivy.xml <info> is missing organisation, module or revision")

    configurations = tuple(
        (
            conf.get("name", ""),
            tuple(filter(None, (e.strip() for e in conf.get("extends", "").split(",")))),
        )
        for conf in _children(_child(root, "configurations"), "conf")
    )

    publications_element = _child(root, "publications")
    if publications_element is None:
        publications: tuple[Publication, ...] = (Publication(name=name),)
    else:
        publications = tuple(
            Publication(
                name=artifact.get("name", name),
                type=artifact.get("type", "jar"),
                ext=artifact.get("ext", artifact.get("type", "jar")),
                classifier=_attribute(artifact, "classifier"),
            )
            for artifact in _children(publications_element, "artifact")
        )

    dependencies: list[tuple[str, Dependency]] = []
    for element in _children(_child(root, "dependencies"), "dependency"):
        dep_org = element.get("org", organization)
        dep_name = element.get("name", "")
        if not dep_name:
            raise DescriptorError("ivy.xml dependency without a name")
        exclusions = frozenset(
            Module(exclude.get("org", "*"), exclude.get("module", exclude.get("name", "*")))
            for exclude in _children(element, "exclude")
        )
        artifact = _child(element, "artifact")
        attributes = Attributes()
        if artifact is not None:
            attributes = Attributes(
                type=artifact.get("type", "jar"),
                classifier=_attribute(artifact, "classifier"),
            )
        for scope, target in _conf_mappings(element.get("conf", "default->default(compile)")):
            dependencies.append(
                (
                    scope,
                    Dependency(
                        module=Module(dep_org, dep_name),
                        version=element.get("rev", ""),
                        configuration=target,
                        attributes=attributes,
                        exclusions=exclusions,
                    ),
                )
            )

    return Project(
        module=Module(organization, name),
        version=version,
        dependencies=tuple(dependencies),
        configurations=configurations,
        publications=publications,
    )

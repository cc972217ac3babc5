"""Update report data models and their deterministic serialization.

The report is the structured result handed back to the build tool: one
``ConfigurationReport`` per configuration, each listing one
``ModuleReport`` per resolved dependency with the local files that were
fetched and the artifacts that could not be.

Determinism guarantee: ``to_json()`` output depends only on the report
contents. Modules are sorted, dictionary keys are sorted, and two equal
reports always serialize to byte-identical JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from depfetch.core.model import Artifact, Dependency

REPORT_VERSION = "1.0"


@dataclass(frozen=True)
class ModuleReport:
    """Fetch outcome of one resolved dependency.

    Attributes:
        dependency: The dependency, carrying its *resolved* version.
        artifacts: ``(artifact, local file)`` for every fetched artifact.
        failed: ``(artifact, reason)`` for every artifact that was not.
    """

    dependency: Dependency
    artifacts: tuple[tuple[Artifact, Path], ...] = ()
    failed: tuple[tuple[Artifact, str], ...] = ()

    @property
    def failed_artifacts(self) -> list[Artifact]:
        return [artifact for artifact, _ in self.failed]

    @property
    def files(self) -> list[Path]:
        return [path for _, path in self.artifacts]

    def to_dict(self) -> dict[str, Any]:
        dep = self.dependency
        return {
            "organization": dep.module.organization,
            "name": dep.module.name,
            "version": dep.version,
            "configuration": dep.configuration,
            "type": dep.attributes.type,
            "classifier": dep.attributes.classifier,
            "artifacts": [
                {
                    "url": artifact.url,
                    "type": artifact.type,
                    "classifier": artifact.classifier,
                    "path": str(path),
                }
                for artifact, path in self.artifacts
            ],
            "failed": [
                {"url": artifact.url, "reason": reason} for artifact, reason in self.failed
            ],
        }


@dataclass(frozen=True)
class ConfigurationReport:
    name: str
    modules: tuple[ModuleReport, ...] = ()

    def module(self, organization: str, name: str) -> ModuleReport | None:
        for report in self.modules:
            module = report.dependency.module
            if module.organization == organization and module.name == name:
                return report
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "modules": [m.to_dict() for m in self.modules]}


@dataclass(frozen=True)
class UpdateReport:
    """Result of one resolution + fetch operation.

    Attributes:
        configurations: One report per configuration, in declaration order.
        conflicts: Rendered version conflicts, sorted.
        errors: Rendered resolution errors, sorted.
    """

    configurations: tuple[ConfigurationReport, ...]
    conflicts: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()

    def configuration(self, name: str) -> ConfigurationReport | None:
        for report in self.configurations:
            if report.name == name:
                return report
        return None

    @property
    def failed_count(self) -> int:
        """Number of distinct artifacts that could not be fetched.

        An artifact reached from several configurations counts once.
        """
        return len(
            {artifact.url for c in self.configurations for m in c.modules for artifact, _ in m.failed}
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "report_version": REPORT_VERSION,
            "configurations": [c.to_dict() for c in self.configurations],
            "conflicts": list(self.conflicts),
            "errors": list(self.errors),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n"

    def write(self, path: Path) -> None:
        """Write the report as JSON, creating parent directories as needed."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")

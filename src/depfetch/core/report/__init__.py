"""Update report: models, assembly and diagnostic rendering.

All public names are re-exported here so that callers can write
``from depfetch.core.report import UpdateReport``.
"""

from depfetch.core.report.assembler import assemble_report, ensure_local_file, module_reports
from depfetch.core.report.diagnostics import (
    dependency_repr,
    project_summary,
    render_conflicts,
    render_errors,
)
from depfetch.core.report.models import ConfigurationReport, ModuleReport, UpdateReport

__all__ = [
    "ConfigurationReport",
    "ModuleReport",
    "UpdateReport",
    "assemble_report",
    "dependency_repr",
    "ensure_local_file",
    "module_reports",
    "project_summary",
    "render_conflicts",
    "render_errors",
]

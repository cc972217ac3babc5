"""depfetch CLI -- resolve, fetch and report project dependencies.

Entry point for the ``depfetch`` command-line tool.

Commands:
    update          Resolve the dependency graph, fetch artifacts, print the report.
    configurations  Show each configuration and the configurations it extends.

Usage::

    depfetch update depfetch.yaml
    depfetch update depfetch.yaml --json --cache-policy local-only
    depfetch update depfetch.yaml --checksum SHA-256 --checksum none
    depfetch configurations depfetch.yaml
"""

from __future__ import annotations

import click

from depfetch import __version__
from depfetch.cli.configurations_cmd import configurations_command
from depfetch.cli.update import update_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """depfetch: dependency resolution and artifact fetching.

    Resolves a project's transitive dependencies against its workspace
    and Maven/Ivy repositories, downloads the artifacts into a local
    cache and reports them per configuration.
    """


cli.add_command(update_command)
cli.add_command(configurations_command)

"""``depfetch configurations <build-file>`` -- Show configuration closures.

Exit Codes:
    0 -- Table printed.
    2 -- The build file is invalid.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from depfetch.config import load_build_file
from depfetch.exceptions import ConfigurationError


@click.command("configurations")
@click.argument("build_file", type=click.Path(exists=True, dir_okay=False))
def configurations_command(build_file: str) -> None:
    """Print every configuration of the project with its closure."""
    try:
        build = load_build_file(Path(build_file))
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    from depfetch.cli.output import print_configuration_closures
    print_configuration_closures(build.configuration_graph)

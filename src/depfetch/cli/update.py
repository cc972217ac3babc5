"""``depfetch update <build-file>`` -- Resolve, fetch and report.

Loads the build file, resolves the project's dependency graph against
the workspace and the declared repositories, downloads every artifact
into the cache and prints a per-configuration report.

Exit Codes:
    0 -- Report produced (individual artifacts may still have failed).
    1 -- The operation failed (iteration cap, batch failure, bad fetch result).
    2 -- The build file or an option is invalid.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from depfetch.config import UpdateSettings, load_build_file
from depfetch.core.fetch import CachePolicy, DownloadLogger
from depfetch.core.fetch.checksums import parse_checksums
from depfetch.core.pipeline import Orchestrator
from depfetch.exceptions import (
    ConfigurationError,
    FetchSchedulingError,
    InvariantViolation,
    ResolutionIncomplete,
)


def configure_logging(verbose: bool, console: Console | None = None) -> logging.Logger:
    """Send depfetch log records to stderr; repeated calls replace the handler."""
    package_logger = logging.getLogger("depfetch")
    package_logger.handlers = []
    handler = RichHandler(
        console=console or Console(stderr=True), show_path=False, show_time=False
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return package_logger


def _download_logger(settings: UpdateSettings, console: Console) -> DownloadLogger:
    from depfetch.cli.progress import ProgressDownloadLogger, TextDownloadLogger

    if settings.plain_output:
        return TextDownloadLogger(console)
    return ProgressDownloadLogger(console)


@click.command("update")
@click.argument("build_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the JSON report to this file.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON.")
@click.option("--cache", "cache_dir", type=click.Path(file_okay=False), default=None,
              help="Cache directory (overrides the build file and DEPFETCH_CACHE).")
@click.option(
    "--cache-policy",
    type=click.Choice([p.value for p in CachePolicy]),
    default=None,
    help="When artifacts may be downloaded.",
)
@click.option("--parallel", type=int, default=None, help="Maximum concurrent downloads.")
@click.option("--max-iterations", type=int, default=None, help="Resolution rounds before giving up.")
@click.option(
    "--checksum", "checksums",
    multiple=True,
    help="Checksum algorithm, in preference order (repeatable; 'none' accepts unverified).",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
def update_command(
    build_file: str,
    output: str | None,
    as_json: bool,
    cache_dir: str | None,
    cache_policy: str | None,
    parallel: int | None,
    max_iterations: int | None,
    checksums: tuple[str, ...],
    verbose: bool,
) -> None:
    """Resolve and fetch the dependencies of the project in BUILD_FILE.

    Exit code 0 when a report is produced, 1 when the operation fails,
    2 when the build file is invalid.
    """
    err_console = Console(stderr=True)
    configure_logging(verbose, err_console)

    try:
        build = load_build_file(Path(build_file))
        settings = build.settings.with_overrides(
            cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
            cache_policy=CachePolicy.parse(cache_policy) if cache_policy else None,
            parallel_downloads=parallel,
            max_iterations=max_iterations,
            checksums=parse_checksums(checksums) if checksums else None,
        )
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    download_logger = _download_logger(settings, err_console)
    orchestrator = Orchestrator(settings, download_logger=download_logger)
    try:
        report = orchestrator.update(build)
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    except (ResolutionIncomplete, FetchSchedulingError, InvariantViolation) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    finally:
        stop = getattr(download_logger, "stop", None)
        if stop is not None:
            stop()

    if output:
        report.write(Path(output))

    if as_json:
        click.echo(report.to_json(), nl=False)
    else:
        from depfetch.cli.output import print_update_report
        print_update_report(report)
        if output:
            click.echo(f"\nReport written to: {output}")
    sys.exit(0)

"""Download logger sink.

The fetcher reports transfer progress through this small interface. The
terminal implementations live in ``depfetch.cli.progress``; the core only
ships a sink that ignores everything.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class DownloadLogger(Protocol):
    def init(self) -> None:
        """Called once before the first transfer of an operation."""

    def downloading_artifact(self, url: str, destination: Path) -> None:
        """A transfer of *url* into *destination* is starting."""

    def downloaded_artifact(self, url: str, success: bool) -> None:
        """The transfer of *url* finished."""


class NullDownloadLogger:
    def init(self) -> None:
        pass

    def downloading_artifact(self, url: str, destination: Path) -> None:
        pass

    def downloaded_artifact(self, url: str, success: bool) -> None:
        pass

"""Terminal download loggers.

``TextDownloadLogger`` prints one line per transfer event and suits logs
and dumb terminals (selected with ``DEPFETCH_NO_TERM``).
``ProgressDownloadLogger`` shows a live rich progress display of the
transfers in flight.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn


class TextDownloadLogger:
    """Line-based transfer log."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True, highlight=False)

    def init(self) -> None:
        pass

    def downloading_artifact(self, url: str, destination: Path) -> None:
        self._console.print(f"{url}\n -> {destination}", markup=False)

    def downloaded_artifact(self, url: str, success: bool) -> None:
        self._console.print(f"{url}: {'Success' if success else 'Failed'}", markup=False)


class ProgressDownloadLogger:
    """Live display with one spinner per transfer in flight."""

    def __init__(self, console: Console | None = None) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            console=console or Console(stderr=True),
            transient=True,
        )
        self._tasks: dict[str, TaskID] = {}
        self._completed = 0
        self._failed = 0

    def init(self) -> None:
        self._progress.start()

    def downloading_artifact(self, url: str, destination: Path) -> None:
        self._tasks[url] = self._progress.add_task(url, total=None)

    def downloaded_artifact(self, url: str, success: bool) -> None:
        task = self._tasks.pop(url, None)
        if task is not None:
            self._progress.remove_task(task)
        if success:
            self._completed += 1
        else:
            self._failed += 1
            self._progress.console.print(f"[red]Failed:[/red] {url}", markup=True)

    def stop(self) -> None:
        self._progress.stop()

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def failed(self) -> int:
        return self._failed

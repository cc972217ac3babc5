"""Per-artifact fetch outcomes.

A fetch never raises for an artifact-level problem; it returns either a
``FetchSuccess`` carrying the local file or a ``FetchFailure`` carrying a
reason and a machine-readable kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Union

from depfetch.core.model import Artifact


class FailureKind(str, Enum):
    """Why an artifact could not be materialized."""

    NOT_FOUND = "not-found"
    CHECKSUM_MISMATCH = "checksum-mismatch"
    MISSING_CHECKSUM = "missing-checksum"
    UNSUPPORTED_SCHEME = "unsupported-scheme"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class FetchSuccess:
    path: Path

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class FetchFailure:
    reason: str
    kind: FailureKind = FailureKind.TRANSPORT

    @property
    def ok(self) -> bool:
        return False


FetchResult = Union[FetchSuccess, FetchFailure]

ArtifactFetch = Callable[[Artifact], Awaitable[FetchResult]]
"""An async function materializing one artifact under a fixed cache policy."""

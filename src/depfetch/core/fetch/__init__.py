"""Cache & fetch layer: concurrent, checksum-verifying artifact download.

Submodules:
    cache      -- CachePolicy and the URL-to-path ArtifactCache
    checksums  -- checksum algorithms and checksum-file parsing
    results    -- FetchSuccess / FetchFailure outcomes
    logger     -- DownloadLogger sink protocol
    fetcher    -- ArtifactFetcher (single and batch fetch)
"""

from depfetch.core.fetch.cache import ArtifactCache, CachePolicy
from depfetch.core.fetch.checksums import DEFAULT_CHECKSUMS, parse_checksums
from depfetch.core.fetch.fetcher import ArtifactFetcher
from depfetch.core.fetch.logger import DownloadLogger, NullDownloadLogger
from depfetch.core.fetch.results import (
    ArtifactFetch,
    FailureKind,
    FetchFailure,
    FetchResult,
    FetchSuccess,
)

__all__ = [
    "DEFAULT_CHECKSUMS",
    "ArtifactCache",
    "ArtifactFetch",
    "ArtifactFetcher",
    "CachePolicy",
    "DownloadLogger",
    "FailureKind",
    "FetchFailure",
    "FetchResult",
    "FetchSuccess",
    "NullDownloadLogger",
    "parse_checksums",
]

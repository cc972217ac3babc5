"""Concurrent, checksum-verifying artifact fetcher.

Wraps ``httpx.AsyncClient`` with a bounded number of concurrent transfers.
Each artifact is fetched independently: a missing file, a transport error
or a checksum mismatch fails that artifact only and is returned as a
``FetchFailure``.

Cache writes go to a temp file in the destination directory and are moved
into place with ``os.replace`` only after verification, so a concurrent
reader either sees no file or a complete, verified one.

Usage::

    async with ArtifactFetcher(ArtifactCache(root), parallel=6) as fetcher:
        results = await fetcher.fetch_all(artifacts, CachePolicy.FETCH_MISSING)
"""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import Iterable

import httpx

from depfetch import __version__
from depfetch.core.fetch.cache import ArtifactCache, CachePolicy
from depfetch.core.fetch.checksums import (
    DEFAULT_CHECKSUMS,
    digest_file,
    parse_checksum_file,
)
from depfetch.core.fetch.logger import DownloadLogger, NullDownloadLogger
from depfetch.core.fetch.results import (
    ArtifactFetch,
    FailureKind,
    FetchFailure,
    FetchResult,
    FetchSuccess,
)
from depfetch.core.model import Artifact
from depfetch.exceptions import FetchSchedulingError

logger = logging.getLogger(__name__)

# Timeout for every repository HTTP request (seconds).
DEFAULT_TIMEOUT: float = 60.0

USER_AGENT: str = f"depfetch/{__version__}"

DEFAULT_PARALLEL_DOWNLOADS: int = 6


class ArtifactFetcher:
    """Materializes artifacts in the local cache.

    Args:
        cache: URL to local path mapping.
        checksums: Algorithm preference list; the first algorithm with a
            published checksum is verified. A None entry accepts the
            artifact unverified if no earlier algorithm had a checksum.
        download_logger: Sink for transfer start/end events.
        parallel: Maximum number of concurrent transfers.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        cache: ArtifactCache,
        checksums: tuple[str | None, ...] = DEFAULT_CHECKSUMS,
        download_logger: DownloadLogger | None = None,
        parallel: int = DEFAULT_PARALLEL_DOWNLOADS,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if parallel < 1:
            raise ValueError(f"parallel must be at least 1, got {parallel}")
        self._cache = cache
        self._checksums = tuple(checksums)
        self._download_logger = download_logger or NullDownloadLogger()
        self._parallel = parallel
        self._transport = transport
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._semaphore: asyncio.Semaphore | None = None

    async def __aenter__(self) -> ArtifactFetcher:
        self._client = httpx.AsyncClient(
            transport=self._transport,
            timeout=self._timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )
        self._semaphore = asyncio.Semaphore(self._parallel)
        self._download_logger.init()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._client is not None:
            await self._client.aclose()
        self._client = None
        self._semaphore = None

    def bind(self, policy: CachePolicy) -> ArtifactFetch:
        """An ``ArtifactFetch`` function with *policy* fixed."""

        async def fetch(artifact: Artifact) -> FetchResult:
            return await self.fetch(artifact, policy)

        return fetch

    # -- Single artifact ----------------------------------------------------

    async def fetch(self, artifact: Artifact, policy: CachePolicy) -> FetchResult:
        """Materialize one artifact under *policy*.

        Returns:
            ``FetchSuccess`` with the local file, or ``FetchFailure``.
        """
        path = self._cache.local_path(artifact.url)
        if path is None:
            return FetchFailure(
                f"unsupported URL: {artifact.url}", FailureKind.UNSUPPORTED_SCHEME
            )

        if not self._cache.is_remote(artifact.url):
            if path.is_file():
                return FetchSuccess(path)
            return FetchFailure(f"not found: {path}", FailureKind.NOT_FOUND)

        cached = path.is_file()
        if not policy.needs_download(cached, artifact.changing):
            if cached:
                return FetchSuccess(path)
            return FetchFailure(f"not found in cache: {artifact.url}", FailureKind.NOT_FOUND)

        if self._client is None or self._semaphore is None:
            raise RuntimeError("ArtifactFetcher must be used as an async context manager")
        async with self._semaphore:
            self._download_logger.downloading_artifact(artifact.url, path)
            try:
                result = await self._download(artifact, path)
            except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
                logger.warning("Failed to download %s: %s", artifact.url, exc)
                result = FetchFailure(
                    f"download failed: {artifact.url}: {exc}", FailureKind.TRANSPORT
                )
            self._download_logger.downloaded_artifact(artifact.url, result.ok)
        return result

    async def _download(self, artifact: Artifact, path: Path) -> FetchResult:
        assert self._client is not None
        path.parent.mkdir(parents=True, exist_ok=True)
        partial = path.with_name(f".{path.name}.{uuid.uuid4().hex}.part")
        try:
            async with self._client.stream("GET", artifact.url) as response:
                if response.status_code == 404:
                    return FetchFailure(f"not found: {artifact.url}", FailureKind.NOT_FOUND)
                response.raise_for_status()
                with partial.open("wb") as handle:
                    async for chunk in response.aiter_bytes():
                        handle.write(chunk)

            failure = await self._verify(artifact, partial)
            if failure is not None:
                return failure
            os.replace(partial, path)
            logger.debug("Downloaded %s -> %s", artifact.url, path)
            return FetchSuccess(path)
        finally:
            partial.unlink(missing_ok=True)

    async def _verify(self, artifact: Artifact, downloaded: Path) -> FetchFailure | None:
        for algorithm in self._checksums:
            if algorithm is None:
                return None
            checksum_url = artifact.checksum_url(algorithm)
            if checksum_url is None:
                continue
            expected = await self._fetch_checksum(checksum_url, algorithm)
            if expected is None:
                continue
            actual = digest_file(downloaded, algorithm)
            if actual != expected:
                return FetchFailure(
                    f"{algorithm} checksum mismatch for {artifact.url}: "
                    f"expected {expected}, got {actual}",
                    FailureKind.CHECKSUM_MISMATCH,
                )
            return None
        tried = ", ".join(a for a in self._checksums if a)
        return FetchFailure(
            f"no checksum found for {artifact.url} (tried {tried or 'none'})",
            FailureKind.MISSING_CHECKSUM,
        )

    async def _fetch_checksum(self, url: str, algorithm: str) -> str | None:
        assert self._client is not None
        response = await self._client.get(url)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return parse_checksum_file(response.text, algorithm)

    # -- Batch --------------------------------------------------------------

    async def fetch_all(
        self, artifacts: Iterable[Artifact], policy: CachePolicy
    ) -> dict[Artifact, FetchResult]:
        """Fetch every artifact, at most ``parallel`` transfers at a time.

        Artifacts are attempted independently and in no particular order;
        one failure never cancels another.

        Raises:
            FetchSchedulingError: If a fetch task itself blows up (anything
                other than a per-artifact failure). Every other task still
                runs to completion first.
        """
        ordered = sorted(set(artifacts), key=lambda a: a.url)
        outcomes = await asyncio.gather(
            *(self.fetch(artifact, policy) for artifact in ordered),
            return_exceptions=True,
        )
        results: dict[Artifact, FetchResult] = {}
        for artifact, outcome in zip(ordered, outcomes):
            if isinstance(outcome, BaseException):
                raise FetchSchedulingError(
                    f"Error while downloading / verifying {artifact.url}"
                ) from outcome
            results[artifact] = outcome
        return results

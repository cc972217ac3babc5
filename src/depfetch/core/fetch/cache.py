"""On-disk artifact cache addressing and cache policies.

The cache maps each remote URL to exactly one file, under a separate root
per URL scheme::

    https://repo1.maven.org/maven2/a/b/1.0/b-1.0.jar
      -> {cache}/https/repo1.maven.org/maven2/a/b/1.0/b-1.0.jar

``file:`` URLs are never copied; they address their own file.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from urllib.parse import unquote, urlsplit
from urllib.request import url2pathname

from depfetch.exceptions import ConfigurationError

REMOTE_SCHEMES: tuple[str, ...] = ("http", "https")


class CachePolicy(str, Enum):
    """When a fetch may, or must, go to the network.

    LOCAL_ONLY       -- never; absent files fail.
    UPDATE_CHANGING  -- for absent files and for changing (snapshot) ones.
    FETCH_MISSING    -- for absent files only.
    FORCE_REFRESH    -- always.
    """

    LOCAL_ONLY = "local-only"
    UPDATE_CHANGING = "update-changing"
    FETCH_MISSING = "fetch-missing"
    FORCE_REFRESH = "force-refresh"

    @classmethod
    def parse(cls, value: str | CachePolicy) -> CachePolicy:
        if isinstance(value, CachePolicy):
            return value
        normalized = value.strip().lower().replace("_", "-")
        try:
            return cls(normalized)
        except ValueError as exc:
            choices = ", ".join(p.value for p in cls)
            raise ConfigurationError(
                f"Unknown cache policy {value!r} (expected one of: {choices})"
            ) from exc

    def needs_download(self, cached: bool, changing: bool) -> bool:
        if self is CachePolicy.LOCAL_ONLY:
            return False
        if self is CachePolicy.FORCE_REFRESH:
            return True
        if self is CachePolicy.UPDATE_CHANGING and changing:
            return True
        return not cached


class ArtifactCache:
    """Maps artifact URLs to local paths under *root*.

    Args:
        root: Cache root directory; ``http`` and ``https`` subdirectories
            are created on first write.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def scheme_root(self, scheme: str) -> Path:
        return self._root / scheme

    def local_path(self, url: str) -> Path | None:
        """Local file for *url*, or None if it cannot be cached.

        ``file:`` URLs naming a host other than ``localhost`` are not
        supported.
        """
        parts = urlsplit(url)
        if parts.scheme == "file":
            if parts.netloc not in ("", "localhost"):
                return None
            return Path(url2pathname(parts.path))
        if parts.scheme not in REMOTE_SCHEMES or not parts.netloc:
            return None
        segments = [
            unquote(segment)
            for segment in parts.path.split("/")
            if segment not in ("", ".", "..")
        ]
        return self.scheme_root(parts.scheme).joinpath(parts.netloc, *segments)

    @staticmethod
    def is_remote(url: str) -> bool:
        return urlsplit(url).scheme in REMOTE_SCHEMES

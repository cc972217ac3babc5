"""Checksum algorithms and checksum-file parsing.

Repositories publish ``.sha1``/``.sha256``/``.md5`` files beside each
artifact. Their contents vary (bare digest, ``digest  filename``,
``filename: digest``), so the parser takes the first token that looks
like a hex digest of the right length.
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Iterable

from depfetch.exceptions import ConfigurationError

ALGORITHMS: dict[str, str] = {
    "SHA-1": "sha1",
    "SHA-256": "sha256",
    "MD5": "md5",
}

_DIGEST_LENGTHS: dict[str, int] = {"SHA-1": 40, "SHA-256": 64, "MD5": 32}

DEFAULT_CHECKSUMS: tuple[str | None, ...] = ("SHA-1", "MD5")

_HEX_RE = re.compile(r"[0-9a-fA-F]+")
_CHUNK_SIZE = 64 * 1024


def parse_checksums(values: Iterable[str | None]) -> tuple[str | None, ...]:
    """Validate a checksum preference list.

    ``None``, ``""`` and ``"none"`` become None, meaning "accept unverified
    when no earlier algorithm had a checksum".

    Raises:
        ConfigurationError: For an unsupported algorithm name.
    """
    parsed: list[str | None] = []
    for value in values:
        if value is None or value.strip().lower() in ("", "none"):
            parsed.append(None)
            continue
        name = value.strip().upper()
        if name == "SHA1":
            name = "SHA-1"
        elif name == "SHA256":
            name = "SHA-256"
        if name not in ALGORITHMS:
            raise ConfigurationError(
                f"Unsupported checksum {value!r} (expected one of: {', '.join(ALGORITHMS)})"
            )
        parsed.append(name)
    return tuple(parsed)


def digest_file(path: Path, algorithm: str) -> str:
    """Hex digest of the file at *path*."""
    hasher = hashlib.new(ALGORITHMS[algorithm])
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def parse_checksum_file(content: str, algorithm: str) -> str | None:
    """Extract the digest from a checksum file, or None if there is none."""
    expected_length = _DIGEST_LENGTHS[algorithm]
    for token in _HEX_RE.findall(content):
        if len(token) == expected_length:
            return token.lower()
    return None

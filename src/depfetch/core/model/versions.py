"""Version ordering for Maven and Ivy style version strings.

Versions are split into numeric and alphabetic items (``1.0-rc2`` becomes
``1``, ``0``, ``rc``, ``2``) and compared item by item. A shorter version
is padded with "null" items, so ``1.0`` equals ``1.0.0`` and
``1.0-SNAPSHOT`` sorts before ``1.0``.

Qualifier precedence follows Maven's ``ComparableVersion``:

    alpha < beta < milestone < rc < snapshot < (release) < sp < unknown

Unknown qualifiers are compared lexically among themselves.

References
----------
.. [Maven] Apache Maven. "ComparableVersion."
   https://maven.apache.org/ref/current/maven-artifact/
"""

from __future__ import annotations

import functools
import re

_ITEM_RE = re.compile(r"\d+|[a-z]+")

_QUALIFIERS: dict[str, int] = {
    "alpha": 1,
    "a": 1,
    "beta": 2,
    "b": 2,
    "milestone": 3,
    "m": 3,
    "rc": 4,
    "cr": 4,
    "snapshot": 5,
    "ga": 6,
    "final": 6,
    "release": 6,
    "sp": 7,
}

_RELEASE_RANK = 6

# Item kinds, ordered: unknown qualifier text < known qualifier < number.
# The kind decides comparisons between items of different kinds only.
_QUALIFIER = 1
_TEXT = 2
_NUMBER = 3


def _parse_items(version: str) -> list[tuple[int, int, str]]:
    """Split a version string into comparable ``(kind, rank, text)`` items."""
    items: list[tuple[int, int, str]] = []
    for token in _ITEM_RE.findall(version.strip().lower()):
        if token.isdigit():
            items.append((_NUMBER, int(token), ""))
        elif token in _QUALIFIERS:
            items.append((_QUALIFIER, _QUALIFIERS[token], ""))
        else:
            items.append((_TEXT, 0, token))
    return items


def _compare_to_padding(item: tuple[int, int, str]) -> int:
    kind, rank, _ = item
    if kind == _NUMBER:
        return (rank > 0) - (rank < 0)
    if kind == _QUALIFIER:
        return (rank > _RELEASE_RANK) - (rank < _RELEASE_RANK)
    return 1


def _compare_items(left: tuple[int, int, str], right: tuple[int, int, str]) -> int:
    if left[0] != right[0]:
        if left[0] == _NUMBER or right[0] == _NUMBER:
            return 1 if left[0] == _NUMBER else -1
        # qualifier vs unknown text: unknown sorts after every known qualifier
        return 1 if left[0] == _TEXT else -1
    if left[0] == _TEXT:
        return (left[2] > right[2]) - (left[2] < right[2])
    return (left[1] > right[1]) - (left[1] < right[1])


def compare_versions(left: str, right: str) -> int:
    """Compare two version strings.

    Returns:
        A negative number, zero, or a positive number when *left* is lower
        than, equal to, or higher than *right*.
    """
    left_items = _parse_items(left)
    right_items = _parse_items(right)
    for index in range(max(len(left_items), len(right_items))):
        if index >= len(left_items):
            result = -_compare_to_padding(right_items[index])
        elif index >= len(right_items):
            result = _compare_to_padding(left_items[index])
        else:
            result = _compare_items(left_items[index], right_items[index])
        if result:
            return result
    if not left_items and not right_items:
        return (left > right) - (left < right)
    return 0


version_key = functools.cmp_to_key(compare_versions)
"""Sort key for version strings, lowest version first."""


def highest(versions: list[str] | set[str] | tuple[str, ...]) -> str:
    """Return the highest of *versions*, breaking ties lexically for stability."""
    if not versions:
        raise ValueError("highest() requires at least one version")
    return max(sorted(versions), key=version_key)


def is_snapshot(version: str) -> bool:
    """True for ``-SNAPSHOT`` versions, whose artifacts may change in place."""
    return version.upper().endswith("SNAPSHOT")

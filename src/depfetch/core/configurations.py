"""Configuration graph and closure computation.

A configuration (``compile``, ``runtime``, ``test`` ...) names a bucket of
dependencies and may extend other configurations. The dependencies
visible in a configuration are those declared under it and under every
configuration it transitively extends.

The closure is an explicit worklist over a visited set: it terminates on
cyclic graphs and does not recurse, however deep the hierarchy.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable

STANDARD_CONFIGURATIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("compile", ()),
    ("runtime", ("compile",)),
    ("test", ("runtime",)),
    ("provided", ()),
    ("optional", ()),
    ("default", ("runtime",)),
)


class ConfigurationGraph:
    """Configuration name -> directly extended configuration names.

    Declaration order is kept; reports list configurations in that order.

    Thread safety: instances are immutable after construction.
    """

    def __init__(self, extends: Iterable[tuple[str, Iterable[str]]]) -> None:
        self._extends: dict[str, tuple[str, ...]] = {}
        for name, supers in extends:
            self._extends[name] = tuple(supers)

    @classmethod
    def standard(cls) -> ConfigurationGraph:
        return cls(STANDARD_CONFIGURATIONS)

    @classmethod
    def from_mapping(cls, mapping: dict[str, Iterable[str]]) -> ConfigurationGraph:
        return cls(mapping.items())

    @property
    def names(self) -> list[str]:
        """Configuration names in declaration order."""
        return list(self._extends)

    def supers(self, name: str) -> tuple[str, ...]:
        return self._extends.get(name, ())

    def closure(self, name: str) -> frozenset[str]:
        """All configurations reachable from *name* through ``extends``, itself included.

        Undeclared names are part of the closure but extend nothing.
        """
        visited: set[str] = {name}
        frontier: deque[str] = deque([name])
        while frontier:
            current = frontier.popleft()
            for parent in self._extends.get(current, ()):
                if parent not in visited:
                    visited.add(parent)
                    frontier.append(parent)
        return frozenset(visited)

    def closures(self) -> dict[str, frozenset[str]]:
        return {name: self.closure(name) for name in self._extends}

    def cycles(self) -> list[list[str]]:
        """Detect ``extends`` cycles using iterative DFS coloring.

        Returns:
            Each cycle as a path that starts and ends with the same name,
            e.g. ``["a", "b", "a"]``. Empty for a well-formed graph.
        """
        WHITE, GRAY, BLACK = 0, 1, 2
        color: dict[str, int] = {}
        cycles: list[list[str]] = []

        for start in self._extends:
            if color.get(start, WHITE) != WHITE:
                continue
            path: list[str] = [start]
            color[start] = GRAY
            stack: list[tuple[str, int]] = [(start, 0)]
            while stack:
                node, index = stack[-1]
                parents = self._extends.get(node, ())
                if index >= len(parents):
                    stack.pop()
                    path.pop()
                    color[node] = BLACK
                    continue
                stack[-1] = (node, index + 1)
                parent = parents[index]
                state = color.get(parent, WHITE)
                if state == GRAY:
                    cycles.append(path[path.index(parent):] + [parent])
                elif state == WHITE:
                    color[parent] = GRAY
                    path.append(parent)
                    stack.append((parent, 0))
        return cycles

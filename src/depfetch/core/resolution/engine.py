"""Iterative fixed-point resolution engine.

Each round derives the reconciled dependency set from what is known so
far, collects the ``(module, version)`` pairs that have not been looked up
yet, and looks them all up in the repository chain. Resolution is done
when a round finds nothing left to look up.

The engine never raises for an unresolvable dependency: the failure is
recorded in the state. Running out of rounds is reported through the
outcome's status, not an exception, so callers decide how fatal it is.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from depfetch.core.fetch.results import ArtifactFetch
from depfetch.core.resolution.repositories import RepositoryChain
from depfetch.core.resolution.root import RootRequest
from depfetch.core.resolution.state import ResolutionState

logger = logging.getLogger(__name__)


class EngineStatus(str, Enum):
    DONE = "done"
    ITERATION_LIMIT_REACHED = "iteration-limit-reached"


@dataclass(frozen=True)
class EngineOutcome:
    """Terminal state of one engine run."""

    status: EngineStatus
    state: ResolutionState

    @property
    def done(self) -> bool:
        return self.status is EngineStatus.DONE


class ResolutionEngine:
    """Drives a ``ResolutionState`` to a fixed point.

    Args:
        chain: Repositories to look modules up in.
        fetch_local: Descriptor fetch that never touches the network.
        fetch: Descriptor fetch under the operation's cache policy.
    """

    def __init__(
        self,
        chain: RepositoryChain,
        fetch_local: ArtifactFetch,
        fetch: ArtifactFetch,
    ) -> None:
        self._chain = chain
        self._fetch_local = fetch_local
        self._fetch = fetch

    async def run(self, state: ResolutionState, max_iterations: int) -> EngineOutcome:
        """Run lookup rounds until done or *max_iterations* rounds were spent.

        Args:
            state: State to advance; mutated in place.
            max_iterations: Maximum number of lookup rounds. With 0, only a
                root set that needs no lookup at all can finish.

        Returns:
            ``EngineOutcome`` with status ``DONE`` or ``ITERATION_LIMIT_REACHED``.
        """
        while True:
            missing = state.missing()
            if not missing:
                state.done = True
                logger.debug("Fixed point reached after %d round(s)", state.iteration)
                return EngineOutcome(EngineStatus.DONE, state)
            if state.iteration >= max_iterations:
                logger.debug(
                    "Iteration limit %d reached with %d pending lookup(s)",
                    max_iterations,
                    len(missing),
                )
                return EngineOutcome(EngineStatus.ITERATION_LIMIT_REACHED, state)

            lookups = await asyncio.gather(
                *(
                    self._chain.find(module, version, self._fetch_local, self._fetch)
                    for module, version in missing
                )
            )
            for (module, version), lookup in zip(missing, lookups):
                if lookup.project is None:
                    logger.debug("Could not resolve %s:%s", module, version)
                    state.failures[(module, version)] = lookup.messages
                else:
                    state.project_cache[(module, version)] = (lookup.repository, lookup.project)
            state.iteration += 1

    async def resolve(self, request: RootRequest, max_iterations: int) -> EngineOutcome:
        """Start a fresh state from *request* and run it."""
        return await self.run(ResolutionState.from_request(request), max_iterations)

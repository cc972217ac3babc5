"""Update pipeline: resolve, fetch, report.

``Orchestrator.run`` performs one whole operation for one project and
returns a tagged ``PipelineOutcome``; the two fatal conditions of the
pipeline (iteration cap reached, non-local fetch result) are outcomes,
not exceptions. ``Orchestrator.update`` is the boundary that turns them
into ``ResolutionIncomplete`` and ``InvariantViolation``.

Operations are serialized through an ``OperationQueue``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

import httpx

from depfetch.config import BuildDescriptor, UpdateSettings
from depfetch.core.fetch import ArtifactCache, ArtifactFetcher, CachePolicy, DownloadLogger
from depfetch.core.report import UpdateReport, assemble_report, project_summary
from depfetch.core.resolution import (
    RepositoryChain,
    ResolutionEngine,
    ResolutionState,
    build_root_request,
)
from depfetch.core.scheduler import DEFAULT_QUEUE, OperationQueue
from depfetch.exceptions import InvariantViolation, ResolutionIncomplete

logger = logging.getLogger(__name__)


class PipelineStatus(str, Enum):
    DONE = "done"
    ITERATION_LIMIT_REACHED = "iteration-limit-reached"
    INVARIANT_VIOLATION = "invariant-violation"


@dataclass(frozen=True)
class PipelineOutcome:
    """Result of one operation.

    Attributes:
        status: How the operation ended.
        report: The update report; only set when ``status`` is ``DONE``.
        state: The resolution state, when resolution ran.
        message: Description of the failure for non-``DONE`` statuses.
        cause: The exception behind an ``INVARIANT_VIOLATION``.
    """

    status: PipelineStatus
    report: UpdateReport | None = None
    state: ResolutionState | None = None
    message: str = ""
    cause: Exception | None = None


class Orchestrator:
    """Runs resolve / fetch / report operations.

    Args:
        settings: Operation settings; defaults apply when omitted.
        queue: Serializes operations; the process-wide queue by default.
        download_logger: Sink for artifact transfer events.
        transport: httpx transport override (tests inject a mock).
    """

    def __init__(
        self,
        settings: UpdateSettings | None = None,
        queue: OperationQueue | None = None,
        download_logger: DownloadLogger | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or UpdateSettings()
        self._queue = queue or DEFAULT_QUEUE
        self._download_logger = download_logger
        self._transport = transport

    @property
    def settings(self) -> UpdateSettings:
        return self._settings

    def run(self, build: BuildDescriptor) -> PipelineOutcome:
        """Run one operation for *build*, waiting for earlier ones to finish.

        Raises:
            ConfigurationError: For invalid workspace pins or repositories.
            FetchSchedulingError: If the artifact batch itself fails.
        """
        project = build.project
        name = f"{project.module}:{project.version}"
        return self._queue.run(name, lambda: asyncio.run(self.run_async(build)))

    def update(self, build: BuildDescriptor) -> UpdateReport:
        """Run one operation and return its report.

        Raises:
            ResolutionIncomplete: If resolution hit the iteration cap.
            InvariantViolation: If a fetch result was not a local file.
        """
        outcome = self.run(build)
        if outcome.status is PipelineStatus.ITERATION_LIMIT_REACHED:
            raise ResolutionIncomplete(outcome.message)
        if outcome.status is PipelineStatus.INVARIANT_VIOLATION:
            raise InvariantViolation(outcome.message) from outcome.cause
        assert outcome.report is not None
        return outcome.report

    async def run_async(self, build: BuildDescriptor) -> PipelineOutcome:
        """The operation itself, without queueing."""
        settings = self._settings
        project = build.project
        workspace = build.workspace

        request = build_root_request(project, workspace, overrides=build.force_versions)
        chain = RepositoryChain.for_workspace(workspace, build.remote_sources())

        for line in project_summary(
            project.module.organization,
            project.module.name,
            project.version,
            list(project.dependencies),
        ):
            logger.info(line)

        fetcher = ArtifactFetcher(
            ArtifactCache(settings.cache_dir),
            checksums=settings.checksums,
            download_logger=self._download_logger,
            parallel=settings.parallel_downloads,
            transport=self._transport,
        )
        async with fetcher:
            engine = ResolutionEngine(
                chain,
                fetch_local=fetcher.bind(CachePolicy.LOCAL_ONLY),
                fetch=fetcher.bind(settings.cache_policy),
            )
            outcome = await engine.resolve(request, settings.max_iterations)
            if not outcome.done:
                return PipelineOutcome(
                    PipelineStatus.ITERATION_LIMIT_REACHED,
                    state=outcome.state,
                    message=(
                        f"Maximum number of iterations reached ({settings.max_iterations}) "
                        f"while resolving {project.module}:{project.version}"
                    ),
                )
            state = outcome.state
            logger.info("Resolution done")

            conflicts = state.conflicts
            errors = state.errors
            if conflicts:
                logger.info("%d conflict(s)", len(conflicts))
            if errors:
                logger.info("%d error(s)", len(errors))

            logger.info("Fetching artifacts")
            fetch_results = await fetcher.fetch_all(state.artifacts, settings.cache_policy)
            logger.info("Fetching artifacts: done")
            for artifact, result in sorted(fetch_results.items(), key=lambda item: item[0].url):
                if not result.ok:
                    logger.warning("%s: %s", artifact.url, result.reason)

        graph = build.configuration_graph
        for cycle in graph.cycles():
            logger.warning("Configuration cycle: %s", " -> ".join(cycle))

        try:
            report = assemble_report(project, graph, state, fetch_results)
        except InvariantViolation as exc:
            return PipelineOutcome(
                PipelineStatus.INVARIANT_VIOLATION, state=state, message=str(exc), cause=exc
            )
        return PipelineOutcome(PipelineStatus.DONE, report=report, state=state)

"""
Update orchestration for orgsync.

Fans out repository updates under a counting admission gate. A failing
repository is reported and left out of the results; it never aborts its
siblings.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from ..domain.repository import ActualRepo, RepoWithUpdateResult

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 30

T = TypeVar('T')


class AdmissionGate:
    """
    Counting semaphore that also tracks how many operations are in flight.

    Example:
        gate = AdmissionGate(30)
        async with gate:
            await repo.git.update()
    """

    def __init__(self, limit: int = DEFAULT_CONCURRENCY):
        if limit < 1:
            raise ValueError("Concurrency limit must be at least 1")
        self.limit = limit
        self.in_flight = 0
        self.peak = 0
        self._semaphore = asyncio.Semaphore(limit)

    async def __aenter__(self):
        await self._semaphore.acquire()
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.in_flight -= 1
        self._semaphore.release()


class UpdateOrchestrator:
    """
    Runs per-repository git operations with bounded concurrency.

    Example:
        orchestrator = UpdateOrchestrator(reporter, concurrency=30)
        results = await orchestrator.update_repos(found_repos)
    """

    def __init__(self, reporter, concurrency: int = DEFAULT_CONCURRENCY):
        """
        Initialize UpdateOrchestrator.

        Args:
            reporter: Receives per-repository failures
            concurrency: Maximum simultaneous in-flight operations
        """
        self.reporter = reporter
        self.gate = AdmissionGate(concurrency)

    async def run_each(
        self,
        repos: Sequence[ActualRepo],
        operation: Callable[[ActualRepo], Awaitable[T]],
        description: str = "Failed",
    ) -> List[Optional[T]]:
        """
        Apply operation to every repo through the gate.

        Failures are reported and yield None in their slot.
        """
        async def run_one(repo: ActualRepo) -> Optional[T]:
            async with self.gate:
                try:
                    return await operation(repo)
                except Exception as e:
                    logger.debug(f"{description} for {repo.actual_relpath}", exc_info=True)
                    self.reporter.error(f"{description} for {repo.actual_relpath} - skipping. {e}")
                    return None

        return list(await asyncio.gather(*(run_one(repo) for repo in repos)))

    async def update_repos(self, repos: Sequence[ActualRepo]) -> List[RepoWithUpdateResult]:
        """
        Update every repository; failed ones are excluded from the result.

        Args:
            repos: Found repositories to update

        Returns:
            RepoWithUpdateResult for each repository whose update succeeded
        """
        async def update_one(repo: ActualRepo) -> RepoWithUpdateResult:
            return RepoWithUpdateResult(repo=repo, result=await repo.git.update())

        results = await self.run_each(repos, update_one)
        return [result for result in results if result is not None]

    async def find_unpushed(self, repos: Sequence[ActualRepo]) -> List[ActualRepo]:
        """Repositories whose branch is ahead of its upstream."""
        async def check_one(repo: ActualRepo) -> bool:
            return await repo.git.has_unpushed_commits()

        flags = await self.run_each(repos, check_one, "Unpushed check failed")
        return [repo for repo, ahead in zip(repos, flags) if ahead]

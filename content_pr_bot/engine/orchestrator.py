"""
Sync orchestrator: one run of the content pull-request pipeline.

Phases, in order:

    reap + fetch (concurrently) -> provision -> reconcile -> publish -> dispatch

Any failure aborts the run and is re-raised as ``SyncPhaseError`` naming the
phase. Nothing already done on the remote is rolled back: a branch created
before a reconcile failure stays behind, and an automated PR left open is
closed by the next run's reaper.

Example:
    >>> orchestrator = SyncOrchestrator.from_settings(settings, git, source)
    >>> outcome = await orchestrator.run()
    >>> outcome.branch_name  # None when nothing changed
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime

import structlog

from content_pr_bot.config.settings import ContentSyncSettings
from content_pr_bot.engine.branching import BranchProvisioner, Clock, format_timestamp, utc_now
from content_pr_bot.engine.dispatch import NullDispatcher, PostPublishDispatcher
from content_pr_bot.engine.publisher import PullRequestPublisher
from content_pr_bot.engine.reaper import StaleRunReaper
from content_pr_bot.engine.reconciler import ContentReconciler
from content_pr_bot.enums import RunPhase
from content_pr_bot.exceptions import ContentSyncError, SourceError, SyncPhaseError
from content_pr_bot.models.domain import ContentItem, RunOutcome
from content_pr_bot.providers.base import GitProvider
from content_pr_bot.sources.base import ContentSource

log = structlog.get_logger(__name__)


def ensure_unique_paths(items: Sequence[ContentItem]) -> None:
    """Reject a run in which two items target the same file.

    Raises:
        SourceError: Listing every duplicated path.
    """
    duplicates = sorted(path for path, count in Counter(item.path for item in items).items() if count > 1)
    if duplicates:
        raise SourceError(f"Duplicate content paths: {', '.join(duplicates)}")


class SyncOrchestrator:
    """Run the reap / provision / reconcile / publish pipeline once."""

    def __init__(
        self,
        git: GitProvider,
        source: ContentSource,
        base_branch: str,
        marker: str,
        branch_prefix: str = "update-content",
        dispatcher: PostPublishDispatcher | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.git = git
        self.source = source
        self.dispatcher = dispatcher or NullDispatcher()
        self.clock = clock
        self.reaper = StaleRunReaper(git, marker)
        self.provisioner = BranchProvisioner(git, base_branch, prefix=branch_prefix, clock=clock)
        self.reconciler = ContentReconciler(git)
        self.publisher = PullRequestPublisher(git, base_branch, marker)

    @classmethod
    def from_settings(
        cls,
        settings: ContentSyncSettings,
        git: GitProvider,
        source: ContentSource,
        dispatcher: PostPublishDispatcher | None = None,
        clock: Clock = utc_now,
    ) -> "SyncOrchestrator":
        return cls(
            git=git,
            source=source,
            base_branch=settings.repository.default_branch,
            marker=settings.pull_request.title_marker,
            branch_prefix=settings.pull_request.branch_prefix,
            dispatcher=dispatcher,
            clock=clock,
        )

    @asynccontextmanager
    async def _phase(self, phase: RunPhase) -> AsyncIterator[None]:
        log.debug("phase_started", phase=phase.value)
        try:
            yield
        except SyncPhaseError:
            raise
        except ContentSyncError as e:
            log.error("phase_failed", phase=phase.value, error=e.message)
            raise SyncPhaseError(phase, e.message) from e
        except Exception as e:
            log.error("phase_failed", phase=phase.value, error=str(e), exc_info=True)
            raise SyncPhaseError(phase, f"{type(e).__name__}: {e}") from e
        log.debug("phase_finished", phase=phase.value)

    async def _reap(self) -> list[int]:
        async with self._phase(RunPhase.REAP):
            return await self.reaper.reap()

    async def _fetch(self) -> list[ContentItem]:
        async with self._phase(RunPhase.FETCH):
            items = await self.source.fetch_content_items()
            ensure_unique_paths(items)
            return items

    async def run(self) -> RunOutcome:
        """Execute one complete sync run.

        Returns:
            The outcome; ``branch_name`` is None when no item changed.

        Raises:
            SyncPhaseError: If any phase fails.
        """
        moment: datetime = self.clock()
        timestamp = format_timestamp(moment)

        with structlog.contextvars.bound_contextvars(run=timestamp):
            log.info("sync_run_started")

            # Reaping and fetching touch disjoint state, so they overlap.
            reaped_or_error, items_or_error = await asyncio.gather(
                self._reap(), self._fetch(), return_exceptions=True
            )
            for result in (reaped_or_error, items_or_error):
                if isinstance(result, BaseException):
                    raise result
            reaped: list[int] = reaped_or_error  # type: ignore[assignment]
            items: list[ContentItem] = items_or_error  # type: ignore[assignment]

            if not items:
                log.info("sync_run_finished", outcome="no_content_items", reaped=reaped)
                return RunOutcome(branch_name=None, reaped=reaped)

            async with self._phase(RunPhase.PROVISION):
                branch = await self.provisioner.provision(moment)

            with structlog.contextvars.bound_contextvars(branch=branch.name):
                async with self._phase(RunPhase.RECONCILE):
                    report = await self.reconciler.reconcile(branch.name, items)

                async with self._phase(RunPhase.PUBLISH):
                    published = await self.publisher.publish(branch.name, report, timestamp)

                async with self._phase(RunPhase.DISPATCH):
                    await self.dispatcher.on_run_complete(published.branch_name, items)

            outcome = RunOutcome(
                branch_name=published.branch_name,
                pull_request=published.pull_request,
                item_results=report.results,
                reaped=reaped,
            )
            log.info(
                "sync_run_finished",
                outcome="pull_request_opened" if outcome.changed else "no_changes",
                branch=outcome.branch_name,
                reaped=reaped,
                **outcome.counts,
            )
            return outcome

"""Retire automated pull requests left open by earlier runs."""

import structlog

from content_pr_bot.exceptions import ProviderError
from content_pr_bot.models.domain import PullRequest
from content_pr_bot.providers.base import GitProvider

log = structlog.get_logger(__name__)


class StaleRunReaper:
    """Close every open automated PR and delete its head branch.

    A PR counts as automated only if its title starts with the marker; no
    other PR is ever touched. A PR that is already gone when closed (404) is
    treated as retired. Other listing and closing failures propagate: leaving
    an automated PR open would break the "at most one open automated PR"
    guarantee of the next publish. Branch deletion failures are logged and
    skipped.
    """

    def __init__(self, git: GitProvider, marker: str) -> None:
        self.git = git
        self.marker = marker

    async def reap(self) -> list[int]:
        """Close stale automated PRs.

        Returns:
            Numbers of the pull requests retired (closed now or already gone).

        Raises:
            ProviderError: If listing pull requests fails, or closing one fails
                for any reason other than "not found".
        """
        open_prs = await self.git.list_open_pull_requests()
        stale = [pr for pr in open_prs if pr.has_marker(self.marker)]
        log.info("reaper_scan", open_prs=len(open_prs), stale=len(stale))

        closed: list[int] = []
        for pr in stale:
            await self._retire(pr)
            closed.append(pr.number)
        return closed

    async def _retire(self, pr: PullRequest) -> None:
        try:
            await self.git.close_pull_request(pr.number)
        except ProviderError as e:
            if e.status_code != 404:
                raise
            log.warning("stale_pr_already_gone", number=pr.number, title=pr.title, head=pr.head)
        else:
            log.info("stale_pr_closed", number=pr.number, title=pr.title, head=pr.head)

        try:
            deleted = await self.git.delete_branch(pr.head)
        except ProviderError as e:
            log.warning("stale_branch_delete_failed", number=pr.number, branch=pr.head, error=e.message)
            return

        if deleted:
            log.info("stale_branch_deleted", number=pr.number, branch=pr.head)
        else:
            log.warning("stale_branch_already_gone", number=pr.number, branch=pr.head)

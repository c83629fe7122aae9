"""Open the run's pull request, or discard the branch when nothing changed."""

from dataclasses import dataclass

import structlog

from content_pr_bot.engine.reconciler import ReconcileReport
from content_pr_bot.enums import ReconcileAction
from content_pr_bot.models.domain import PullRequest
from content_pr_bot.providers.base import GitProvider

log = structlog.get_logger(__name__)

PR_BODY_INTRO = (
    "Automated content release: articles fetched from GC Articles and "
    "synchronized into the content directory."
)


@dataclass
class PublishResult:
    """Branch backing the opened PR, or ``None`` with no PR."""

    branch_name: str | None
    pull_request: PullRequest | None = None


def build_pr_body(report: ReconcileReport) -> str:
    """Describe the release and list every file it touches."""
    lines = [PR_BODY_INTRO, ""]
    for action, heading in ((ReconcileAction.CREATED, "Added"), (ReconcileAction.UPDATED, "Updated")):
        paths = [result.path for result in report.results if result.action is action]
        if paths:
            lines.append(f"### {heading}")
            lines.extend(f"- `{path}`" for path in paths)
            lines.append("")
    return "\n".join(lines).rstrip() + "\n"


class PullRequestPublisher:
    """Gate PR creation on the reconciler's changed flag."""

    def __init__(self, git: GitProvider, base_branch: str, marker: str) -> None:
        self.git = git
        self.base_branch = base_branch
        self.marker = marker

    def title_for(self, timestamp: str) -> str:
        return f"{self.marker} Content update {timestamp}"

    async def publish(self, branch: str, report: ReconcileReport, timestamp: str) -> PublishResult:
        """Open a PR from ``branch`` if anything changed, else delete it.

        Raises:
            ProviderError: If the PR cannot be opened, or the unused branch
                cannot be deleted (an already-missing branch is not an error).
        """
        if not report.changed:
            if await self.git.delete_branch(branch):
                log.info("no_changes_branch_deleted", branch=branch)
            else:
                log.warning("no_changes_branch_already_gone", branch=branch)
            return PublishResult(branch_name=None)

        pull_request = await self.git.open_pull_request(
            title=self.title_for(timestamp),
            body=build_pr_body(report),
            head=branch,
            base=self.base_branch,
        )
        log.info("pull_request_opened", number=pull_request.number, url=pull_request.url, branch=branch)
        return PublishResult(branch_name=branch, pull_request=pull_request)

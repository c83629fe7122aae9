"""Per-item create/update/skip decisions against the run's branch.

Revision contract:
    An update is sent with the SHA returned by the lookup of the same path
    immediately before it, on the same branch, in the same run. SHAs are
    never cached across items or runs, so the service rejects any write that
    would overwrite a change made after the lookup.

Items are processed one at a time. Each write moves the branch head, and
the next write must be based on it; concurrent writes to one branch race
and are not attempted.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from content_pr_bot.enums import ReconcileAction
from content_pr_bot.models.domain import AbsentFile, ContentItem, ItemResult, PresentFile
from content_pr_bot.providers.base import GitProvider

log = structlog.get_logger(__name__)


@dataclass
class ReconcileReport:
    """What the reconciler did to the branch."""

    results: list[ItemResult] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """True if at least one item was created or updated."""
        return any(result.action.is_change for result in self.results)

    @property
    def changed_results(self) -> list[ItemResult]:
        return [result for result in self.results if result.action.is_change]


class ContentReconciler:
    """Apply content items to a branch, writing only what differs."""

    def __init__(self, git: GitProvider) -> None:
        self.git = git

    async def reconcile(self, branch: str, items: Sequence[ContentItem]) -> ReconcileReport:
        """Reconcile every item against ``branch``.

        Args:
            branch: Branch to read from and commit to
            items: Items with unique paths

        Returns:
            Report with one result per item, in input order.

        Raises:
            ProviderError: If a lookup fails for a reason other than the
                file being absent, or any write fails.
        """
        report = ReconcileReport()
        for item in items:
            result = await self.reconcile_item(branch, item)
            report.results.append(result)

        log.info(
            "reconcile_complete",
            branch=branch,
            items=len(report.results),
            changed=len(report.changed_results),
        )
        return report

    async def reconcile_item(self, branch: str, item: ContentItem) -> ItemResult:
        """Look up one path and create, update or skip it."""
        remote = await self.git.get_file(item.path, ref=branch)

        match remote:
            case AbsentFile():
                commit_sha = await self.git.write_file(
                    item.path,
                    item.body,
                    branch=branch,
                    message=f"Add {item.filename}",
                )
                log.info("file_created", path=item.path, commit=commit_sha)
                return ItemResult(path=item.path, action=ReconcileAction.CREATED, commit_sha=commit_sha)

            case PresentFile(content=content, sha=sha) if content != item.body:
                commit_sha = await self.git.write_file(
                    item.path,
                    item.body,
                    branch=branch,
                    message=f"Update {item.filename}",
                    sha=sha,
                )
                log.info("file_updated", path=item.path, previous_sha=sha, commit=commit_sha)
                return ItemResult(path=item.path, action=ReconcileAction.UPDATED, commit_sha=commit_sha)

            case PresentFile():
                log.debug("file_unchanged", path=item.path)
                return ItemResult(path=item.path, action=ReconcileAction.UNCHANGED)

            case _:
                raise TypeError(f"Unexpected file lookup result: {remote!r}")

"""Branch provisioning for sync runs."""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from content_pr_bot.exceptions import ProviderError
from content_pr_bot.models.domain import Branch
from content_pr_bot.providers.base import GitProvider

log = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with ``:`` and ``.`` replaced by ``-``.

    Example:
        >>> format_timestamp(datetime(2024, 6, 1, 12, 30, 45, 123000, tzinfo=UTC))
        '2024-06-01T12-30-45-123Z'
    """
    iso = moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


class BranchProvisioner:
    """Create the run's branch at the current tip of the base branch.

    Branch names are ``<prefix>-<timestamp>``. Names are not retried on
    collision: millisecond timestamps and the run cadence make one
    practically impossible, so a collision surfaces as an error.
    """

    def __init__(
        self,
        git: GitProvider,
        base_branch: str,
        prefix: str = "update-content",
        clock: Clock = utc_now,
    ) -> None:
        self.git = git
        self.base_branch = base_branch
        self.prefix = prefix
        self.clock = clock

    def branch_name_for(self, moment: datetime) -> str:
        return f"{self.prefix}-{format_timestamp(moment)}"

    async def provision(self, moment: datetime | None = None) -> Branch:
        """Create a new branch from the base branch tip.

        Args:
            moment: Timestamp to name the branch after; defaults to now.

        Returns:
            The created branch.

        Raises:
            ProviderError: If the base branch is missing or unreadable, or
                the branch cannot be created (``BranchExistsError`` on a
                name collision).
        """
        tip = await self.git.get_branch_tip(self.base_branch)
        if tip is None:
            raise ProviderError(f"Base branch {self.base_branch} not found", 404)

        branch_name = self.branch_name_for(moment or self.clock())
        branch = await self.git.create_branch(branch_name, tip)
        log.info("branch_provisioned", branch=branch.name, base=self.base_branch, sha=tip)
        return branch

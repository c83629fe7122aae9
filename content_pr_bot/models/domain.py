"""
Domain models for content-pr-bot.

These models are the normalized internal representation shared by the
engine, the content sources and the git providers. Provider-specific
payloads (PyGithub objects, Gitea JSON) are converted into them at the
provider boundary.

Example:
    Reconciling a lookup result::

        match await git.get_file(item.path, ref=branch):
            case AbsentFile():
                ...  # create
            case PresentFile(content=content, sha=sha) if content != item.body:
                ...  # update with sha
            case PresentFile():
                ...  # unchanged
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath

from content_pr_bot.enums import ReconcileAction


@dataclass(frozen=True)
class ContentItem:
    """One file's target path and full intended content for a run."""

    path: str
    """Repository-relative path (e.g., "content/en/my-article.md").

    Unique within a run.
    """

    body: str
    """Complete file contents.

    Deterministic for a given source state, so that an unchanged source
    yields a byte-identical body on the next run.
    """

    @property
    def filename(self) -> str:
        """Basename of the path, used in commit messages."""
        return PurePosixPath(self.path).name


@dataclass(frozen=True)
class AbsentFile:
    """File lookup result: nothing exists at the path on the branch."""


@dataclass(frozen=True)
class PresentFile:
    """File lookup result: a file exists at the path on the branch."""

    content: str
    """Decoded file contents."""

    sha: str
    """Revision token (blob SHA) of the file.

    Must be sent back with an update so the service rejects the write if
    the file changed since the lookup.
    """


RemoteFile = AbsentFile | PresentFile


@dataclass
class Branch:
    """Represents a Git branch."""

    name: str
    """Branch name without the "refs/heads/" prefix."""

    sha: str
    """Commit SHA the branch points to."""


@dataclass
class PullRequest:
    """Represents a pull request on the content repository."""

    number: int
    title: str
    head: str
    """Source branch name."""

    base: str
    """Target branch name."""

    state: str = "open"
    url: str = ""

    def has_marker(self, marker: str) -> bool:
        """Whether the title carries the automation marker prefix."""
        return self.title.startswith(marker)


@dataclass
class ItemResult:
    """Outcome of reconciling a single content item."""

    path: str
    action: ReconcileAction
    commit_sha: str | None = None


@dataclass
class RunOutcome:
    """Result of one complete sync run.

    ``branch_name`` is None when no item changed: no pull request was opened
    and the provisioned branch was deleted.
    """

    branch_name: str | None
    pull_request: PullRequest | None = None
    item_results: list[ItemResult] = field(default_factory=list)
    reaped: list[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.branch_name is not None

    @property
    def counts(self) -> dict[str, int]:
        """Number of items per reconcile action."""
        totals = {action.value: 0 for action in ReconcileAction}
        for result in self.item_results:
            totals[result.action.value] += 1
        return totals

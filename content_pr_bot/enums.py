"""Enumerations for content-pr-bot providers and run bookkeeping."""

from enum import Enum


class ProviderType(str, Enum):
    """Code-hosting services supported as the content repository.

    - github: GitHub or GitHub Enterprise (REST API via PyGithub)
    - gitea: Gitea or Forgejo (REST API v1 via httpx)
    """

    GITHUB = "github"
    GITEA = "gitea"

    def __str__(self) -> str:
        return self.value


class RunPhase(str, Enum):
    """Phases of a sync run, in execution order.

    Used to label fatal errors so the operator knows where a run stopped.
    """

    REAP = "reap"
    FETCH = "fetch"
    PROVISION = "provision"
    RECONCILE = "reconcile"
    PUBLISH = "publish"
    DISPATCH = "dispatch"

    def __str__(self) -> str:
        return self.value


class ReconcileAction(str, Enum):
    """Outcome of reconciling one content item against the branch."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"

    def __str__(self) -> str:
        return self.value

    @property
    def is_change(self) -> bool:
        """Whether this outcome produced a commit."""
        return self is not ReconcileAction.UNCHANGED

"""Domain models shared by the engine, sources and providers."""

from content_pr_bot.models.domain import (
    AbsentFile,
    Branch,
    ContentItem,
    ItemResult,
    PresentFile,
    PullRequest,
    RemoteFile,
    RunOutcome,
)

__all__ = [
    "AbsentFile",
    "Branch",
    "ContentItem",
    "ItemResult",
    "PresentFile",
    "PullRequest",
    "RemoteFile",
    "RunOutcome",
]

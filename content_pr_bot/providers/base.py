"""
Abstract base class for code-hosting providers.

The engine only needs branch, file-content and pull-request operations; this
module defines that contract so the engine works against GitHub and Gitea
alike.
"""

from abc import ABC, abstractmethod
from typing import Any

from content_pr_bot.models.domain import Branch, PullRequest, RemoteFile


class GitProvider(ABC):
    """Abstract base class for Git provider implementations.

    Not-found conditions that the engine expects to see are part of the
    return values (``None``, ``False``, ``AbsentFile``). Every other failure
    is raised as ``ProviderError``.

    All methods are async to support non-blocking I/O with HTTP clients.
    """

    async def connect(self) -> None:
        """Open the connection to the service."""

    async def disconnect(self) -> None:
        """Release the connection to the service."""

    async def __aenter__(self) -> "GitProvider":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    @abstractmethod
    async def get_branch_tip(self, branch_name: str) -> str | None:
        """Get the commit SHA a branch points to.

        Args:
            branch_name: Branch name without "refs/heads/".

        Returns:
            The tip commit SHA, or None if the branch does not exist.

        Raises:
            ProviderError: If the lookup fails for any other reason.
        """
        pass

    @abstractmethod
    async def create_branch(self, branch_name: str, sha: str) -> Branch:
        """Create a branch reference at a commit.

        Args:
            branch_name: Name of the new branch.
            sha: Commit the branch should point to.

        Returns:
            The created Branch.

        Raises:
            BranchExistsError: If a branch with that name already exists.
            ProviderError: If creation fails for any other reason.
        """
        pass

    @abstractmethod
    async def delete_branch(self, branch_name: str) -> bool:
        """Delete a branch.

        Returns:
            True if the branch was deleted, False if it did not exist.

        Raises:
            ProviderError: If deletion fails for any other reason.
        """
        pass

    @abstractmethod
    async def list_open_pull_requests(self) -> list[PullRequest]:
        """List every open pull request in the repository (all pages).

        Raises:
            ProviderError: If listing fails.
        """
        pass

    @abstractmethod
    async def close_pull_request(self, pr_number: int) -> None:
        """Close a pull request without merging it.

        Raises:
            ProviderError: If the update fails.
        """
        pass

    @abstractmethod
    async def get_file(self, path: str, ref: str) -> RemoteFile:
        """Look up a file on a branch.

        Args:
            path: Repository-relative file path.
            ref: Branch to read from.

        Returns:
            PresentFile with decoded content and revision SHA, or AbsentFile
            if nothing exists at the path.

        Raises:
            ProviderError: If the lookup fails for any other reason, or the
                path is a directory.
        """
        pass

    @abstractmethod
    async def write_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
    ) -> str:
        """Commit a whole file to a branch.

        Args:
            path: Repository-relative file path.
            content: Complete new file contents.
            branch: Branch to commit to.
            message: Commit message.
            sha: Revision SHA of the file being replaced. None creates a new
                file; when given, the service rejects the write if the file's
                current SHA differs.

        Returns:
            SHA of the created commit.

        Raises:
            ProviderError: If the write is rejected or fails.
        """
        pass

    @abstractmethod
    async def open_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequest:
        """Open a pull request.

        Returns:
            The created PullRequest, including its web URL.

        Raises:
            ProviderError: If creation fails.
        """
        pass

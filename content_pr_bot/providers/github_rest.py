"""GitHub provider implementation using PyGithub and REST API."""

import asyncio
from collections.abc import Callable
from typing import TypeVar

import requests
import structlog
from github import Auth, Github, GithubException  # type: ignore[import-not-found]
from github.PullRequest import PullRequest as GHPullRequest  # type: ignore[import-not-found]
from github.Repository import Repository as GHRepository  # type: ignore[import-not-found]

from content_pr_bot.exceptions import BranchExistsError, ProviderError
from content_pr_bot.models.domain import AbsentFile, Branch, PresentFile, PullRequest, RemoteFile
from content_pr_bot.providers.base import GitProvider

log = structlog.get_logger(__name__)

T = TypeVar("T")


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous function in a thread pool.

    This prevents blocking the event loop when calling synchronous
    PyGithub methods.
    """
    try:
        return await asyncio.to_thread(func)
    except requests.RequestException as e:
        # PyGithub lets transport failures through unwrapped
        log.error("github_request_failed", error=str(e))
        raise ProviderError(f"GitHub request failed: {e}") from e


def _is_missing_ref(e: GithubException) -> bool:
    # GitHub answers 422 "Reference does not exist" when deleting a ref
    # that vanished between lookup and delete.
    return e.status == 404 or (e.status == 422 and "does not exist" in str(e.data))


class GitHubRestProvider(GitProvider):
    """GitHub implementation using PyGithub library."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
    ):
        """Initialize GitHub provider.

        Args:
            token: GitHub personal access token or App token
            owner: Repository owner (user or organization)
            repo: Repository name
            base_url: GitHub API base URL (for GitHub Enterprise)
        """
        self.token = token.strip() if token else token
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self._client: Github | None = None
        self._repo: GHRepository | None = None

    async def connect(self) -> None:
        """Initialize GitHub client and resolve the repository."""

        def _connect() -> tuple[Github, GHRepository]:
            client = Github(auth=Auth.Token(self.token), base_url=self.base_url)
            repo = client.get_repo(f"{self.owner}/{self.repo}")
            return client, repo

        try:
            self._client, self._repo = await _run_sync(_connect)
        except GithubException as e:
            log.error("github_connect_failed", owner=self.owner, repo=self.repo, error=str(e))
            raise ProviderError(f"Cannot access repository {self.owner}/{self.repo}", e.status) from e

        log.info(
            "github_connected",
            base_url=self.base_url,
            owner=self.owner,
            repo=self.repo,
        )

    async def disconnect(self) -> None:
        """Close GitHub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None
            self._repo = None

    @property
    def repository(self) -> GHRepository:
        if self._repo is None:
            raise ProviderError("GitHub provider is not connected")
        return self._repo

    async def get_branch_tip(self, branch_name: str) -> str | None:
        """Get the commit SHA of a branch, or None if it does not exist."""
        log.debug("get_branch_tip", branch=branch_name)

        try:
            ref = await _run_sync(lambda: self.repository.get_git_ref(f"heads/{branch_name}"))
            return ref.object.sha

        except GithubException as e:
            if e.status == 404:
                log.debug("github_branch_not_found", branch=branch_name)
                return None
            log.error("github_get_branch_failed", branch=branch_name, error=str(e))
            raise ProviderError(f"Failed to read branch {branch_name}", e.status) from e

    async def create_branch(self, branch_name: str, sha: str) -> Branch:
        """Create a branch reference at the given commit."""
        log.info("create_branch", branch=branch_name, sha=sha)

        try:
            await _run_sync(
                lambda: self.repository.create_git_ref(
                    ref=f"refs/heads/{branch_name}",
                    sha=sha,
                )
            )
            return Branch(name=branch_name, sha=sha)

        except GithubException as e:
            if e.status == 422 and "already exists" in str(e.data):
                raise BranchExistsError(f"Branch {branch_name} already exists", e.status) from e
            log.error("github_create_branch_failed", branch=branch_name, error=str(e))
            raise ProviderError(f"Failed to create branch {branch_name}", e.status) from e

    async def delete_branch(self, branch_name: str) -> bool:
        """Delete a branch; False if it was already gone."""
        log.info("delete_branch", branch=branch_name)

        def _delete() -> None:
            ref = self.repository.get_git_ref(f"heads/{branch_name}")
            ref.delete()

        try:
            await _run_sync(_delete)
            return True

        except GithubException as e:
            if _is_missing_ref(e):
                log.debug("github_branch_not_found", branch=branch_name)
                return False
            log.error("github_delete_branch_failed", branch=branch_name, error=str(e))
            raise ProviderError(f"Failed to delete branch {branch_name}", e.status) from e

    async def list_open_pull_requests(self) -> list[PullRequest]:
        """List all open pull requests."""
        log.debug("list_open_pull_requests")

        try:
            gh_pulls = await _run_sync(lambda: list(self.repository.get_pulls(state="open")))
            return [self._convert_pull_request(gh_pr) for gh_pr in gh_pulls]

        except GithubException as e:
            log.error("github_list_pulls_failed", error=str(e))
            raise ProviderError("Failed to list open pull requests", e.status) from e

    async def close_pull_request(self, pr_number: int) -> None:
        """Close a pull request."""
        log.info("close_pull_request", number=pr_number)

        def _close() -> None:
            gh_pr = self.repository.get_pull(pr_number)
            gh_pr.edit(state="closed")

        try:
            await _run_sync(_close)

        except GithubException as e:
            log.error("github_close_pr_failed", number=pr_number, error=str(e))
            raise ProviderError(f"Failed to close pull request #{pr_number}", e.status) from e

    async def get_file(self, path: str, ref: str) -> RemoteFile:
        """Look up a file on a branch."""
        log.debug("get_file", path=path, ref=ref)

        try:
            contents = await _run_sync(lambda: self.repository.get_contents(path, ref=ref))

        except GithubException as e:
            if e.status == 404:
                return AbsentFile()
            log.error("github_get_file_failed", path=path, ref=ref, error=str(e))
            raise ProviderError(f"Failed to read {path} on {ref}", e.status) from e

        if isinstance(contents, list):
            raise ProviderError(f"Path {path} is a directory, not a file")

        return PresentFile(content=contents.decoded_content.decode("utf-8"), sha=contents.sha)

    async def write_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
    ) -> str:
        """Create or update a file; updates are conditional on ``sha``."""
        log.info("write_file", path=path, branch=branch, update=sha is not None)

        def _write() -> str:
            if sha is None:
                result = self.repository.create_file(
                    path=path,
                    message=message,
                    content=content,
                    branch=branch,
                )
            else:
                result = self.repository.update_file(
                    path=path,
                    message=message,
                    content=content,
                    sha=sha,
                    branch=branch,
                )
            return result["commit"].sha

        try:
            return await _run_sync(_write)

        except GithubException as e:
            log.error("github_write_file_failed", path=path, branch=branch, error=str(e))
            raise ProviderError(f"Failed to write {path} on {branch}", e.status) from e

    async def open_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequest:
        """Open a pull request."""
        log.info("open_pull_request", title=title, head=head, base=base)

        try:
            gh_pr = await _run_sync(
                lambda: self.repository.create_pull(
                    title=title,
                    body=body,
                    head=head,
                    base=base,
                )
            )
            return self._convert_pull_request(gh_pr)

        except GithubException as e:
            log.error("github_create_pr_failed", head=head, error=str(e))
            raise ProviderError(f"Failed to open pull request from {head}", e.status) from e

    def _convert_pull_request(self, gh_pr: GHPullRequest) -> PullRequest:
        """Convert GitHub PullRequest to our PullRequest model."""
        return PullRequest(
            number=gh_pr.number,
            title=gh_pr.title,
            head=gh_pr.head.ref,
            base=gh_pr.base.ref,
            state=gh_pr.state,
            url=gh_pr.html_url,
        )

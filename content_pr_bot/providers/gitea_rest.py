"""Gitea provider implementation using direct REST API calls."""

import base64
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from content_pr_bot.exceptions import BranchExistsError, ProviderError
from content_pr_bot.models.domain import AbsentFile, Branch, PresentFile, PullRequest, RemoteFile
from content_pr_bot.providers.base import GitProvider
from content_pr_bot.utils.connection_pool import HTTPConnectionPool

log = structlog.get_logger(__name__)

PAGE_SIZE = 50


class GiteaRestProvider(GitProvider):
    """Gitea implementation using direct REST API calls."""

    def __init__(
        self,
        base_url: str,
        token: str,
        owner: str,
        repo: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Gitea provider.

        Args:
            base_url: Gitea base URL (e.g., http://gitea.example.com)
            token: API token
            owner: Repository owner
            repo: Repository name
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_base = f"{self.base_url}/api/v1"
        self.token = token.strip() if token else token
        self.owner = owner
        self.repo = repo
        self.transport = transport
        self._pool: HTTPConnectionPool | None = None

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def connect(self) -> None:
        """Initialize connection pool and verify repository access."""
        self._pool = HTTPConnectionPool(
            base_url=self.api_base,
            headers={
                "Authorization": f"token {self.token}",
                "Content-Type": "application/json",
            },
            transport=self.transport,
        )
        response = await self._request("GET", self.repo_path)
        if response.status_code != 200:
            raise ProviderError(f"Cannot access repository {self.owner}/{self.repo}", response.status_code)
        log.info("gitea_connected", base_url=self.base_url, owner=self.owner, repo=self.repo)

    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, turning transport failures into ProviderError."""
        if self._pool is None:
            raise ProviderError("Gitea provider is not connected")
        try:
            return await self._pool.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log.error("gitea_request_failed", method=method, path=path, error=str(e))
            raise ProviderError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, message: str) -> None:
        if response.is_error:
            log.error("gitea_api_error", status=response.status_code, body=response.text[:500])
            raise ProviderError(message, response.status_code)

    def _contents_path(self, path: str) -> str:
        return f"{self.repo_path}/contents/{quote(path)}"

    async def get_branch_tip(self, branch_name: str) -> str | None:
        """Get the commit SHA of a branch, or None if it does not exist."""
        log.debug("get_branch_tip", branch=branch_name)

        response = await self._request("GET", f"{self.repo_path}/branches/{quote(branch_name, safe='')}")
        if response.status_code == 404:
            log.debug("gitea_branch_not_found", branch=branch_name)
            return None
        self._raise_for_status(response, f"Failed to read branch {branch_name}")

        return response.json()["commit"]["id"]

    async def create_branch(self, branch_name: str, sha: str) -> Branch:
        """Create a branch at the given commit."""
        log.info("create_branch", branch=branch_name, sha=sha)

        response = await self._request(
            "POST",
            f"{self.repo_path}/branches",
            json={
                "new_branch_name": branch_name,
                "old_ref_name": sha,
            },
        )
        if response.status_code == 409:
            raise BranchExistsError(f"Branch {branch_name} already exists", response.status_code)
        self._raise_for_status(response, f"Failed to create branch {branch_name}")

        branch_data = response.json()
        return Branch(name=branch_data["name"], sha=branch_data["commit"]["id"])

    async def delete_branch(self, branch_name: str) -> bool:
        """Delete a branch; False if it was already gone."""
        log.info("delete_branch", branch=branch_name)

        response = await self._request("DELETE", f"{self.repo_path}/branches/{quote(branch_name, safe='')}")
        if response.status_code == 404:
            log.debug("gitea_branch_not_found", branch=branch_name)
            return False
        self._raise_for_status(response, f"Failed to delete branch {branch_name}")
        return True

    async def list_open_pull_requests(self) -> list[PullRequest]:
        """List all open pull requests, following pagination."""
        log.debug("list_open_pull_requests")

        pulls: list[PullRequest] = []
        page = 1
        while True:
            response = await self._request(
                "GET",
                f"{self.repo_path}/pulls",
                params={"state": "open", "page": page, "limit": PAGE_SIZE},
            )
            self._raise_for_status(response, "Failed to list open pull requests")

            batch = response.json()
            pulls.extend(self._parse_pull_request(pr_data) for pr_data in batch)
            if len(batch) < PAGE_SIZE:
                return pulls
            page += 1

    async def close_pull_request(self, pr_number: int) -> None:
        """Close a pull request."""
        log.info("close_pull_request", number=pr_number)

        response = await self._request("PATCH", f"{self.repo_path}/pulls/{pr_number}", json={"state": "closed"})
        self._raise_for_status(response, f"Failed to close pull request #{pr_number}")

    async def get_file(self, path: str, ref: str) -> RemoteFile:
        """Look up a file on a branch."""
        log.debug("get_file", path=path, ref=ref)

        response = await self._request("GET", self._contents_path(path), params={"ref": ref})
        if response.status_code == 404:
            return AbsentFile()
        self._raise_for_status(response, f"Failed to read {path} on {ref}")

        content_data = response.json()
        if isinstance(content_data, list) or content_data.get("type") != "file":
            raise ProviderError(f"Path {path} is a directory, not a file")

        content = base64.b64decode(content_data.get("content") or "").decode("utf-8")
        return PresentFile(content=content, sha=content_data["sha"])

    async def write_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
    ) -> str:
        """Create (POST) or update (PUT, conditional on ``sha``) a file."""
        log.info("write_file", path=path, branch=branch, update=sha is not None)

        data: dict[str, str] = {
            "content": base64.b64encode(content.encode("utf-8")).decode("utf-8"),
            "message": message,
            "branch": branch,
        }

        if sha is None:
            response = await self._request("POST", self._contents_path(path), json=data)
        else:
            data["sha"] = sha
            response = await self._request("PUT", self._contents_path(path), json=data)
        self._raise_for_status(response, f"Failed to write {path} on {branch}")

        return response.json()["commit"]["sha"]

    async def open_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequest:
        """Open a pull request."""
        log.info("open_pull_request", title=title, head=head, base=base)

        response = await self._request(
            "POST",
            f"{self.repo_path}/pulls",
            json={"title": title, "body": body, "head": head, "base": base},
        )
        self._raise_for_status(response, f"Failed to open pull request from {head}")

        return self._parse_pull_request(response.json())

    def _parse_pull_request(self, data: dict[str, Any]) -> PullRequest:
        """Parse pull request data from Gitea REST API response.

        Field mappings:
            - data["number"] -> number (repository-scoped PR number)
            - data["title"] -> title
            - data["head"]["ref"] -> head (source branch name)
            - data["base"]["ref"] -> base (target branch name)
            - data["state"] -> state ("open" or "closed")
            - data["html_url"] -> url (web UI link)
        """
        return PullRequest(
            number=data["number"],
            title=data["title"],
            head=data["head"]["ref"],
            base=data["base"]["ref"],
            state=data.get("state", "open"),
            url=data.get("html_url", ""),
        )

"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime

import pytest

from content_pr_bot.config.settings import ContentSyncSettings
from content_pr_bot.exceptions import BranchExistsError, ProviderError
from content_pr_bot.models.domain import AbsentFile, Branch, ContentItem, PresentFile, PullRequest, RemoteFile
from content_pr_bot.providers.base import GitProvider

FIXED_NOW = datetime(2024, 6, 1, 12, 30, 45, 123000, tzinfo=UTC)


class FakeGitProvider(GitProvider):
    """In-memory repository implementing the provider contract.

    Every branch points at a commit; every commit is a snapshot mapping
    path -> (content, blob sha). Writes create a new commit and move the
    branch, and updates are rejected unless the given sha matches.
    """

    def __init__(self, base_branch: str = "main", files: dict[str, str] | None = None) -> None:
        self._counter = 0
        self.commits: dict[str, dict[str, tuple[str, str]]] = {}
        self.branches: dict[str, str] = {}
        self.pulls: list[PullRequest] = []
        self.calls: list[tuple] = []
        self.writes: list[dict] = []
        self.fail_on: dict[str, ProviderError] = {}
        self.fail_delete_branches: set[str] = set()

        snapshot = {path: (content, self._next("blob")) for path, content in (files or {}).items()}
        base_sha = self._next("commit")
        self.commits[base_sha] = snapshot
        self.branches[base_branch] = base_sha

    def _next(self, kind: str) -> str:
        self._counter += 1
        return f"{kind}-{self._counter}"

    def _check_failure(self, operation: str) -> None:
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def add_pull(self, title: str, head: str, base: str = "main") -> PullRequest:
        number = len(self.pulls) + 1
        pr = PullRequest(number=number, title=title, head=head, base=base, url=f"https://example.test/pull/{number}")
        self.pulls.append(pr)
        if head not in self.branches:
            self.branches[head] = next(iter(self.branches.values()))
        return pr

    def set_file(self, branch: str, path: str, content: str) -> None:
        """Commit a file directly, as if someone else pushed it."""
        snapshot = dict(self.commits[self.branches[branch]])
        snapshot[path] = (content, self._next("blob"))
        commit_sha = self._next("commit")
        self.commits[commit_sha] = snapshot
        self.branches[branch] = commit_sha

    def file_content(self, branch: str, path: str) -> str | None:
        entry = self.commits[self.branches[branch]].get(path)
        return entry[0] if entry else None

    def open_automated(self, marker: str = "[AUTO-PR]") -> list[PullRequest]:
        return [pr for pr in self.pulls if pr.state == "open" and pr.title.startswith(marker)]

    async def get_branch_tip(self, branch_name: str) -> str | None:
        self.calls.append(("get_branch_tip", branch_name))
        self._check_failure("get_branch_tip")
        return self.branches.get(branch_name)

    async def create_branch(self, branch_name: str, sha: str) -> Branch:
        self.calls.append(("create_branch", branch_name, sha))
        self._check_failure("create_branch")
        if branch_name in self.branches:
            raise BranchExistsError(f"Branch {branch_name} already exists", 422)
        self.branches[branch_name] = sha
        return Branch(name=branch_name, sha=sha)

    async def delete_branch(self, branch_name: str) -> bool:
        self.calls.append(("delete_branch", branch_name))
        if branch_name in self.fail_delete_branches:
            raise ProviderError(f"Failed to delete branch {branch_name}", 500)
        return self.branches.pop(branch_name, None) is not None

    async def list_open_pull_requests(self) -> list[PullRequest]:
        self.calls.append(("list_open_pull_requests",))
        self._check_failure("list_open_pull_requests")
        return [pr for pr in self.pulls if pr.state == "open"]

    async def close_pull_request(self, pr_number: int) -> None:
        self.calls.append(("close_pull_request", pr_number))
        self._check_failure("close_pull_request")
        for pr in self.pulls:
            if pr.number == pr_number:
                pr.state = "closed"
                return
        raise ProviderError(f"Pull request #{pr_number} not found", 404)

    async def get_file(self, path: str, ref: str) -> RemoteFile:
        self.calls.append(("get_file", path, ref))
        self._check_failure("get_file")
        if ref not in self.branches:
            raise ProviderError(f"Branch {ref} not found", 404)
        entry = self.commits[self.branches[ref]].get(path)
        if entry is None:
            return AbsentFile()
        return PresentFile(content=entry[0], sha=entry[1])

    async def write_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: str | None = None,
    ) -> str:
        self.calls.append(("write_file", path, branch, message, sha))
        self._check_failure("write_file")
        snapshot = dict(self.commits[self.branches[branch]])
        existing = snapshot.get(path)
        if sha is None and existing is not None:
            raise ProviderError(f"{path} already exists", 422)
        if sha is not None and (existing is None or existing[1] != sha):
            raise ProviderError(f"{path} does not match {sha}", 409)

        snapshot[path] = (content, self._next("blob"))
        commit_sha = self._next("commit")
        self.commits[commit_sha] = snapshot
        self.branches[branch] = commit_sha
        self.writes.append({"path": path, "branch": branch, "message": message, "sha": sha})
        return commit_sha

    async def open_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequest:
        self.calls.append(("open_pull_request", title, head, base))
        self._check_failure("open_pull_request")
        pr = self.add_pull(title=title, head=head, base=base)
        pr.body = body  # type: ignore[attr-defined]
        return pr


@pytest.fixture
def fake_git() -> FakeGitProvider:
    """Empty repository with a main branch."""
    return FakeGitProvider()


@pytest.fixture
def git_factory():
    """Build a repository pre-populated with files on main."""
    return FakeGitProvider


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def sample_items() -> list[ContentItem]:
    """One English and one French item."""
    return [
        ContentItem(path="content/en/hello-world.md", body="---\ntitle: Hello world\n---\n<p>Hi</p>\n"),
        ContentItem(path="content/fr/bonjour-le-monde.md", body="---\ntitle: Bonjour le monde\n---\n<p>Salut</p>\n"),
    ]


@pytest.fixture
def settings_data() -> dict:
    """Complete settings as a nested dict."""
    return {
        "git_provider": {
            "provider_type": "github",
            "api_token": "ghp_test_token",
        },
        "repository": {
            "owner": "test-owner",
            "name": "test-repo",
        },
        "content": {
            "content_path": "packages/website/content",
            "endpoint_en": "https://articles.example.com/en/wp-json/wp/v2/",
            "endpoint_fr": "https://articles.example.com/fr/wp-json/wp/v2/",
        },
    }


@pytest.fixture
def settings(settings_data: dict) -> ContentSyncSettings:
    """Validated settings instance."""
    return ContentSyncSettings(_env_file=None, **settings_data)

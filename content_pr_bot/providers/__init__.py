"""Code-hosting providers for the content repository.

Key Components:
    - GitProvider: Abstract contract used by the sync engine
    - GitHubRestProvider: GitHub / GitHub Enterprise via PyGithub
    - GiteaRestProvider: Gitea / Forgejo REST API v1 via httpx
    - create_git_provider: Pick an implementation from settings

Example:
    >>> from content_pr_bot.providers import create_git_provider
    >>> git = create_git_provider(settings)
    >>> async with git:
    ...     tip = await git.get_branch_tip("main")
"""

from content_pr_bot.providers.base import GitProvider
from content_pr_bot.providers.factory import create_git_provider
from content_pr_bot.providers.gitea_rest import GiteaRestProvider
from content_pr_bot.providers.github_rest import GitHubRestProvider

__all__ = [
    "GitHubRestProvider",
    "GitProvider",
    "GiteaRestProvider",
    "create_git_provider",
]

"""Configuration for content-pr-bot.

Key Components:
    - ContentSyncSettings: Main settings container (YAML file + environment)
    - GitProviderConfig: Code-hosting service and credentials
    - RepositoryConfig: Owner, name and base branch
    - ContentConfig: Content directory prefix and source endpoints
    - PullRequestConfig: Automation marker and branch prefix

Example:
    >>> from content_pr_bot.config import ContentSyncSettings
    >>> settings = ContentSyncSettings.load()
    >>> settings.repository.default_branch
    'main'
"""

from content_pr_bot.config.settings import (
    AUTOMATION_MARKER,
    ContentConfig,
    ContentSyncSettings,
    GitProviderConfig,
    PullRequestConfig,
    RepositoryConfig,
)

__all__ = [
    "AUTOMATION_MARKER",
    "ContentConfig",
    "ContentSyncSettings",
    "GitProviderConfig",
    "PullRequestConfig",
    "RepositoryConfig",
]

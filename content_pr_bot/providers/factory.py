"""Factory for creating Git provider instances based on configuration."""

import structlog

from content_pr_bot.config.settings import ContentSyncSettings
from content_pr_bot.enums import ProviderType
from content_pr_bot.exceptions import ConfigurationError
from content_pr_bot.providers.base import GitProvider
from content_pr_bot.providers.gitea_rest import GiteaRestProvider
from content_pr_bot.providers.github_rest import GitHubRestProvider

log = structlog.get_logger(__name__)


def create_git_provider(settings: ContentSyncSettings) -> GitProvider:
    """Create appropriate Git provider based on configuration.

    Args:
        settings: Settings containing provider configuration

    Returns:
        GitProvider instance (GitHub or Gitea), not yet connected

    Raises:
        ConfigurationError: If provider type is not supported

    Example:
        >>> provider = create_git_provider(ContentSyncSettings.load())
        >>> async with provider:
        ...     prs = await provider.list_open_pull_requests()
    """
    provider_type = settings.git_provider.provider_type

    if provider_type == ProviderType.GITHUB:
        log.info("creating_github_provider", base_url=settings.git_provider.base_url)
        return GitHubRestProvider(
            token=settings.git_provider.api_token.get_secret_value(),
            owner=settings.repository.owner,
            repo=settings.repository.name,
            base_url=settings.git_provider.base_url,
        )

    elif provider_type == ProviderType.GITEA:
        log.info("creating_gitea_provider", base_url=settings.git_provider.base_url)
        return GiteaRestProvider(
            base_url=settings.git_provider.base_url,
            token=settings.git_provider.api_token.get_secret_value(),
            owner=settings.repository.owner,
            repo=settings.repository.name,
        )

    else:
        raise ConfigurationError(f"Unsupported Git provider type: {provider_type}. Supported types: github, gitea")

"""
Configuration system using Pydantic for type-safe settings management.

Settings are loaded once at startup into an immutable value and passed
explicitly to every component. Values come from, in priority order:

1. an optional YAML file (``--config``), with ``${VAR}`` interpolation
2. ``CONTENT_SYNC_*`` environment variables (``__`` separates sections)
3. ``CONTENT_SYNC_*`` entries in a ``.env`` file
4. the flat variable names used by earlier deployments of the bot
   (``GITHUB_TOKEN``, ``GITHUB_OWNER``, ...), from the environment or ``.env``
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from content_pr_bot.enums import ProviderType
from content_pr_bot.exceptions import ConfigurationError

AUTOMATION_MARKER = "[AUTO-PR]"
GITHUB_API_URL = "https://api.github.com"

# Flat variable name -> (section, field)
LEGACY_ENV_VARS: dict[str, tuple[str, str]] = {
    "GITHUB_TOKEN": ("git_provider", "api_token"),
    "GITHUB_OWNER": ("repository", "owner"),
    "GITHUB_REPO": ("repository", "name"),
    "BASE_BRANCH": ("repository", "default_branch"),
    "CONTENT_PATH": ("content", "content_path"),
    "GC_ARTICLES_ENDPOINT_EN": ("content", "endpoint_en"),
    "GC_ARTICLES_ENDPOINT_FR": ("content", "endpoint_fr"),
}


class GitProviderConfig(BaseModel):
    """Code-hosting service configuration (GitHub or Gitea)."""

    model_config = ConfigDict(frozen=True)

    provider_type: ProviderType = Field(default=ProviderType.GITHUB, description="Type of Git provider")
    base_url: str = Field(default=GITHUB_API_URL, description="API base URL of the Git provider")
    api_token: SecretStr = Field(..., description="API token for authentication")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got: {value}")
        return value.rstrip("/")

    @model_validator(mode="after")
    def validate_gitea_url(self) -> GitProviderConfig:
        """Gitea has no public default, so its URL must be given."""
        if self.provider_type == ProviderType.GITEA and self.base_url == GITHUB_API_URL:
            raise ValueError("base_url is required when provider_type='gitea'")
        return self


class RepositoryConfig(BaseModel):
    """Content repository configuration."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="Repository owner/organization")
    name: str = Field(..., min_length=1, description="Repository name")
    default_branch: str = Field(default="main", min_length=1, description="Base branch for new branches and PRs")


class ContentConfig(BaseModel):
    """Where content comes from and where it lands in the repository."""

    model_config = ConfigDict(frozen=True)

    content_path: str = Field(..., description="Base content directory in the repository")
    endpoint_en: str = Field(..., description="GC Articles API base URL for English content")
    endpoint_fr: str = Field(..., description="GC Articles API base URL for French content")

    @field_validator("content_path")
    @classmethod
    def normalize_content_path(cls, value: str) -> str:
        normalized = value.strip().strip("/")
        if not normalized:
            raise ValueError("content_path must not be empty")
        return normalized

    @field_validator("endpoint_en", "endpoint_fr")
    @classmethod
    def normalize_endpoint(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must start with http:// or https://, got: {value}")
        # Endpoints are used as prefixes: "<endpoint>posts"
        return value if value.endswith("/") else f"{value}/"


class PullRequestConfig(BaseModel):
    """Naming of automated branches and pull requests."""

    model_config = ConfigDict(frozen=True)

    title_marker: Literal["[AUTO-PR]"] = Field(
        default=AUTOMATION_MARKER,
        description="Title prefix identifying automated PRs; the only provenance marker",
    )
    branch_prefix: str = Field(default="update-content", min_length=1, description="Prefix for run branches")


class LegacyEnvSettingsSource(PydanticBaseSettingsSource):
    """Reads the flat, unprefixed variable names of earlier deployments."""

    def __init__(self, settings_cls: type[BaseSettings], env_file: str | Path | None) -> None:
        super().__init__(settings_cls)
        self.env_file = env_file

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        values: dict[str, str | None] = {}
        if self.env_file and Path(self.env_file).is_file():
            values.update(dotenv_values(self.env_file))
        values.update(os.environ)

        data: dict[str, Any] = {}
        for env_name, (section, key) in LEGACY_ENV_VARS.items():
            value = values.get(env_name)
            if value:
                data.setdefault(section, {})[key] = value
        return data


class ContentSyncSettings(BaseSettings):
    """Main settings for a content sync run.

    Frozen after validation; components receive it (or one of its sections)
    as a constructor argument and never read the environment themselves.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_SYNC_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    git_provider: GitProviderConfig
    repository: RepositoryConfig
    content: ContentConfig
    pull_request: PullRequestConfig = Field(default_factory=PullRequestConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        env_file = settings_cls.model_config.get("env_file")
        legacy = LegacyEnvSettingsSource(settings_cls, env_file if isinstance(env_file, (str, Path)) else None)
        return init_settings, env_settings, dotenv_settings, legacy, file_secret_settings

    def masked(self) -> dict[str, Any]:
        """Resolved settings with the token hidden, for display."""
        return self.model_dump(mode="json")

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> ContentSyncSettings:
        """Load and validate settings.

        Args:
            config_path: Optional YAML file; environment variables fill in
                anything it leaves out.

        Returns:
            Validated, immutable settings

        Raises:
            ConfigurationError: If the file is unreadable or a required
                setting is missing or invalid
        """
        data: dict[str, Any] = {}
        if config_path is not None:
            data = cls._read_yaml(Path(config_path))

        try:
            return cls(**data)
        except ValidationError as e:
            missing = [".".join(str(part) for part in err["loc"]) for err in e.errors() if err["type"] == "missing"]
            if missing:
                raise ConfigurationError(f"Missing required settings: {', '.join(missing)}") from e
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def _read_yaml(cls, config_file: Path) -> dict[str, Any]:
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_file}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_file}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_file}: {e}") from e

        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")
        return config_dict

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        YAML comment lines are left unchanged.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))

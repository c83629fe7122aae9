"""Custom exception hierarchy for content-pr-bot.

Exception Hierarchy:
    ContentSyncError (base)
    ├── ConfigurationError
    ├── SourceError
    ├── ProviderError
    │   └── BranchExistsError
    └── SyncPhaseError

Expected absences (a file or branch that does not exist) are not exceptions:
providers report them through return values so callers can branch on them
without try/except.

Example Usage:
    >>> from content_pr_bot.exceptions import ConfigurationError
    >>> try:
    ...     settings = ContentSyncSettings.load(path)
    ... except ValidationError as e:
    ...     raise ConfigurationError(f"Invalid configuration: {e}") from e
"""

from content_pr_bot.enums import RunPhase


class ContentSyncError(Exception):
    """Base exception for all content-pr-bot errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(ContentSyncError):
    """Configuration-related errors.

    Raised at startup, before any network call, when a required setting is
    missing or a configuration file cannot be read or parsed.
    """

    pass


class SourceError(ContentSyncError):
    """The content source could not produce the item sequence.

    Examples:
        - Endpoint returned a non-2xx status
        - Payload is not a JSON array of posts
        - Two items resolve to the same repository path
    """

    pass


class ProviderError(ContentSyncError):
    """A code-hosting API call failed.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status returned by the service, when known
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code of the failed call
        """
        self.status_code = status_code
        full_message = message
        if status_code is not None:
            full_message = f"{message} (HTTP {status_code})"
        super().__init__(full_message)


class BranchExistsError(ProviderError):
    """Branch creation failed because the reference already exists."""

    pass


class SyncPhaseError(ContentSyncError):
    """A run aborted during one of its phases.

    Wraps the underlying failure so the top level can report a single
    diagnostic naming the phase.

    Attributes:
        phase: The phase that failed
        message: ``"Error during <phase>: <detail>"``
    """

    def __init__(self, phase: RunPhase, detail: str) -> None:
        """Initialize exception.

        Args:
            phase: Phase in which the run failed
            detail: Description of the underlying failure
        """
        self.phase = phase
        self.detail = detail
        super().__init__(f"Error during {phase.value}: {detail}")

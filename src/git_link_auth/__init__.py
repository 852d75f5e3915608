"""Short-lived git credentials for a linked repository."""

from .auth import CredentialContext, GitAuthError, GitAuthHelper, PlaceholderIntegrityError
from .git import (
    GitCommandManager,
    GitExecutionError,
    GitNotFoundError,
    GitOutput,
    GitWrapperError,
    UnsupportedGitVersionError,
)
from .grant import EmptyTokenError, GrantClient, GrantError
from .retry import RetryHelper
from .settings import SettingsError, SourceSettings
from .source import cleanup, get_source
from .version import MINIMUM_GIT_VERSION, GitVersion

__all__ = [
    "MINIMUM_GIT_VERSION",
    "CredentialContext",
    "EmptyTokenError",
    "GitAuthError",
    "GitAuthHelper",
    "GitCommandManager",
    "GitExecutionError",
    "GitNotFoundError",
    "GitOutput",
    "GitVersion",
    "GitWrapperError",
    "GrantClient",
    "GrantError",
    "PlaceholderIntegrityError",
    "RetryHelper",
    "SettingsError",
    "SourceSettings",
    "UnsupportedGitVersionError",
    "cleanup",
    "get_source",
]

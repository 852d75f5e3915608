"""Caller-facing settings for a provisioning session."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlsplit

DEFAULT_SERVER_URL = "https://github.com"


class SettingsError(ValueError):
    """Raised when a setting is missing or malformed."""


def parse_repository(qualified_repository: str) -> Tuple[str, str]:
    """Split ``owner/repo`` into its two parts."""

    parts = (qualified_repository or "").split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise SettingsError(
            f"Invalid repository '{qualified_repository}'. Expected format {{owner}}/{{repo}}."
        )
    return parts[0], parts[1]


def parse_server_url(server_url: Optional[str]) -> str:
    """Return the server URL, defaulting to github.com, without a trailing slash."""

    url = (server_url or DEFAULT_SERVER_URL).strip().rstrip("/")
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise SettingsError(f"Invalid server URL '{server_url}'")
    return url


@dataclass(frozen=True, repr=False)
class SourceSettings:
    """Settings for configuring or removing linked repository credentials."""

    workspace: Path
    server_url: str = DEFAULT_SERVER_URL
    repository_token: str = ""
    grant_endpoint: str = ""
    caller_owner: str = ""
    caller_repo: str = ""
    linked_owner: str = ""
    linked_repo: str = ""
    linked_token: str = ""
    runner_temp: Optional[Path] = None

    def __repr__(self) -> str:
        return (
            f"SourceSettings(workspace={str(self.workspace)!r}, server_url={self.server_url!r}, "
            f"caller={self.caller_owner}/{self.caller_repo}, "
            f"linked={self.linked_owner}/{self.linked_repo})"
        )

    def require_grant(self) -> None:
        """Raise when the inputs needed for a token exchange are missing."""

        missing = [
            name
            for name, value in (
                ("repository_token", self.repository_token),
                ("grant_endpoint", self.grant_endpoint),
                ("caller_owner", self.caller_owner),
                ("caller_repo", self.caller_repo),
                ("linked_owner", self.linked_owner),
                ("linked_repo", self.linked_repo),
            )
            if not value
        ]
        if missing:
            raise SettingsError(f"Missing required settings: {', '.join(missing)}")

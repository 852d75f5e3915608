"""Entry points that configure or remove linked repository credentials."""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from .auth import GitAuthHelper
from .git import GitCommandManager, GitWrapperError
from .grant import GrantClient
from .settings import SourceSettings

logger = logging.getLogger(__name__)


def exchange_token(settings: SourceSettings, grant_client: Optional[GrantClient] = None) -> SourceSettings:
    """Return ``settings`` with ``linked_token`` filled in from the grant endpoint."""

    if settings.linked_token:
        return settings

    settings.require_grant()
    client = grant_client or GrantClient(settings.grant_endpoint)
    linked_token = client.request_linked_token(
        settings.caller_owner,
        settings.caller_repo,
        settings.repository_token,
        settings.linked_owner,
        settings.linked_repo,
    )
    return dataclasses.replace(settings, linked_token=linked_token)


def get_source(
    settings: SourceSettings,
    *,
    grant_client: Optional[GrantClient] = None,
    git: Optional[GitCommandManager] = None,
) -> GitAuthHelper:
    """Configure credentials for the linked repository in ``settings.workspace``."""

    logger.info("Getting Git version info")
    if git is None:
        git = GitCommandManager.create(settings.workspace)

    logger.info("Setting up auth")
    settings = exchange_token(settings, grant_client)
    auth_helper = GitAuthHelper(git, settings)
    auth_helper.configure_auth()
    return auth_helper


def cleanup(settings: SourceSettings, *, git: Optional[GitCommandManager] = None) -> None:
    """Remove credentials written by :func:`get_source`; failures are only logged."""

    try:
        if git is None:
            git = GitCommandManager.create(settings.workspace)
        GitAuthHelper(git, settings).remove_auth()
    except GitWrapperError as exc:
        logger.warning("Unable to remove git credentials: %s", exc)

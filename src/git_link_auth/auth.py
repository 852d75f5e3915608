"""Install and remove the credential git uses to reach the linked repository."""

from __future__ import annotations

import base64
import logging
import os
import shutil
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union
from urllib.parse import urlsplit

from .git import GitCommandManager
from .log import mark_secret
from .settings import SourceSettings

logger = logging.getLogger(__name__)

PLACEHOLDER_CONFIG_VALUE = "AUTHORIZATION: basic ***"


class GitAuthError(RuntimeError):
    """Raised when git credentials cannot be configured."""


class PlaceholderIntegrityError(GitAuthError):
    """Raised when the placeholder is missing from, or repeated in, a config file."""

    def __init__(self, config_path: Union[str, Path]) -> None:
        super().__init__(f"Unable to replace auth placeholder in {config_path}")
        self.config_path = Path(config_path)


@dataclass(frozen=True)
class CredentialContext:
    """Config keys and values derived from the server URL and delegated token."""

    config_key: str
    config_value: str = field(repr=False)
    placeholder_value: str
    insteadof_key: str
    insteadof_value: str

    @classmethod
    def create(cls, server_url: str, token: str) -> "CredentialContext":
        parts = urlsplit(server_url)
        # "origin" is SCHEME://HOSTNAME[:PORT]
        origin = f"{parts.scheme}://{parts.netloc.split('@')[-1]}"

        basic_credential = base64.b64encode(f"x-access-token:{token}".encode("utf-8")).decode("ascii")
        if token:
            mark_secret(token)
            mark_secret(basic_credential)

        return cls(
            config_key=f"http.{origin}/.extraheader",
            config_value=f"AUTHORIZATION: basic {basic_credential}",
            placeholder_value=PLACEHOLDER_CONFIG_VALUE,
            insteadof_key=f"url.{origin}/.insteadOf",
            insteadof_value=f"git@{parts.hostname}:",
        )


def _real_home() -> Path:
    return Path(os.environ.get("HOME") or Path.home())


class GitAuthHelper:
    """Configure an HTTP extra header carrying the delegated token.

    The real credential is never passed to git on the command line. A
    placeholder is written through ``git config`` and then swapped for the
    real value by editing the config file directly, keeping the secret out of
    process creation audit logs.
    """

    def __init__(self, git: GitCommandManager, settings: SourceSettings) -> None:
        self._git = git
        self._settings = settings
        self.context = CredentialContext.create(settings.server_url, settings.linked_token)
        self.temporary_home_path: Optional[Path] = None

    def configure_auth(self) -> None:
        """Write the credential into the repository's local git config."""

        # Remove possible previous values
        self.remove_auth()

        config_path = Path(self._settings.workspace) / ".git" / "config"
        self._configure_token(config_path, global_config=False)

    def configure_global_auth(self) -> None:
        """Write the credential into a global config inside a temporary ``HOME``."""

        runner_temp = self._settings.runner_temp
        if not runner_temp:
            raise GitAuthError("RUNNER_TEMP is not defined")
        if not Path(runner_temp).is_dir():
            raise GitAuthError(f"RUNNER_TEMP '{runner_temp}' does not exist")

        self.temporary_home_path = Path(runner_temp) / str(uuid.uuid4())
        home_overridden = False
        try:
            self.temporary_home_path.mkdir(parents=True)

            git_config_path = _real_home() / ".gitconfig"
            new_git_config_path = self.temporary_home_path / ".gitconfig"
            if git_config_path.is_file():
                logger.info("Copying '%s' to '%s'", git_config_path, new_git_config_path)
                shutil.copyfile(git_config_path, new_git_config_path)
            else:
                new_git_config_path.write_text("", encoding="utf-8")

            logger.info(
                "Temporarily overriding HOME='%s' before making global git config changes",
                self.temporary_home_path,
            )
            self._git.set_environment_variable("HOME", str(self.temporary_home_path))
            home_overridden = True

            self._configure_token(new_git_config_path, global_config=True)

            # Configure HTTPS instead of SSH
            self._git.try_config_unset(self.context.insteadof_key, True)
            self._git.config(self.context.insteadof_key, self.context.insteadof_value, True)
        except Exception:
            try:
                if home_overridden:
                    logger.info(
                        "Encountered an error when attempting to configure token. Attempting unconfigure."
                    )
                    self._git.try_config_unset(self.context.config_key, True)
            except Exception as cleanup_error:
                logger.debug("Unable to unset '%s': %s", self.context.config_key, cleanup_error)
            finally:
                self._restore_home()
            raise

    def remove_auth(self) -> None:
        self._remove_git_config(self.context.config_key)

    def remove_global_auth(self) -> None:
        """Unset the global credential and discard the temporary ``HOME``."""

        if self.temporary_home_path is not None:
            self._remove_git_config(self.context.config_key, global_config=True)
            self._remove_git_config(self.context.insteadof_key, global_config=True)
        self._restore_home()

    @contextmanager
    def global_auth(self) -> Iterator["GitAuthHelper"]:
        """Keep global credentials configured for the duration of the block."""

        self.configure_global_auth()
        try:
            yield self
        finally:
            self.remove_global_auth()

    def _restore_home(self) -> None:
        logger.debug("Unsetting HOME override")
        self._git.remove_environment_variable("HOME")
        if self.temporary_home_path is not None:
            try:
                shutil.rmtree(self.temporary_home_path)
            except FileNotFoundError:
                pass
            self.temporary_home_path = None

    def _configure_token(self, config_path: Path, global_config: bool) -> None:
        # Configure a placeholder value. This keeps the credential out of process
        # creation audit events, which are commonly logged.
        self._git.config(self.context.config_key, self.context.placeholder_value, global_config)

        self._replace_token_placeholder(config_path)

    def _replace_token_placeholder(self, config_path: Path) -> None:
        try:
            content = config_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise PlaceholderIntegrityError(config_path) from exc
        if content.count(self.context.placeholder_value) != 1:
            raise PlaceholderIntegrityError(config_path)

        content = content.replace(self.context.placeholder_value, self.context.config_value, 1)
        config_path.write_text(content, encoding="utf-8")

    def _remove_git_config(self, config_key: str, global_config: bool = False) -> None:
        if self._git.config_exists(config_key, global_config) and not self._git.try_config_unset(
            config_key, global_config
        ):
            logger.warning("Failed to remove '%s' from the git config", config_key)

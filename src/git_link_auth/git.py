"""Git command manager with a controlled subprocess environment."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Union

from .retry import RetryHelper
from .version import MINIMUM_GIT_VERSION, GitVersion

logger = logging.getLogger(__name__)

USER_AGENT_PRODUCT = "git-link-auth"


class GitWrapperError(RuntimeError):
    """Raised when preparing or executing git commands fails."""


class GitNotFoundError(GitWrapperError):
    """Raised when the git executable cannot be located."""


class UnsupportedGitVersionError(GitWrapperError):
    """Raised when the installed git is unparseable or older than required."""


class GitExecutionError(GitWrapperError):
    """Raised when a git command exits with a non-zero code."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: Optional[str],
        stderr: Optional[str],
    ) -> None:
        message = "git command '{cmd}' failed with exit code {code}".format(
            cmd=" ".join(command),
            code=returncode,
        )
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


@dataclass(frozen=True)
class GitOutput:
    """Exit code and captured stdout of a single git invocation."""

    exit_code: int
    stdout: str


def escape_regexp(value: str) -> str:
    """Escape every character outside ``[a-zA-Z0-9_]`` for ``git config --get-regexp``."""

    return re.sub(r"[^a-zA-Z0-9_]", lambda match: "\\" + match.group(0), value)


def _scope(global_config: bool) -> str:
    return "--global" if global_config else "--local"


class GitCommandManager:
    """Execute the git operations needed to provision credentials.

    Every invocation runs with the parent process environment overlaid by the
    manager's own variables, so callers can redirect ``HOME`` or set a user
    agent without touching ``os.environ``.
    """

    def __init__(
        self,
        working_directory: Optional[Union[str, Path]] = None,
        *,
        git_path: Optional[str] = None,
        retry: Optional[RetryHelper] = None,
    ) -> None:
        self._working_directory = Path(working_directory) if working_directory else None
        self._git_path = git_path or ""
        self._git_env: Dict[str, str] = {
            "GIT_TERMINAL_PROMPT": "0",  # Disable git prompt
            "GCM_INTERACTIVE": "Never",  # Disable prompting for git credential manager
        }
        self._retry = retry or RetryHelper(retry_on=(GitWrapperError,))
        self._version: Optional[GitVersion] = None

    @classmethod
    def create(
        cls,
        working_directory: Optional[Union[str, Path]] = None,
        **kwargs,
    ) -> "GitCommandManager":
        """Return an initialized manager for ``working_directory``."""

        manager = cls(working_directory, **kwargs)
        manager.initialize()
        return manager

    @property
    def git_path(self) -> str:
        return self._git_path

    @property
    def version(self) -> Optional[GitVersion]:
        return self._version

    @property
    def working_directory(self) -> Optional[Path]:
        return self._working_directory

    @property
    def environment(self) -> Dict[str, str]:
        """Return a copy of the environment overlay."""

        return dict(self._git_env)

    def initialize(self) -> None:
        """Locate git, enforce the minimum version and set the user agent."""

        git_path = shutil.which("git")
        if not git_path:
            raise GitNotFoundError("Unable to locate executable file: git")
        self._git_path = git_path

        logger.debug("Getting git version")
        git_version = GitVersion()
        stdout = self.run(["version"]).stdout.strip()
        if "\n" not in stdout:
            git_version = GitVersion.parse(stdout)
        if not git_version.is_valid():
            raise UnsupportedGitVersionError("Unable to determine git version")

        if not git_version.check_minimum(MINIMUM_GIT_VERSION):
            raise UnsupportedGitVersionError(
                f"Minimum required git version is {MINIMUM_GIT_VERSION}. "
                f"Your git ('{self._git_path}') is {git_version}"
            )
        self._version = git_version

        user_agent = f"git/{git_version} ({USER_AGENT_PRODUCT})"
        logger.debug("Set git useragent to: %s", user_agent)
        self._git_env["GIT_HTTP_USER_AGENT"] = user_agent

    def run(self, args: Iterable[str], *, allow_all_exit_codes: bool = False) -> GitOutput:
        """Run git with ``args`` and return its exit code and stdout."""

        command = [self._git_path or "git", *(str(arg) for arg in args)]
        env = dict(os.environ)
        env.update(self._git_env)

        if self._working_directory is not None and not self._working_directory.is_dir():
            raise GitWrapperError(f"Working directory '{self._working_directory}' does not exist")

        logger.debug("Running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                cwd=str(self._working_directory) if self._working_directory else None,
                env=env,
                text=True,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise GitNotFoundError(f"Unable to execute '{command[0]}': {exc}") from exc

        if not allow_all_exit_codes and result.returncode != 0:
            raise GitExecutionError(command, result.returncode, result.stdout, result.stderr)

        return GitOutput(exit_code=result.returncode, stdout=result.stdout or "")

    def config(self, config_key: str, config_value: str, global_config: bool = False) -> None:
        self.run(["config", _scope(global_config), config_key, config_value])

    def config_exists(self, config_key: str, global_config: bool = False) -> bool:
        """Return whether ``config_key`` is set in the selected scope."""

        output = self.run(
            [
                "config",
                _scope(global_config),
                "--name-only",
                "--get-regexp",
                escape_regexp(config_key),
            ],
            allow_all_exit_codes=True,
        )
        return output.exit_code == 0

    def try_config_unset(self, config_key: str, global_config: bool = False) -> bool:
        """Unset every value of ``config_key``, returning whether git succeeded."""

        output = self.run(
            ["config", _scope(global_config), "--unset-all", config_key],
            allow_all_exit_codes=True,
        )
        return output.exit_code == 0

    def get_default_branch(self, repository_url: str) -> str:
        """Return the ref that ``HEAD`` points to on the remote, e.g. ``refs/heads/main``."""

        output = self._retry.execute(
            lambda: self.run(
                ["ls-remote", "--quiet", "--exit-code", "--symref", repository_url, "HEAD"]
            )
        )

        for line in output.stdout.strip().splitlines():
            line = line.strip()
            if line.startswith("ref:") and line.endswith("HEAD"):
                return line[len("ref:"):-len("HEAD")].strip()

        raise GitWrapperError("Unexpected output when retrieving default branch")

    def log1(self) -> str:
        return self.run(["log", "-1"]).stdout

    def lfs_fetch(self, ref: str) -> None:
        self._retry.execute(lambda: self.run(["lfs", "fetch", "origin", ref]))

    def set_environment_variable(self, name: str, value: str) -> None:
        self._git_env[name] = value

    def remove_environment_variable(self, name: str) -> None:
        self._git_env.pop(name, None)

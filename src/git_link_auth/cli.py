"""Command line interface for configuring linked repository credentials."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from .auth import GitAuthError, GitAuthHelper
from .git import GitCommandManager, GitWrapperError
from .grant import GrantError
from .log import setup_logging
from .settings import DEFAULT_SERVER_URL, SettingsError, SourceSettings, parse_repository, parse_server_url
from .source import cleanup as cleanup_source
from .source import exchange_token, get_source

try:  # Optional dependency group.
    import click
except ImportError:  # pragma: no cover - exercised only without the CLI extra.
    click = None  # type: ignore[assignment]

_ERRORS = (GitWrapperError, GitAuthError, GrantError, SettingsError)


def _require_cli_dependencies() -> None:
    if click is None:
        message = (
            "git-link-auth CLI dependencies are not installed. "
            "Install them with 'pip install git-link-auth[cli]'."
        )
        print(message, file=sys.stderr)
        raise SystemExit(1)


if click is not None:
    _CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

    def _common_options(func):
        options = [
            click.option(
                "--workspace",
                "-w",
                type=click.Path(exists=True, file_okay=False, path_type=Path),
                envvar="GITHUB_WORKSPACE",
                required=True,
                help="Path to the repository whose git config receives the credential.",
            ),
            click.option(
                "--server-url",
                default=DEFAULT_SERVER_URL,
                show_default=True,
                envvar="GITHUB_SERVER_URL",
                help="Base URL of the git server.",
            ),
            click.option(
                "--log-level",
                default=None,
                envvar="LOG_LEVEL",
                help="Logging level. Defaults to DEBUG when RUNNER_DEBUG=1, otherwise INFO.",
            ),
        ]
        for option in reversed(options):
            func = option(func)
        return func

    def _grant_options(func):
        options = [
            click.option(
                "--token",
                envvar="INPUT_TOKEN",
                help="Token of the calling repository, sent to the grant endpoint.",
            ),
            click.option(
                "--grant-endpoint",
                envvar="INPUT_GRANT_ENDPOINT",
                help="URL of the endpoint that issues linked repository tokens.",
            ),
            click.option(
                "--linked-repository",
                envvar="INPUT_LINKED_REPOSITORY",
                help="Repository to grant access to, as {owner}/{repo}.",
            ),
            click.option(
                "--repository",
                envvar="GITHUB_REPOSITORY",
                help="Calling repository, as {owner}/{repo}.",
            ),
            click.option(
                "--linked-token",
                envvar="INPUT_LINKED_TOKEN",
                help="Pre-issued linked repository token. Skips the grant request.",
            ),
        ]
        for option in reversed(options):
            func = option(func)
        return func

    def _create_settings(
        workspace: Path,
        server_url: str,
        *,
        token: Optional[str] = None,
        grant_endpoint: Optional[str] = None,
        linked_repository: Optional[str] = None,
        repository: Optional[str] = None,
        linked_token: Optional[str] = None,
        runner_temp: Optional[Path] = None,
    ) -> SourceSettings:
        try:
            caller_owner, caller_repo = parse_repository(repository) if repository else ("", "")
            linked_owner, linked_repo = (
                parse_repository(linked_repository) if linked_repository else ("", "")
            )
            return SourceSettings(
                workspace=workspace,
                server_url=parse_server_url(server_url),
                repository_token=token or "",
                grant_endpoint=grant_endpoint or "",
                caller_owner=caller_owner,
                caller_repo=caller_repo,
                linked_owner=linked_owner,
                linked_repo=linked_repo,
                linked_token=linked_token or "",
                runner_temp=runner_temp,
            )
        except SettingsError as exc:
            raise click.UsageError(str(exc)) from exc

    @click.group(context_settings=_CONTEXT_SETTINGS)
    def _cli() -> None:
        """Provision short-lived credentials for a linked repository."""

    @_cli.command(context_settings=_CONTEXT_SETTINGS)
    @_common_options
    @_grant_options
    def configure(  # type: ignore[misc]
        workspace: Path,
        server_url: str,
        log_level: Optional[str],
        token: Optional[str],
        grant_endpoint: Optional[str],
        linked_repository: Optional[str],
        repository: Optional[str],
        linked_token: Optional[str],
    ) -> None:
        """Exchange the token and write the credential into the local git config."""

        setup_logging(log_level)
        settings = _create_settings(
            workspace,
            server_url,
            token=token,
            grant_endpoint=grant_endpoint,
            linked_repository=linked_repository,
            repository=repository,
            linked_token=linked_token,
        )
        try:
            get_source(settings)
        except _ERRORS as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo("Credentials configured.")

    @_cli.command(context_settings=_CONTEXT_SETTINGS)
    @_common_options
    def cleanup(  # type: ignore[misc]
        workspace: Path,
        server_url: str,
        log_level: Optional[str],
    ) -> None:
        """Remove the credential from the local git config."""

        setup_logging(log_level)
        cleanup_source(_create_settings(workspace, server_url))
        click.echo("Credentials removed.")

    @_cli.command("default-branch", context_settings=_CONTEXT_SETTINGS)
    @_common_options
    @_grant_options
    @click.argument("repository_url")
    @click.option(
        "--runner-temp",
        type=click.Path(file_okay=False, path_type=Path),
        envvar="RUNNER_TEMP",
        help="Scratch directory that holds the temporary HOME.",
    )
    def default_branch(  # type: ignore[misc]
        repository_url: str,
        runner_temp: Optional[Path],
        workspace: Path,
        server_url: str,
        log_level: Optional[str],
        token: Optional[str],
        grant_endpoint: Optional[str],
        linked_repository: Optional[str],
        repository: Optional[str],
        linked_token: Optional[str],
    ) -> None:
        """Print the default branch of REPOSITORY_URL using sandboxed global credentials."""

        setup_logging(log_level)
        settings = _create_settings(
            workspace,
            server_url,
            token=token,
            grant_endpoint=grant_endpoint,
            linked_repository=linked_repository,
            repository=repository,
            linked_token=linked_token,
            runner_temp=runner_temp,
        )
        try:
            git = GitCommandManager.create(settings.workspace)
            settings = exchange_token(settings)
            with GitAuthHelper(git, settings).global_auth():
                branch = git.get_default_branch(repository_url)
        except _ERRORS as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(branch)
else:
    _cli = None


def main() -> None:
    """Entry-point used by console_scripts."""

    _require_cli_dependencies()
    assert _cli is not None  # For type-checkers.
    _cli()


__all__ = ["main"]

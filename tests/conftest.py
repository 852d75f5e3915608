from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from git_link_auth.git import GitExecutionError
from git_link_auth.log import secret_masker
from git_link_auth.settings import SourceSettings


class FakeGit:
    """Stand-in for ``GitCommandManager`` that stores config as ``key=value`` lines."""

    def __init__(self, workspace: Path, home: Path) -> None:
        self.workspace = workspace
        self.home = home
        self._env: Dict[str, str] = {}
        self.calls: List[tuple] = []
        self.fail_on_config: Optional[str] = None
        self.snapshots: List[str] = []

    @property
    def environment(self) -> Dict[str, str]:
        return dict(self._env)

    def set_environment_variable(self, name: str, value: str) -> None:
        self._env[name] = value

    def remove_environment_variable(self, name: str) -> None:
        self._env.pop(name, None)

    def config_path(self, global_config: bool) -> Path:
        if global_config:
            return Path(self._env.get("HOME", str(self.home))) / ".gitconfig"
        return self.workspace / ".git" / "config"

    def _lines(self, global_config: bool) -> List[str]:
        path = self.config_path(global_config)
        if not path.exists():
            return []
        return path.read_text(encoding="utf-8").splitlines()

    def _write(self, global_config: bool, lines: List[str]) -> None:
        path = self.config_path(global_config)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")

    def config(self, config_key: str, config_value: str, global_config: bool = False) -> None:
        self.calls.append(("config", config_key, config_value, global_config))
        if self.fail_on_config == config_key:
            raise GitExecutionError(["git", "config", config_key], 255, "", "simulated failure")
        lines = [line for line in self._lines(global_config) if not line.startswith(f"{config_key}=")]
        lines.append(f"{config_key}={config_value}")
        self._write(global_config, lines)
        self.snapshots.append(self.config_path(global_config).read_text(encoding="utf-8"))

    def config_exists(self, config_key: str, global_config: bool = False) -> bool:
        self.calls.append(("config_exists", config_key, global_config))
        return any(line.startswith(f"{config_key}=") for line in self._lines(global_config))

    def try_config_unset(self, config_key: str, global_config: bool = False) -> bool:
        self.calls.append(("unset", config_key, global_config))
        lines = self._lines(global_config)
        remaining = [line for line in lines if not line.startswith(f"{config_key}=")]
        if len(remaining) == len(lines):
            return False
        self._write(global_config, remaining)
        return True

    def get_value(self, config_key: str, global_config: bool = False) -> Optional[str]:
        for line in self._lines(global_config):
            if line.startswith(f"{config_key}="):
                return line[len(config_key) + 1:]
        return None


@pytest.fixture(autouse=True)
def _clear_secrets():
    secret_masker.clear()
    yield
    secret_masker.clear()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("git_link_auth")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    path = tmp_path / "workspace"
    (path / ".git").mkdir(parents=True)
    (path / ".git" / "config").write_text("[core]\n", encoding="utf-8")
    return path


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    monkeypatch.setenv("HOME", str(path))
    return path


@pytest.fixture
def runner_temp(tmp_path: Path) -> Path:
    path = tmp_path / "runner_temp"
    path.mkdir()
    return path


@pytest.fixture
def settings(workspace: Path, runner_temp: Path) -> SourceSettings:
    return SourceSettings(
        workspace=workspace,
        server_url="https://github.com",
        repository_token="caller-token",
        grant_endpoint="https://grant.example.com/api",
        caller_owner="octo",
        caller_repo="app",
        linked_owner="octo",
        linked_repo="library",
        linked_token="linked-secret-token",
        runner_temp=runner_temp,
    )


@pytest.fixture
def fake_git(workspace: Path, home: Path) -> FakeGit:
    return FakeGit(workspace, home)

"""Global pytest configuration and throwaway git repository fixtures."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest


def pytest_sessionstart(session):  # noqa: ARG001
    # Keep the developer's global git config (hooks, signing, templates) out of test repos.
    os.environ["GIT_CONFIG_NOSYSTEM"] = "1"
    os.environ.setdefault("GIT_CONFIG_GLOBAL", os.devnull)

    # Env overrides would leak into every load_config() call.
    for name in list(os.environ):
        if name.startswith("STAGEHAND_"):
            del os.environ[name]


def _git(repo: Path, *args: str) -> str:
    res = subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return res.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a git repository whose .gitignore covers the scratch directory."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo_path = tmp_path / "repo"
    repo_path.mkdir()

    _git(repo_path, "init")
    _git(repo_path, "config", "user.email", "test@example.com")
    _git(repo_path, "config", "user.name", "Test User")
    _git(repo_path, "config", "commit.gpgsign", "false")

    (repo_path / ".gitignore").write_text(".stagehand\n")
    _git(repo_path, "add", ".gitignore")
    _git(repo_path, "commit", "-m", "Initial commit")

    return repo_path


@pytest.fixture
def git(git_repo: Path):
    """Run git in the test repository and return its stdout."""

    def run(*args: str) -> str:
        return _git(git_repo, *args)

    return run


@pytest.fixture
def commit_empty_files(git_repo: Path, git):
    """Commit empty files named by `pattern % i` for i in 1..count."""

    def commit(pattern: str, count: int) -> list[Path]:
        paths = []
        for i in range(1, count + 1):
            path = git_repo / (pattern % i)
            path.write_text("")
            paths.append(path)
        git("add", *[p.name for p in paths])
        git("commit", "-m", f"Add {count} empty files")
        return paths

    return commit

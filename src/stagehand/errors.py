"""Exception types raised by stagehand."""

from __future__ import annotations

from typing import Any


class StagehandError(RuntimeError):
    """Base class for errors surfaced to the caller."""


class ConfigurationError(StagehandError):
    """Backup-and-restore preconditions or configuration are invalid."""


class GitCommandError(StagehandError):
    """A git subprocess exited with a non-zero code."""

    def __init__(self, command: list[str], exit_code: int, stderr: str) -> None:
        super().__init__(
            f"Command {' '.join(command)} exited with code {exit_code} and error {stderr}."
        )
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr


class PatchConflictError(GitCommandError):
    """The unstaged patch did not apply, not even with a 3-way merge."""


class SnapshotNotFoundError(StagehandError):
    """No stash entry carries the expected backup message."""


class TaskFailedError(StagehandError):
    """A task run under a staging session failed."""

    def __init__(self, message: str, results: list[Any] | None = None) -> None:
        super().__init__(message)
        self.results = results or []

"""Core data types for stagehand."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class Snapshot:
    """The backup taken before tasks run against the staged files."""

    staged_files: tuple[Path, ...]
    stash_message: str
    unstaged_patch_file: Path  # Unstaged edits to tracked files
    untracked_patch_file: Path  # Content of untracked files


@dataclass(frozen=True)
class MergeStatus:
    """Raw content of the merge marker files, if a merge was in progress."""

    merge_head: str | None = None
    merge_mode: str | None = None
    merge_msg: str | None = None

    @property
    def in_progress(self) -> bool:
        return any(v is not None for v in (self.merge_head, self.merge_mode, self.merge_msg))


class ApplyOutcome(Enum):
    """Result of one `git apply` attempt."""

    APPLIED = "applied"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class TaskResult:
    """Result of one task command."""

    name: str
    argv: list[str]
    exit_code: int
    stdout: str
    stderr: str
    duration_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class RunResult:
    """Outcome of a staging run that did not fail.

    Failed runs restore the working copy and re-raise instead.
    """

    status: str  # "success", "skipped"
    run_id: str
    staged_files: list[Path] = field(default_factory=list)
    restaged_files: list[Path] = field(default_factory=list)
    output: Any = None  # Whatever the task returned

    def __post_init__(self) -> None:
        valid_statuses = {"success", "skipped"}
        if self.status not in valid_statuses:
            raise ValueError(
                f"Invalid status: {self.status}. Must be one of {valid_statuses}"
            )

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

"""Which files are staged, modified or deleted."""

from __future__ import annotations

from pathlib import Path

from ..vcs.git_ops import Git


def get_staged_files(git: Git) -> list[Path]:
    """Absolute paths of files staged as added, copied, modified or renamed.

    Staged deletions are left out: tasks cannot modify a deleted file, so it
    never needs re-staging.
    """
    return git.names("diff", "--staged", "--diff-filter=ACMR", "--name-only", "-z")


def is_staging_empty(git: Git) -> bool:
    return not get_staged_files(git)


def get_deleted_files(git: Git) -> list[Path]:
    """Tracked files missing from the working tree."""
    return git.ls_files("--deleted")


def get_modified_files(git: Git) -> list[Path]:
    return git.ls_files("--modified")

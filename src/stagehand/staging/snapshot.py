"""Backup of the working copy taken before tasks run.

The backup is a stash created with ``--include-untracked --keep-index``. Its
third parent holds only untracked files, which lets the unstaged edits to
tracked files and the untracked content be exported as two separate patches.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import ConfigurationError, SnapshotNotFoundError
from ..types import Snapshot
from ..vcs import files
from ..vcs.git_ops import Git
from .merge_status import MergeStatusPreserver
from .resolver import get_deleted_files, get_staged_files

logger = logging.getLogger(__name__)

DEFAULT_STASH_MESSAGE = "stagehand backup"
UNSTAGED_PATCH_FILE_NAME = "stagehand_unstaged.patch"
UNTRACKED_PATCH_FILE_NAME = "stagehand_untracked.patch"

# Shared by `git diff` and `git show` when exporting the snapshot.
PATCH_OPTIONS = ("--binary", "--unified=0", "--no-color", "--no-ext-diff", "--patch")


class SnapshotManager:
    """Creates, locates and drops the backup stash and its patch files."""

    def __init__(
        self,
        git: Git,
        scratch_dir: str = ".stagehand",
        stash_message: str = DEFAULT_STASH_MESSAGE,
        unstaged_patch_name: str = UNSTAGED_PATCH_FILE_NAME,
        untracked_patch_name: str = UNTRACKED_PATCH_FILE_NAME,
    ) -> None:
        self.git = git
        self.scratch_dir = scratch_dir
        self.stash_message = stash_message
        self.unstaged_patch_name = unstaged_patch_name
        self.untracked_patch_name = untracked_patch_name
        self.merge_status = MergeStatusPreserver(git)

    def is_scratch_directory_ignored(self) -> bool:
        scratch = self.scratch_dir.rstrip("/")
        directory = self.git.top_level_directory / scratch
        created = [p for p in (directory, *directory.parents) if not p.exists()]
        # Directory-only patterns (`dir/`) match only once git can see a
        # directory. An empty directory never shows up in git status.
        directory.mkdir(parents=True, exist_ok=True)
        ignored = self.git.is_ignored(scratch)
        if not ignored:
            # Leave no trace of a directory the check itself created.
            for path in created:
                path.rmdir()
        return ignored

    def check_scratch_directory(self) -> None:
        if not self.is_scratch_directory_ignored():
            # Restoring would try to overwrite files under the scratch directory,
            # which a running process may hold open.
            raise ConfigurationError(
                f"Please add the {self.scratch_dir} directory to the .gitignore file."
            )

    def save_snapshot(self) -> Snapshot:
        self.check_scratch_directory()

        common_dir = self.git.common_directory

        staged_files = get_staged_files(self.git)
        deleted_files = get_deleted_files(self.git)

        stash_message = self.save_snapshot_stash()

        # `git stash` resets to HEAD and index, which brings back files that
        # were only deleted in the working tree.
        files.delete_files(deleted_files)

        stash_name = self.find_stash_name(stash_message)

        unstaged_patch_file = common_dir / self.unstaged_patch_name
        self.git.git(
            "diff",
            *PATCH_OPTIONS,
            f"--output={unstaged_patch_file}",
            stash_name,
            "-R",
        )

        untracked_patch_file = common_dir / self.untracked_patch_name
        self.write_untracked_patch(stash_name, untracked_patch_file)

        logger.info(
            "saved snapshot %s with %d staged file(s)", stash_name, len(staged_files)
        )
        return Snapshot(
            staged_files=tuple(staged_files),
            stash_message=stash_message,
            unstaged_patch_file=unstaged_patch_file,
            untracked_patch_file=untracked_patch_file,
        )

    def save_snapshot_stash(self) -> str:
        with self.merge_status.preserved():
            self.git.stash(
                "push",
                "--include-untracked",
                "--keep-index",
                f"--message={self.stash_message}",
            )
        return self.stash_message

    def write_untracked_patch(self, stash_name: str, patch_file: Path) -> None:
        untracked_parent = f"{stash_name}^3"
        # The untracked parent only exists when there were untracked files.
        if not self.git.run_raw("rev-parse", "--verify", "--quiet", untracked_parent).success:
            files.write_text(patch_file, "")
            return
        self.git.git(
            "show",
            *PATCH_OPTIONS,
            "--format=%b",
            f"--output={patch_file}",
            untracked_parent,
        )

    def find_stash_name(self, stash_message: str) -> str:
        """Return `stash@{N}` for the first stash entry mentioning the message."""
        stash_list = self.git.stash("list").split("\n")
        matches = [i for i, line in enumerate(stash_list) if stash_message in line]
        if not matches:
            raise SnapshotNotFoundError(f'Did not find a stash with message "{stash_message}".')
        if len(matches) > 1:
            logger.warning(
                "found %d stashes with message %r; using stash@{%d}",
                len(matches),
                stash_message,
                matches[0],
            )
        return f"stash@{{{matches[0]}}}"

    def delete_snapshot(self, snapshot: Snapshot) -> None:
        files.delete_if_exists(snapshot.unstaged_patch_file)
        files.delete_if_exists(snapshot.untracked_patch_file)
        stash_name = self.find_stash_name(snapshot.stash_message)
        self.git.stash("drop", "--quiet", stash_name)
        logger.info("dropped snapshot %s", stash_name)

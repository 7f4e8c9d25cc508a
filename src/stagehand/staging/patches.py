"""Re-apply the developer's unstaged and untracked edits after tasks ran."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import PatchConflictError
from ..types import ApplyOutcome
from ..vcs import files
from ..vcs.git_ops import Git

logger = logging.getLogger(__name__)

APPLY_OPTIONS = ("-v", "--whitespace=nowarn", "--recount", "--unidiff-zero")


class PatchApplier:
    def __init__(self, git: Git) -> None:
        self.git = git
        self.last_stderr = ""

    def apply_unstaged_patch(self, patch_file: Path, three_way: bool = False) -> ApplyOutcome:
        """Try one `git apply` of the unstaged patch."""
        if files.is_file_empty(patch_file):
            return ApplyOutcome.APPLIED

        args = [*APPLY_OPTIONS]
        if three_way:
            args.append("--3way")
        args.append(str(patch_file))

        res = self.git.run_raw("apply", *args)
        if res.success:
            return ApplyOutcome.APPLIED
        self.last_stderr = res.stderr.strip()
        logger.debug("git apply%s failed: %s", " --3way" if three_way else "", self.last_stderr)
        return ApplyOutcome.CONFLICT

    def merge_unstaged_patch(self, patch_file: Path) -> None:
        """Apply 2-way, then 3-way against the blobs recorded in the stash."""
        if self.apply_unstaged_patch(patch_file, three_way=False) is ApplyOutcome.APPLIED:
            return
        logger.info("unstaged patch did not apply cleanly, retrying with --3way")
        if self.apply_unstaged_patch(patch_file, three_way=True) is ApplyOutcome.APPLIED:
            return
        raise PatchConflictError(
            [self.git.executable, "apply", *APPLY_OPTIONS, "--3way", str(patch_file)],
            1,
            self.last_stderr,
        )

    def merge_untracked_patch(self, patch_file: Path) -> None:
        # Untracked files cannot conflict with task edits to tracked files.
        if files.is_trimmed_file_empty(patch_file):
            return
        self.git.git("apply", *APPLY_OPTIONS, str(patch_file))

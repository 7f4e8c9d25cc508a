"""Add task edits back to the index for files that were staged."""

from __future__ import annotations

import logging
from pathlib import Path

from ..platform import max_command_length as platform_max_command_length
from ..vcs.git_ops import Git
from .resolver import get_modified_files

logger = logging.getLogger(__name__)


def divide_ceil(dividend: int, divisor: int) -> int:
    return (dividend + divisor - 1) // divisor


def plan_batches(paths: list[str], max_command_length: int) -> list[list[str]]:
    """Split paths into contiguous `git add` batches.

    The number of batches is estimated from the joined length of all paths
    and each batch gets `len(paths) // n` paths, so the final, shorter batch
    can push the count one past the estimate.
    """
    if not paths:
        return []
    approx_len = len(" ".join(paths))
    num_chunks = min(divide_ceil(approx_len, max_command_length), len(paths))
    size = len(paths) // max(num_chunks, 1)
    return [paths[i : i + size] for i in range(0, len(paths), size)]


class ReStager:
    def __init__(self, git: Git, max_command_length: int | None = None) -> None:
        self.git = git
        self.max_command_length = max_command_length or platform_max_command_length()

    def stage_modifications(self, originally_staged: tuple[Path, ...] | list[Path]) -> list[Path]:
        """Add modified files that were part of the original staging.

        Tasks may touch more files than were staged; those edits stay
        unstaged. Returns the paths that were added.
        """
        modified = get_modified_files(self.git)
        if not modified:
            return []

        modified_set = set(modified)
        to_add = [p for p in originally_staged if p in modified_set]
        if not to_add:
            return []

        batches = plan_batches([str(p) for p in to_add], self.max_command_length)
        for batch in batches:
            self.git.git("add", "--", *batch)
        logger.info("re-staged %d file(s) in %d batch(es)", len(to_add), len(batches))
        return to_add

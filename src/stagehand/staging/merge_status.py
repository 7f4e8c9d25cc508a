"""Keep an in-progress merge alive across `git stash` and `git reset`.

Both commands clear MERGE_HEAD, MERGE_MODE and MERGE_MSG as a side effect.
The files are read and rewritten verbatim, never parsed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ..types import MergeStatus
from ..vcs import files
from ..vcs.git_ops import Git

logger = logging.getLogger(__name__)

MERGE_HEAD = "MERGE_HEAD"
MERGE_MODE = "MERGE_MODE"
MERGE_MSG = "MERGE_MSG"


class MergeStatusPreserver:
    def __init__(self, git: Git) -> None:
        self.git = git

    def save_merge_status(self) -> MergeStatus:
        common_dir = self.git.common_directory

        def _read(name: str) -> str | None:
            path = common_dir / name
            return files.read_text(path) if path.exists() else None

        return MergeStatus(
            merge_head=_read(MERGE_HEAD),
            merge_mode=_read(MERGE_MODE),
            merge_msg=_read(MERGE_MSG),
        )

    def restore_merge_status(self, status: MergeStatus) -> None:
        common_dir = self.git.common_directory
        for name, content in (
            (MERGE_HEAD, status.merge_head),
            (MERGE_MODE, status.merge_mode),
            (MERGE_MSG, status.merge_msg),
        ):
            if content is not None:
                files.write_text(common_dir / name, content)
        if status.in_progress:
            logger.debug("restored merge status in %s", common_dir)

    @contextmanager
    def preserved(self) -> Iterator[MergeStatus]:
        """Save the merge status on entry and rewrite it on exit."""
        status = self.save_merge_status()
        try:
            yield status
        finally:
            self.restore_merge_status(status)

"""Sequence a staging run: save, run tasks, apply or restore, delete.

On success the task edits to staged files go into the index and the
developer's unstaged and untracked edits are laid back on top. On failure the
working copy and index are reset to exactly what they were before the run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..config import StagehandConfig
from ..telemetry import TelemetrySink, disabled_sink
from ..types import RunResult, Snapshot
from ..vcs import files
from ..vcs.git_ops import Git
from .patches import PatchApplier
from .resolver import is_staging_empty
from .restage import ReStager
from .snapshot import SnapshotManager

logger = logging.getLogger(__name__)


class StagingSession:
    """One snapshot/restore cycle against a repository.

    Only one session may be in flight per repository.
    """

    def __init__(
        self,
        git: Git,
        snapshots: SnapshotManager,
        restager: ReStager,
        patches: PatchApplier,
        telemetry: TelemetrySink | None = None,
        run_id: str | None = None,
    ) -> None:
        self.git = git
        self.snapshots = snapshots
        self.restager = restager
        self.patches = patches
        self.telemetry = telemetry or disabled_sink()
        self.run_id = run_id or uuid.uuid4().hex[:12]

    @classmethod
    def from_config(
        cls,
        repo_path: Path | str,
        config: StagehandConfig | None = None,
        run_id: str | None = None,
    ) -> StagingSession:
        config = config or StagehandConfig()
        git = Git(repo_path)
        snapshots = SnapshotManager(
            git,
            scratch_dir=config.scratch_dir,
            stash_message=config.staging.stash_message,
            unstaged_patch_name=config.staging.unstaged_patch_name,
            untracked_patch_name=config.staging.untracked_patch_name,
        )
        telemetry = TelemetrySink(
            enabled=config.telemetry.enabled,
            path=Path(repo_path) / config.telemetry.log_path,
        )
        return cls(
            git,
            snapshots,
            ReStager(git, config.staging.resolved_max_command_length()),
            PatchApplier(git),
            telemetry=telemetry,
            run_id=run_id,
        )

    def save(self) -> Snapshot:
        snapshot = self.snapshots.save_snapshot()
        self.telemetry.log(
            self.run_id,
            "snapshot_saved",
            {"staged_files": len(snapshot.staged_files)},
        )
        return snapshot

    def apply_modifications(self, snapshot: Snapshot) -> list[Path]:
        restaged = self.restager.stage_modifications(snapshot.staged_files)

        # A clean status alone does not mean nothing is left to merge back: a
        # task can revert a staged file to HEAD while the stash still holds edits.
        if self.git.status().is_empty and self._patches_empty(snapshot):
            self.telemetry.log(self.run_id, "modifications_applied", {"restaged": len(restaged)})
            return restaged

        self.patches.merge_unstaged_patch(snapshot.unstaged_patch_file)
        self.patches.merge_untracked_patch(snapshot.untracked_patch_file)
        self.telemetry.log(self.run_id, "modifications_applied", {"restaged": len(restaged)})
        return restaged

    @staticmethod
    def _patches_empty(snapshot: Snapshot) -> bool:
        return files.is_trimmed_file_empty(snapshot.unstaged_patch_file) and files.is_trimmed_file_empty(
            snapshot.untracked_patch_file
        )

    def restore_snapshot(self, snapshot: Snapshot) -> None:
        with self.snapshots.merge_status.preserved():
            self.git.git("reset", "--hard", "HEAD")
            stash_name = self.snapshots.find_stash_name(snapshot.stash_message)
            self.git.stash("apply", "--quiet", "--index", stash_name)
        logger.info("restored snapshot %s", stash_name)
        self.telemetry.log(self.run_id, "snapshot_restored", {"stash": stash_name})

    def delete_snapshot(self, snapshot: Snapshot) -> None:
        self.snapshots.delete_snapshot(snapshot)
        self.telemetry.log(self.run_id, "snapshot_deleted", {})

    def finish(self, snapshot: Snapshot, succeeded: bool) -> list[Path]:
        """Apply or restore, then delete the snapshot.

        If applying fails, the snapshot is restored before the error is
        re-raised. If restoring fails, the stash is left in place so the
        working copy can be recovered by hand.
        """
        restaged: list[Path] = []
        if succeeded:
            try:
                restaged = self.apply_modifications(snapshot)
            except Exception:
                logger.error("applying modifications failed, restoring snapshot")
                self._restore_or_keep(snapshot)
                self.delete_snapshot(snapshot)
                raise
        else:
            self._restore_or_keep(snapshot)

        self.delete_snapshot(snapshot)
        return restaged

    def _restore_or_keep(self, snapshot: Snapshot) -> None:
        try:
            self.restore_snapshot(snapshot)
        except Exception:
            logger.error(
                "restoring snapshot failed; the backup is kept as the stash %r",
                snapshot.stash_message,
            )
            raise

    def run(self, task: Callable[[Snapshot], Any]) -> RunResult:
        """Run `task` against the staged files only.

        The task signals failure by raising; its return value, falsy or not,
        is passed through as `RunResult.output`. On failure the working copy is
        restored and the exception re-raised.
        """
        if is_staging_empty(self.git):
            logger.warning("Not running any tasks because the staging area is empty.")
            return RunResult(status="skipped", run_id=self.run_id)

        # Telemetry lives in the scratch directory; nothing may be written
        # there before it is known to be ignored.
        self.snapshots.check_scratch_directory()
        self.telemetry.log(self.run_id, "run_started", {})

        try:
            snapshot = self.save()
        except Exception as e:
            self._log_completed("failed", e)
            raise

        try:
            output = task(snapshot)
        except BaseException as e:
            try:
                self.finish(snapshot, succeeded=False)
            finally:
                self._log_completed("failed", e)
            raise

        try:
            restaged = self.finish(snapshot, succeeded=True)
        except Exception as e:
            self._log_completed("failed", e)
            raise

        self._log_completed("success")
        return RunResult(
            status="success",
            run_id=self.run_id,
            staged_files=list(snapshot.staged_files),
            restaged_files=restaged,
            output=output,
        )

    def _log_completed(self, status: str, error: BaseException | None = None) -> None:
        data: dict[str, Any] = {"status": status}
        if error is not None:
            data["error"] = str(error) or type(error).__name__
        self.telemetry.log(self.run_id, "run_completed", data)

"""Unit tests for preserving merge markers."""

import pytest

from stagehand.staging.merge_status import MergeStatusPreserver
from stagehand.types import MergeStatus
from stagehand.vcs.git_ops import Git


def test_no_merge_in_progress(git_repo):
    status = MergeStatusPreserver(Git(git_repo)).save_merge_status()

    assert status == MergeStatus()
    assert not status.in_progress


def test_round_trips_marker_content_verbatim(git_repo, git):
    git_dir = git_repo / ".git"
    head = git("rev-parse", "HEAD")
    (git_dir / "MERGE_HEAD").write_text(head)
    (git_dir / "MERGE_MSG").write_bytes(b"Merge branch 'feature'\r\n\n# Conflicts:\n")

    preserver = MergeStatusPreserver(Git(git_repo))
    status = preserver.save_merge_status()

    assert status.in_progress
    assert status.merge_head == head
    assert status.merge_mode is None

    (git_dir / "MERGE_HEAD").unlink()
    (git_dir / "MERGE_MSG").unlink()
    preserver.restore_merge_status(status)

    assert (git_dir / "MERGE_HEAD").read_text() == head
    assert (git_dir / "MERGE_MSG").read_bytes() == b"Merge branch 'feature'\r\n\n# Conflicts:\n"
    assert not (git_dir / "MERGE_MODE").exists()


def test_preserved_restores_after_error(git_repo):
    git_dir = git_repo / ".git"
    (git_dir / "MERGE_MODE").write_text("no-ff")

    preserver = MergeStatusPreserver(Git(git_repo))
    with pytest.raises(RuntimeError):
        with preserver.preserved():
            (git_dir / "MERGE_MODE").unlink()
            raise RuntimeError("boom")

    assert (git_dir / "MERGE_MODE").read_text() == "no-ff"

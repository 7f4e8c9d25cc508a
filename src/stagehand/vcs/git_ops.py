"""Git command runner and porcelain parsing.

Every call is a blocking ``subprocess.run`` with captured output and no
timeout. ``Git.git`` raises ``GitCommandError`` on a non-zero exit; callers
that need to branch on the exit code use ``Git.run_raw``.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path

from ..errors import GitCommandError

logger = logging.getLogger(__name__)


@dataclass
class GitResult:
    """Result of a git command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class GitStatusLine:
    """One entry of `git status --porcelain`."""

    index_status: str
    working_tree_status: str
    path: str  # Relative to the repository root

    @classmethod
    def parse(cls, entry: str) -> GitStatusLine:
        return cls(index_status=entry[0], working_tree_status=entry[1], path=entry[3:])

    @property
    def is_ignored(self) -> bool:
        return self.index_status == "!" and self.working_tree_status == "!"

    @property
    def is_untracked(self) -> bool:
        return self.index_status == "?" and self.working_tree_status == "?"


@dataclass(frozen=True)
class GitStatus:
    lines: tuple[GitStatusLine, ...]

    def find_by_path(self, rel_path: str) -> GitStatusLine | None:
        wanted = rel_path.rstrip("/")
        return next((ln for ln in self.lines if ln.path.rstrip("/") == wanted), None)

    @property
    def is_empty(self) -> bool:
        return not self.lines


def parse_status_z(output: str) -> GitStatus:
    """Parse `git status --porcelain -z` output.

    Renames and copies carry the original path as an extra NUL-separated
    field after the new path; it is skipped.
    """
    entries = output.split("\0")
    lines: list[GitStatusLine] = []
    i = 0
    while i < len(entries):
        entry = entries[i]
        if len(entry) < 4:
            i += 1
            continue
        line = GitStatusLine.parse(entry)
        lines.append(line)
        i += 2 if line.index_status in ("R", "C") else 1
    return GitStatus(tuple(lines))


class Git:
    """Runs git commands against one repository.

    The top-level and common directories do not change for a repository and
    are cached after the first lookup.
    """

    def __init__(self, repo_path: Path | str, executable: str = "git") -> None:
        self.repo_path = Path(repo_path)
        self.executable = executable

    def run_raw(self, *args: str) -> GitResult:
        cmd = [self.executable, *args]
        logger.debug("running %s", " ".join(cmd))
        res = subprocess.run(
            cmd,
            cwd=str(self.repo_path),
            capture_output=True,
            text=True,
        )
        return GitResult(returncode=res.returncode, stdout=res.stdout, stderr=res.stderr)

    def git(self, *args: str) -> str:
        """Run git and return stdout without trailing newlines."""
        res = self.run_raw(*args)
        if not res.success:
            raise GitCommandError([self.executable, *args], res.returncode, res.stderr.strip())
        return res.stdout.rstrip("\r\n")

    def stash(self, sub_command: str, *options: str) -> str:
        return self.git("stash", sub_command, *options)

    @cached_property
    def top_level_directory(self) -> Path:
        return Path(self.git("rev-parse", "--show-toplevel"))

    @cached_property
    def common_directory(self) -> Path:
        # Printed relative to the working directory unless it is elsewhere.
        return (self.repo_path / self.git("rev-parse", "--git-common-dir")).resolve()

    def status(self, *options: str) -> GitStatus:
        return parse_status_z(self.git("status", "--porcelain", "-z", *options))

    def ls_files(self, *options: str) -> list[Path]:
        """Absolute paths printed by `git ls-files`."""
        output = self.git("ls-files", "-z", *options)
        top = self.top_level_directory
        return [top / name for name in output.split("\0") if name]

    def names(self, *args: str) -> list[Path]:
        """Absolute paths from a NUL-separated name listing (e.g. `diff --name-only -z`)."""
        output = self.git(*args)
        top = self.top_level_directory
        return [top / name for name in output.split("\0") if name]

    def is_ignored(self, rel_path: str) -> bool:
        """Whether git ignores `rel_path`, whether or not it exists."""
        res = self.run_raw("check-ignore", "--quiet", "--", rel_path)
        # 0 = ignored, 1 = not ignored, other = error
        if res.returncode == 0:
            return True
        if res.returncode == 1:
            return False
        raise GitCommandError(
            [self.executable, "check-ignore", "--quiet", "--", rel_path],
            res.returncode,
            res.stderr.strip(),
        )

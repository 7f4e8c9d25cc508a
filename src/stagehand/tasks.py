"""Local task runner used as the host between snapshot save and restore.

Key properties:
- Executes an argv list (no shell, no bash -lc).
- Runs in the repository root, one task at a time, stopping at the first failure.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path

from .types import TaskResult

logger = logging.getLogger(__name__)

# Placeholder argument replaced by the staged file paths.
STAGED_PLACEHOLDER = "{staged}"


class TaskRunner:
    def __init__(
        self,
        repo_root: Path,
        timeout_s: int | None = None,
        env: dict[str, str] | None = None,
        staged_files: list[Path] | tuple[Path, ...] = (),
    ) -> None:
        self.repo_root = Path(repo_root)
        self.timeout_s = timeout_s
        self.env = env or {}
        self.staged_files = list(staged_files)

    def expand_argv(self, argv: list[str]) -> list[str]:
        out: list[str] = []
        for a in argv:
            if a == STAGED_PLACEHOLDER:
                out.extend(self._relative(p) for p in self.staged_files)
            else:
                out.append(a)
        return out

    def _relative(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.repo_root.resolve()))
        except ValueError:
            return str(path)

    def _check_argv(self, argv: list[str]) -> tuple[bool, str]:
        if not argv:
            return False, "Empty argv"
        for a in argv:
            if any(ch in a for ch in ["\n", "\r", "\x00"]):
                return False, "Newlines/NUL not allowed"
        return True, ""

    def run(self, name: str, argv: list[str]) -> TaskResult:
        t0 = time.time()
        argv = self.expand_argv(argv)

        ok, reason = self._check_argv(argv)
        if not ok:
            return TaskResult(
                name=name,
                argv=argv,
                exit_code=126,
                stdout="",
                stderr=f"Rejected task command: {reason}",
                duration_s=round(time.time() - t0, 3),
            )

        merged_env = os.environ.copy()
        merged_env.update(self.env)

        logger.info("running task %s: %s", name, " ".join(argv))
        try:
            p = subprocess.run(
                argv,
                cwd=str(self.repo_root),
                text=True,
                capture_output=True,
                timeout=self.timeout_s,
                shell=False,
                env=merged_env,
            )
        except FileNotFoundError:
            return TaskResult(
                name=name,
                argv=argv,
                exit_code=127,
                stdout="",
                stderr=f"Command not found: {argv[0]}",
                duration_s=round(time.time() - t0, 3),
            )
        except subprocess.TimeoutExpired:
            return TaskResult(
                name=name,
                argv=argv,
                exit_code=124,
                stdout="",
                stderr=f"Task timed out after {self.timeout_s}s",
                duration_s=round(time.time() - t0, 3),
            )

        return TaskResult(
            name=name,
            argv=argv,
            exit_code=p.returncode,
            stdout=p.stdout,
            stderr=p.stderr,
            duration_s=round(time.time() - t0, 3),
        )

    def run_all(self, tasks: dict[str, list[str]]) -> list[TaskResult]:
        results: list[TaskResult] = []
        for name, argv in tasks.items():
            result = self.run(name, argv)
            results.append(result)
            if not result.ok:
                logger.warning("task %s failed with exit code %d", name, result.exit_code)
                break
        return results

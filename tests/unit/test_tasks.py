"""Unit tests for the task runner."""

import sys
from pathlib import Path

from stagehand.tasks import STAGED_PLACEHOLDER, TaskRunner


def test_expand_staged_placeholder(tmp_path: Path):
    root = tmp_path.resolve()
    runner = TaskRunner(root, staged_files=[root / "a.py", root / "src" / "b.py"])

    argv = runner.expand_argv(["ruff", "check", STAGED_PLACEHOLDER, "--fix"])

    assert argv == ["ruff", "check", "a.py", str(Path("src") / "b.py"), "--fix"]


def test_expand_without_staged_files(tmp_path: Path):
    assert TaskRunner(tmp_path).expand_argv(["lint", STAGED_PLACEHOLDER]) == ["lint"]


def test_run_success(tmp_path: Path):
    result = TaskRunner(tmp_path).run("hello", [sys.executable, "-c", "print('hello')"])

    assert result.ok
    assert result.name == "hello"
    assert result.stdout.strip() == "hello"
    assert result.duration_s >= 0


def test_run_failure_exit_code(tmp_path: Path):
    result = TaskRunner(tmp_path).run("fail", [sys.executable, "-c", "import sys; sys.exit(3)"])

    assert not result.ok
    assert result.exit_code == 3


def test_run_in_repo_root_with_env(tmp_path: Path):
    runner = TaskRunner(tmp_path, env={"STAGEHAND_TEST_VALUE": "42"})
    script = "import os; print(os.getcwd()); print(os.environ['STAGEHAND_TEST_VALUE'])"

    result = runner.run("env", [sys.executable, "-c", script])

    cwd, value = result.stdout.split()
    assert Path(cwd).resolve() == tmp_path.resolve()
    assert value == "42"


def test_command_not_found(tmp_path: Path):
    result = TaskRunner(tmp_path).run("missing", ["stagehand-no-such-command"])

    assert result.exit_code == 127
    assert "Command not found" in result.stderr


def test_timeout(tmp_path: Path):
    runner = TaskRunner(tmp_path, timeout_s=1)
    result = runner.run("slow", [sys.executable, "-c", "import time; time.sleep(10)"])

    assert result.exit_code == 124
    assert "timed out" in result.stderr


def test_rejects_empty_and_newline_argv(tmp_path: Path):
    runner = TaskRunner(tmp_path)

    assert runner.run("empty", []).exit_code == 126
    assert runner.run("newline", ["echo", "a\nb"]).exit_code == 126


def test_run_all_stops_at_first_failure(tmp_path: Path):
    tasks = {
        "first": [sys.executable, "-c", "pass"],
        "second": [sys.executable, "-c", "raise SystemExit(1)"],
        "third": [sys.executable, "-c", "pass"],
    }

    results = TaskRunner(tmp_path).run_all(tasks)

    assert [r.name for r in results] == ["first", "second"]
    assert [r.ok for r in results] == [True, False]

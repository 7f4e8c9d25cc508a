"""Command-line interface for stagehand.

Commands:
- stagehand run <repo_path> [-- ARGV...]: Run tasks against staged files only
- stagehand staged <repo_path>: List files staged for commit
- stagehand hooks apply|remove <repo_path>: Manage git hooks
- stagehand init <repo_path>: Write a default .stagehand.yml
- stagehand status <repo_path>: Show run metrics from telemetry
- stagehand telemetry tail <repo_path>: Print recent telemetry events
"""

from __future__ import annotations

import json
import logging
import sys
from collections import deque
from pathlib import Path

import click

from .config import CONFIG_FILE_NAME, StagehandConfig, load_config
from .errors import StagehandError, TaskFailedError
from .hooks import HookInstaller
from .staging.resolver import get_staged_files
from .staging.session import StagingSession
from .status import StatusWindow, compute_status
from .tasks import TaskRunner
from .telemetry import prune_telemetry_file
from .types import Snapshot, TaskResult
from .vcs.git_ops import Git


def _load(repo_path_obj: Path, config: str | None) -> StagehandConfig:
    try:
        if config:
            stagehand_config = StagehandConfig.load_from_file(config)
            stagehand_config.apply_env_overrides()
        else:
            stagehand_config = load_config(repo_path_obj)
    except StagehandError as e:
        raise click.ClickException(str(e)) from e
    return stagehand_config


def _echo_task(result: TaskResult) -> None:
    mark = "✓" if result.ok else "✗"
    click.echo(f"  {mark} {result.name} ({result.duration_s:.2f}s)")
    if not result.ok:
        for stream in (result.stdout, result.stderr):
            if stream.strip():
                click.echo(stream.rstrip())


@click.group()
@click.version_option(version="0.1.0", prog_name="stagehand")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """stagehand - Run tasks against the files staged for commit."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
@click.option(
    "--task",
    "-t",
    "task_names",
    multiple=True,
    help="Configured task to run (repeatable). Defaults to all configured tasks.",
)
def run(repo_path: str, command: tuple[str, ...], config: str | None, task_names: tuple[str, ...]) -> None:
    """Run tasks against the staged files only.

    Unstaged edits and untracked files are hidden while the tasks run. Task
    edits to staged files are staged; if a task fails, the working copy is
    restored exactly.

    Example:
        stagehand run .
        stagehand run . --task lint
        stagehand run . -- ruff format {staged}
    """
    repo_path_obj = Path(repo_path).resolve()
    stagehand_config = _load(repo_path_obj, config)

    if command:
        tasks = {Path(command[0]).name: list(command)}
    else:
        configured = stagehand_config.tasks.commands
        missing = [name for name in task_names if name not in configured]
        if missing:
            raise click.ClickException(f"Unknown task(s): {', '.join(missing)}")
        tasks = {name: configured[name] for name in (task_names or configured)}
    if not tasks:
        raise click.ClickException(
            f"No tasks to run. Configure tasks.commands in {CONFIG_FILE_NAME} or pass a command after --."
        )

    if stagehand_config.hooks.auto_apply:
        try:
            HookInstaller(Git(repo_path_obj)).apply(stagehand_config.hooks.scripts)
        except StagehandError as e:
            raise click.ClickException(str(e)) from e

    telemetry_path = repo_path_obj / stagehand_config.telemetry.log_path
    prune_telemetry_file(telemetry_path, stagehand_config.telemetry.retention_days)

    session = StagingSession.from_config(repo_path_obj, stagehand_config)

    def run_tasks(snapshot: Snapshot) -> list[TaskResult]:
        runner = TaskRunner(
            repo_path_obj,
            timeout_s=stagehand_config.tasks.timeout_seconds,
            staged_files=snapshot.staged_files,
        )
        click.echo(f"Running {len(tasks)} task(s) on {len(snapshot.staged_files)} staged file(s)")
        results = runner.run_all(tasks)
        for result in results:
            session.telemetry.log(
                session.run_id,
                "task_finished",
                {"name": result.name, "exit_code": result.exit_code, "duration_s": result.duration_s},
            )
            _echo_task(result)
        failed = [r for r in results if not r.ok]
        if failed:
            raise TaskFailedError(
                f"Task {failed[0].name} exited with code {failed[0].exit_code}", results
            )
        return results

    try:
        result = session.run(run_tasks)
    except TaskFailedError as e:
        click.echo()
        click.echo(f"✗ {e}")
        click.echo("Working copy restored to its state before the run.")
        sys.exit(1)
    except StagehandError as e:
        raise click.ClickException(str(e)) from e

    if result.skipped:
        click.echo("Staging area is empty; no tasks were run.")
        return

    click.echo()
    click.echo(f"✓ All tasks passed (run {result.run_id})")
    if result.restaged_files:
        click.echo("Re-staged task edits:")
        for path in result.restaged_files:
            click.echo(f"  - {path.relative_to(session.git.top_level_directory)}")


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--format",
    "-f",
    "format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
)
def staged(repo_path: str, format: str) -> None:
    """List files staged for commit (added, copied, modified, renamed)."""
    git = Git(Path(repo_path).resolve())
    try:
        paths = get_staged_files(git)
    except StagehandError as e:
        raise click.ClickException(str(e)) from e

    if format == "json":
        click.echo(json.dumps([str(p) for p in paths], indent=2))
        return
    for path in paths:
        click.echo(str(path.relative_to(git.top_level_directory)))


@cli.group()
def hooks() -> None:
    """Git hook management."""


@hooks.command("apply")
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
def hooks_apply(repo_path: str, config: str | None) -> None:
    """Install configured hooks and remove unconfigured ones."""
    repo_path_obj = Path(repo_path).resolve()
    stagehand_config = _load(repo_path_obj, config)

    installer = HookInstaller(Git(repo_path_obj))
    try:
        installer.apply(stagehand_config.hooks.scripts)
    except StagehandError as e:
        raise click.ClickException(str(e)) from e

    if not stagehand_config.hooks.scripts:
        click.echo("No hooks configured; removed any stagehand hooks.")
        return
    for name in stagehand_config.hooks.scripts:
        click.echo(f"  ✓ {name}")


@hooks.command("remove")
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
def hooks_remove(repo_path: str) -> None:
    """Remove every hook stagehand installed."""
    HookInstaller(Git(Path(repo_path).resolve())).remove_all()
    click.echo("✓ Removed stagehand hooks")


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
def init(repo_path: str) -> None:
    """Initialize stagehand configuration in repository.

    Creates a default .stagehand.yml configuration file.

    Example:
        stagehand init /path/to/repo
    """
    repo_path_obj = Path(repo_path).resolve()
    config_path = repo_path_obj / CONFIG_FILE_NAME

    if config_path.exists():
        click.echo(f"Configuration already exists: {config_path}")
        if not click.confirm("Overwrite?"):
            return

    default_config = """# stagehand configuration

# Must be listed in .gitignore.
scratch_dir: .stagehand

staging:
  stash_message: stagehand backup
  # max_command_length: 131072

tasks:
  commands:
    format: ["ruff", "format", "{staged}"]
    lint: ["ruff", "check", "{staged}"]

hooks:
  auto_apply: true
  scripts:
    pre-commit: stagehand run .

telemetry:
  enabled: true
  log_path: .stagehand/telemetry.jsonl
  retention_days: 30
"""

    config_path.write_text(default_config)
    click.echo(f"✓ Created configuration: {config_path}")
    click.echo()
    click.echo("Next steps:")
    click.echo("1. Add .stagehand/ to .gitignore")
    click.echo("2. Edit .stagehand.yml to configure tasks")
    click.echo("3. Install hooks: stagehand hooks apply .")


@cli.command()
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
@click.option(
    "--format",
    "-f",
    "format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
)
@click.option(
    "--window-minutes",
    type=int,
    default=60 * 24,
    show_default=True,
    help="Metrics window (best-effort from telemetry).",
)
@click.option(
    "--health",
    is_flag=True,
    help="Exit 0 if the last run succeeded; 1 otherwise.",
)
def status(repo_path: str, config: str | None, format: str, window_minutes: int, health: bool) -> None:
    """Show run metrics from telemetry."""
    repo_path_obj = Path(repo_path).resolve()
    stagehand_config = _load(repo_path_obj, config)

    telemetry_path = repo_path_obj / stagehand_config.telemetry.log_path
    st = compute_status(telemetry_path, window=StatusWindow(seconds=max(1, window_minutes) * 60.0))

    if health:
        last = st.get("last_run") or {}
        ok = (last.get("data") or {}).get("status") == "success"
        sys.exit(0 if ok else 1)

    if format == "json":
        click.echo(json.dumps(st, indent=2))
        return

    click.echo(f"Telemetry: {telemetry_path}")
    click.echo(f"Window: {window_minutes} minutes")
    click.echo(f"Runs: {st['runs']} (succeeded {st['succeeded']}, failed {st['failed']})")
    click.echo(f"Success rate: {st['success_rate']}")
    click.echo(f"Restores: {st['restores']}")
    click.echo(f"Run latency p50 (s): {st['run_latency_s_p50']}")
    click.echo(f"Run latency p95 (s): {st['run_latency_s_p95']}")
    for name, count in sorted(st["task_failures"].items()):
        click.echo(f"  ✗ {name}: {count} failure(s)")

    last = st.get("last_run") or {}
    if last:
        click.echo()
        click.echo(f"Last run: run_id={last.get('run_id')} status={(last.get('data') or {}).get('status')}")


@cli.group()
def telemetry() -> None:
    """Telemetry utilities."""


@telemetry.command("tail")
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
@click.option(
    "--lines",
    "-n",
    type=int,
    default=50,
    show_default=True,
    help="Number of telemetry lines to show.",
)
def telemetry_tail(repo_path: str, config: str | None, lines: int) -> None:
    """Print the last N telemetry events."""
    repo_path_obj = Path(repo_path).resolve()
    stagehand_config = _load(repo_path_obj, config)

    telemetry_path = repo_path_obj / stagehand_config.telemetry.log_path

    if not telemetry_path.exists():
        raise click.ClickException(f"Telemetry file not found: {telemetry_path}")

    with open(telemetry_path, encoding="utf-8") as f:
        tail = deque(f, maxlen=max(0, lines))

    for ln in tail:
        click.echo(ln, nl=False)


def main() -> None:
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

"""Install and remove git hooks without clobbering existing ones.

For a pre-commit hook the layout after ``apply`` is::

    .git/hooks/
        pre-commit            # existing hook, plus one line calling ours
        stagehand/
            pre-commit        # the configured script

The call line is spliced in and out of the top-level hook, so hooks that
other tools wrote (assuming they are shell scripts) keep working.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from .errors import ConfigurationError
from .vcs import files
from .vcs.git_ops import Git

logger = logging.getLogger(__name__)

# githooks(5)
GIT_HOOK_NAMES = (
    "applypatch-msg",
    "pre-applypatch",
    "post-applypatch",
    "pre-commit",
    "pre-merge-commit",
    "prepare-commit-msg",
    "commit-msg",
    "post-commit",
    "pre-rebase",
    "post-checkout",
    "post-merge",
    "pre-push",
    "pre-receive",
    "update",
    "post-receive",
    "post-update",
    "push-to-checkout",
    "pre-auto-gc",
    "post-rewrite",
    "sendemail-validate",
)

SHEBANG = "#!/bin/sh -"
SCRIPTS_DIR_NAME = "stagehand"

HOOK_SCRIPT_TEMPLATE = """#!/bin/sh
# Installed by stagehand on {created_at}.
# Edit the hooks section of .stagehand.yml instead of this file.

{script}
"""


class HookInstaller:
    """Apply a mapping of hook name -> script body to the repository."""

    def __init__(self, git: Git) -> None:
        self.git = git

    @property
    def hooks_dir(self) -> Path:
        return self.git.common_directory / "hooks"

    @property
    def scripts_dir(self) -> Path:
        return self.hooks_dir / SCRIPTS_DIR_NAME

    def script_file(self, hook: str) -> Path:
        return self.scripts_dir / hook

    def apply(self, hooks: dict[str, str]) -> None:
        unknown = sorted(set(hooks) - set(GIT_HOOK_NAMES))
        if unknown:
            raise ConfigurationError(f"Unknown git hook(s): {', '.join(unknown)}")

        active = {name: script for name, script in hooks.items() if script.strip()}
        if active:
            self.scripts_dir.mkdir(parents=True, exist_ok=True)

        for name, script in active.items():
            self._write_script(name, script)

        for name in GIT_HOOK_NAMES:
            if name in active:
                self._add_call(name)
            else:
                self._remove_call(name)
                files.delete_if_exists(self.script_file(name))

        self._remove_empty_scripts_dir()

    def remove_all(self) -> None:
        self.apply({})

    def _call_line(self, hook: str) -> str:
        return f"\n\n{self.script_file(hook)}"

    def _write_script(self, hook: str, script: str) -> None:
        path = self.script_file(hook)
        created_at = time.strftime("%b %d, %Y %I:%M %p %Z")
        files.write_text(path, HOOK_SCRIPT_TEMPLATE.format(created_at=created_at, script=script.strip()))
        self._make_executable(path)

    def _add_call(self, hook: str) -> None:
        hook_file = self.hooks_dir / hook
        current = files.read_text(hook_file).strip() if hook_file.exists() else SHEBANG
        call = self._call_line(hook)
        if call not in current:
            files.write_text(hook_file, current + call)
        self._make_executable(hook_file)

    def _remove_call(self, hook: str) -> None:
        hook_file = self.hooks_dir / hook
        if not hook_file.exists():
            return

        current = files.read_text(hook_file).strip()
        call = self._call_line(hook)
        if call not in current:
            return

        remaining = current.replace(call, "")
        if remaining == SHEBANG:
            hook_file.unlink()
        else:
            files.write_text(hook_file, remaining)
            self._make_executable(hook_file)

    def _remove_empty_scripts_dir(self) -> None:
        if self.scripts_dir.is_dir() and not any(self.scripts_dir.iterdir()):
            self.scripts_dir.rmdir()

    @staticmethod
    def _make_executable(path: Path) -> None:
        try:
            path.chmod(0o744)
        except NotImplementedError:
            logger.debug("setting file permissions is unsupported, skipping")
        except OSError as e:
            logger.warning("could not set permissions for %s: %s", path, e)

"""Configuration schema for stagehand.

Configuration is loaded from .stagehand.yml in the repository root.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .hooks import GIT_HOOK_NAMES
from .platform import max_command_length as platform_max_command_length

CONFIG_FILE_NAME = ".stagehand.yml"


class StagingConfig(BaseModel):
    """Backup stash and patch file settings."""

    stash_message: str = "stagehand backup"
    unstaged_patch_name: str = "stagehand_unstaged.patch"
    untracked_patch_name: str = "stagehand_untracked.patch"
    # None means the host platform's limit.
    max_command_length: int | None = None

    @field_validator("max_command_length")
    @classmethod
    def validate_max_command_length(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("max_command_length must be positive")
        return v

    @field_validator("stash_message")
    @classmethod
    def validate_stash_message(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("stash_message must not be empty")
        return v

    def resolved_max_command_length(self) -> int:
        return self.max_command_length or platform_max_command_length()


class TasksConfig(BaseModel):
    """Commands run against the staged files, in order."""

    commands: dict[str, list[str]] = Field(default_factory=dict)
    timeout_seconds: int | None = None

    @field_validator("commands")
    @classmethod
    def validate_commands(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        for name, argv in v.items():
            if not argv:
                raise ValueError(f"Task {name!r} has an empty command")
        return v


class HooksConfig(BaseModel):
    """Git hooks managed by stagehand."""

    auto_apply: bool = True
    scripts: dict[str, str] = Field(default_factory=dict)

    @field_validator("scripts")
    @classmethod
    def validate_hook_names(cls, v: dict[str, str]) -> dict[str, str]:
        unknown = sorted(set(v) - set(GIT_HOOK_NAMES))
        if unknown:
            raise ValueError(f"Unknown git hook(s): {', '.join(unknown)}")
        return v


class TelemetryConfig(BaseModel):
    """Telemetry configuration."""

    enabled: bool = True
    log_path: str = ".stagehand/telemetry.jsonl"
    retention_days: int = 30


class StagehandConfig(BaseModel):
    """Complete stagehand configuration."""

    # Must be git-ignored: restoring a snapshot rewrites everything else.
    scratch_dir: str = ".stagehand"
    staging: StagingConfig = Field(default_factory=StagingConfig)
    tasks: TasksConfig = Field(default_factory=TasksConfig)
    hooks: HooksConfig = Field(default_factory=HooksConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("scratch_dir")
    @classmethod
    def validate_scratch_dir(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v or v.startswith("/") or ".." in Path(v).parts:
            raise ValueError("scratch_dir must be a relative path inside the repository")
        return v

    @classmethod
    def load_from_file(cls, config_path: Path | str) -> StagehandConfig:
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

    @classmethod
    def load_from_repo(cls, repo_path: Path | str) -> StagehandConfig:
        """Load configuration from repository's .stagehand.yml."""
        config_path = Path(repo_path) / CONFIG_FILE_NAME

        if not config_path.exists():
            return cls()

        return cls.load_from_file(config_path)

    def apply_env_overrides(self) -> None:
        """Apply environment variable overrides to configuration."""
        if scratch := os.getenv("STAGEHAND_SCRATCH_DIR"):
            self.scratch_dir = scratch.rstrip("/")

        if message := os.getenv("STAGEHAND_STASH_MESSAGE"):
            self.staging.stash_message = message
        if v := os.getenv("STAGEHAND_MAX_COMMAND_LENGTH"):
            self.staging.max_command_length = int(v)

        if v := os.getenv("STAGEHAND_TASK_TIMEOUT_SECONDS"):
            self.tasks.timeout_seconds = int(v)

        if os.getenv("STAGEHAND_HOOKS_NO_AUTO_APPLY") == "1":
            self.hooks.auto_apply = False

        if log_path := os.getenv("STAGEHAND_TELEMETRY_PATH"):
            self.telemetry.log_path = log_path
        if os.getenv("STAGEHAND_TELEMETRY_DISABLED") == "1":
            self.telemetry.enabled = False


def load_config(repo_path: Path | str) -> StagehandConfig:
    """
    Load configuration for a repository.

    Args:
        repo_path: Path to the repository

    Returns:
        Loaded and validated configuration
    """
    config = StagehandConfig.load_from_repo(repo_path)
    config.apply_env_overrides()
    return config

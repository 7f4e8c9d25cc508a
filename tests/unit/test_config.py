"""Unit tests for configuration loading and validation."""

import tempfile
from pathlib import Path

import pytest
import yaml

from stagehand.config import (
    CONFIG_FILE_NAME,
    HooksConfig,
    StagehandConfig,
    StagingConfig,
    TasksConfig,
    TelemetryConfig,
    load_config,
)
from stagehand.errors import ConfigurationError
from stagehand.platform import max_command_length


class TestStagingConfig:
    """Tests for StagingConfig."""

    def test_default_config(self):
        config = StagingConfig()
        assert config.stash_message == "stagehand backup"
        assert config.unstaged_patch_name == "stagehand_unstaged.patch"
        assert config.untracked_patch_name == "stagehand_untracked.patch"
        assert config.max_command_length is None
        assert config.resolved_max_command_length() == max_command_length()

    def test_explicit_max_command_length(self):
        assert StagingConfig(max_command_length=8191).resolved_max_command_length() == 8191

    @pytest.mark.parametrize("value", [0, -1])
    def test_invalid_max_command_length(self, value):
        with pytest.raises(ValueError, match="max_command_length must be positive"):
            StagingConfig(max_command_length=value)

    def test_blank_stash_message(self):
        with pytest.raises(ValueError, match="stash_message must not be empty"):
            StagingConfig(stash_message="  ")


class TestTasksConfig:
    def test_default_has_no_tasks(self):
        config = TasksConfig()
        assert config.commands == {}
        assert config.timeout_seconds is None

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError, match="'lint' has an empty command"):
            TasksConfig(commands={"lint": []})


class TestHooksConfig:
    def test_known_hooks(self):
        config = HooksConfig(scripts={"pre-commit": "stagehand run ."})
        assert config.auto_apply is True
        assert config.scripts == {"pre-commit": "stagehand run ."}

    def test_unknown_hook(self):
        with pytest.raises(ValueError, match="Unknown git hook"):
            HooksConfig(scripts={"pre-comit": "stagehand run ."})


class TestStagehandConfig:
    def test_defaults(self):
        config = StagehandConfig()
        assert config.scratch_dir == ".stagehand"
        assert isinstance(config.telemetry, TelemetryConfig)
        assert config.telemetry.log_path == ".stagehand/telemetry.jsonl"
        assert config.telemetry.retention_days == 30

    def test_scratch_dir_trailing_slash_stripped(self):
        assert StagehandConfig(scratch_dir="build/").scratch_dir == "build"

    @pytest.mark.parametrize("value", ["", "/tmp/x", "../outside"])
    def test_scratch_dir_must_stay_in_repository(self, value):
        with pytest.raises(ValueError, match="scratch_dir"):
            StagehandConfig(scratch_dir=value)

    def test_load_from_file(self):
        data = {
            "scratch_dir": "build",
            "staging": {"stash_message": "custom backup", "max_command_length": 4096},
            "tasks": {"commands": {"lint": ["ruff", "check", "{staged}"]}, "timeout_seconds": 60},
            "hooks": {"auto_apply": False, "scripts": {"pre-commit": "stagehand run ."}},
        }
        with tempfile.NamedTemporaryFile("w", suffix=".yml", delete=False) as f:
            yaml.safe_dump(data, f)
            path = Path(f.name)

        try:
            config = StagehandConfig.load_from_file(path)
        finally:
            path.unlink()

        assert config.scratch_dir == "build"
        assert config.staging.stash_message == "custom backup"
        assert config.staging.max_command_length == 4096
        assert config.tasks.commands["lint"] == ["ruff", "check", "{staged}"]
        assert config.tasks.timeout_seconds == 60
        assert config.hooks.auto_apply is False

    def test_load_from_empty_file(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("")

        assert StagehandConfig.load_from_file(path) == StagehandConfig()

    def test_load_from_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            StagehandConfig.load_from_file(tmp_path / "missing.yml")

    def test_invalid_file_raises_configuration_error(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("staging:\n  max_command_length: -5\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            StagehandConfig.load_from_file(path)

    def test_load_from_repo_without_file(self, tmp_path: Path):
        assert StagehandConfig.load_from_repo(tmp_path) == StagehandConfig()


class TestEnvOverrides:
    def test_overrides(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("STAGEHAND_SCRATCH_DIR", "build/")
        monkeypatch.setenv("STAGEHAND_STASH_MESSAGE", "ci backup")
        monkeypatch.setenv("STAGEHAND_MAX_COMMAND_LENGTH", "1000")
        monkeypatch.setenv("STAGEHAND_TASK_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("STAGEHAND_HOOKS_NO_AUTO_APPLY", "1")
        monkeypatch.setenv("STAGEHAND_TELEMETRY_PATH", "logs/events.jsonl")
        monkeypatch.setenv("STAGEHAND_TELEMETRY_DISABLED", "1")

        config = load_config(tmp_path)

        assert config.scratch_dir == "build"
        assert config.staging.stash_message == "ci backup"
        assert config.staging.max_command_length == 1000
        assert config.tasks.timeout_seconds == 30
        assert config.hooks.auto_apply is False
        assert config.telemetry.log_path == "logs/events.jsonl"
        assert config.telemetry.enabled is False

    def test_no_overrides(self, tmp_path: Path):
        (tmp_path / CONFIG_FILE_NAME).write_text("staging:\n  stash_message: from file\n")

        config = load_config(tmp_path)

        assert config.staging.stash_message == "from file"
        assert config.telemetry.enabled is True

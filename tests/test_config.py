"""Tests for the configuration module."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from tagbot.config import Config, DiscordConfig, PreviewsConfig


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    """Create a sample config file for testing."""
    config = {
        "data_dir": str(tmp_path / "data"),
        "log_level": "debug",
        "log_json": False,
        "discord": {
            "bots_channel_pattern": "bot-commands",
            "help_forum_pattern": "help-.*",
            "tag_manage_role_pattern": "Staff",
            "guild_id": 1234,
        },
        "database": {"path": "test.db"},
        "previews": {"enabled": False, "timeout_seconds": 5},
    }
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config, f)
    return config_path


def test_config_load(sample_config_yaml: Path) -> None:
    """Test loading a valid configuration file."""
    config = Config.load(sample_config_yaml)

    assert config.log_level == "DEBUG"
    assert config.log_json is False
    assert config.discord.bots_channel_pattern == "bot-commands"
    assert config.discord.help_forum_pattern == "help-.*"
    assert config.discord.tag_manage_role_pattern == "Staff"
    assert config.discord.guild_id == 1234
    assert config.database.path == "test.db"
    assert config.previews.enabled is False
    assert config.previews.timeout_seconds == 5


def test_config_load_not_found() -> None:
    """Test that missing config file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        Config.load(Path("/nonexistent/config.yaml"))


def test_config_defaults() -> None:
    """Defaults work without any file."""
    config = Config()

    assert config.log_level == "INFO"
    assert config.discord.bots_channel_pattern == "bots"
    assert config.discord.help_forum_pattern == "questions"
    assert config.discord.guild_id is None
    assert config.previews.enabled is True
    assert config.previews.timeout_seconds is None


def test_config_database_path(tmp_path: Path) -> None:
    """Database path is resolved inside the data directory."""
    config = Config(data_dir=tmp_path)
    assert config.database_path == tmp_path / "tags.db"


def test_config_empty_file(tmp_path: Path) -> None:
    """An empty file yields defaults."""
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("")

    config = Config.load(config_path)
    assert config.discord.bots_channel_pattern == "bots"


def test_config_env_overrides(
    sample_config_yaml: Path, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """Environment variables override file values."""
    monkeypatch.setenv("TAGBOT_DATA_DIR", str(tmp_path / "other"))
    monkeypatch.setenv("TAGBOT_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("TAGBOT_LOG_JSON", "true")

    config = Config.load(sample_config_yaml)

    assert config.data_dir == tmp_path / "other"
    assert config.log_level == "WARNING"
    assert config.log_json is True


def test_config_discord_token(monkeypatch: pytest.MonkeyPatch) -> None:
    """Discord token comes from the environment."""
    monkeypatch.setenv("DISCORD_TOKEN", "secret")
    assert Config().discord_token == "secret"

    monkeypatch.delenv("DISCORD_TOKEN")
    assert Config().discord_token is None


def test_invalid_log_level() -> None:
    """Unknown log levels are rejected."""
    with pytest.raises(ValidationError):
        Config(log_level="LOUD")


def test_invalid_pattern_rejected() -> None:
    """Patterns that do not compile are a config error, not a request error."""
    with pytest.raises(ValidationError, match="invalid pattern"):
        DiscordConfig(bots_channel_pattern="bots(")


def test_invalid_pattern_in_file(tmp_path: Path) -> None:
    """Broken patterns in the file fail loading."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({"discord": {"help_forum_pattern": "[unclosed"}}))

    with pytest.raises(ValidationError):
        Config.load(config_path)


def test_preview_timeout_must_be_positive() -> None:
    """A zero or negative overall timeout is rejected."""
    with pytest.raises(ValidationError):
        PreviewsConfig(timeout_seconds=0)


def test_load_or_default_missing_file(tmp_path: Path) -> None:
    """Missing explicit file falls back to defaults."""
    config = Config.load_or_default(tmp_path / "missing.yaml")
    assert config.discord.bots_channel_pattern == "bots"


def test_load_or_default_finds_file(sample_config_yaml: Path) -> None:
    """Explicit file is used when present."""
    config = Config.load_or_default(sample_config_yaml)
    assert config.discord.guild_id == 1234

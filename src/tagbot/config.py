"""Configuration loading and validation for tagbot."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


class DiscordConfig(BaseModel):
    """Discord configuration.

    The three patterns drive access control for ``/tag``. They are matched
    against the whole channel or role name.
    """

    bots_channel_pattern: str = "bots"
    help_forum_pattern: str = "questions"
    tag_manage_role_pattern: str = "Moderator|Community Ambassador|Top Helpers .+"
    guild_id: int | None = None  # Sync commands to one guild instead of globally

    @field_validator(
        "bots_channel_pattern", "help_forum_pattern", "tag_manage_role_pattern"
    )
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Validate the value compiles as a regular expression."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid pattern {v!r}: {e}") from e
        return v


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "tags.db"


class PreviewsConfig(BaseModel):
    """Link preview configuration."""

    enabled: bool = True
    fetch_timeout_seconds: float = 10.0
    timeout_seconds: float | None = None  # Overall wait before finalizing without previews
    max_image_bytes: int = 8 * 1024 * 1024
    user_agent: str = "Tagbot/0.1 (Discord bot; link previews)"

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Validate the overall timeout is positive when set."""
        if v is not None and v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v


class Config(BaseModel):
    """Root configuration for tagbot."""

    data_dir: Path = Path("./data")
    log_level: str = "INFO"
    log_json: bool = True

    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    previews: PreviewsConfig = Field(default_factory=PreviewsConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log_level is valid."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @property
    def database_path(self) -> Path:
        """Get full path to database file."""
        return self.data_dir / self.database.path

    @property
    def discord_token(self) -> str | None:
        """Get Discord token from environment."""
        return os.environ.get("DISCORD_TOKEN")

    @classmethod
    def load(cls, config_path: Path | str = Path("config.yaml")) -> "Config":
        """Load configuration from YAML file with env var overlay.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Validated Config instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config is invalid.
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        # Environment variable overrides
        if "TAGBOT_DATA_DIR" in os.environ:
            yaml_config["data_dir"] = os.environ["TAGBOT_DATA_DIR"]
        if "TAGBOT_LOG_LEVEL" in os.environ:
            yaml_config["log_level"] = os.environ["TAGBOT_LOG_LEVEL"]
        if "TAGBOT_LOG_JSON" in os.environ:
            yaml_config["log_json"] = os.environ["TAGBOT_LOG_JSON"].lower() == "true"

        return cls.model_validate(yaml_config)

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration, falling back to defaults if file not found.

        Args:
            config_path: Optional path to YAML configuration file.

        Returns:
            Config instance (from file or defaults).
        """
        if config_path is None:
            for path in [Path("config.yaml"), Path("config.yml")]:
                if path.exists():
                    return cls.load(path)
            return cls()

        try:
            return cls.load(config_path)
        except FileNotFoundError:
            return cls()

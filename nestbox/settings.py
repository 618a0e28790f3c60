"""Client configuration and settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_config_dir() -> Path:
    return Path.home() / ".config" / ".nestbox"


class ClientSettings(BaseSettings):
    """Configuration for the Nestbox CLI.

    Reads from environment variables and .env file.
    All settings prefixed with NESTBOX_.
    """

    model_config = SettingsConfigDict(
        env_prefix="NESTBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Local state
    config_dir: Path = Field(
        default_factory=_default_config_dir,
        description="Directory holding saved account credentials",
    )
    project_config_file: str = Field(
        default=".nestboxrc", description="Project alias file in the working directory"
    )

    # HTTP settings
    http_timeout: float = Field(default=30.0, description="Request timeout (seconds)")

    # Logging
    log_level: str = Field(default="warning", description="Log level")
    debug: bool = Field(default=False, description="Enable debug logging")

    @property
    def effective_log_level(self) -> str:
        """Log level after applying the debug flag."""
        return "debug" if self.debug else self.log_level.lower()


# Global settings instance
_settings: ClientSettings | None = None


def get_settings() -> ClientSettings:
    """Get the global settings instance, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = ClientSettings()
    return _settings


def reset_settings() -> None:
    """Drop the loaded settings so the next call re-reads the environment."""
    global _settings
    _settings = None

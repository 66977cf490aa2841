"""Configuration management for p4-mediator."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Storage keys used by the preference store
KEY_CONNECTIONS = "connections"
KEY_PREFERENCES = "preferences"

DEFAULT_P4_BINARY = "p4"
DEFAULT_COMMAND_TIMEOUT = 30.0  # seconds


class Settings(BaseSettings):
    """Application settings.

    Values come from the environment (prefixed with P4_MEDIATOR_), an optional
    .env file, or CLI overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="P4_MEDIATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage base directory
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".p4-mediator")

    # p4 client settings
    p4_binary: str = DEFAULT_P4_BINARY
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT

    # Debug settings
    debug: bool = False

    @property
    def store_path(self) -> Path:
        """Get the preference database path."""
        return self.data_dir / "preferences.db"

    @property
    def debug_log_dir(self) -> Path:
        """Get the debug log directory."""
        return self.data_dir / "logs"

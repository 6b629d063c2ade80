"""
Application configuration using Pydantic Settings.

Loads configuration from AUTODEP_* environment variables and .env file.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="AUTODEP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="autodep", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="WARNING", description="Logging level")

    # Manifest
    manifest_file: str = Field(
        default="autodep.yaml",
        description="Manifest declaring dependency ranges, relative to the working directory",
    )

    # Watch mode
    watch_interval: float = Field(default=0.5, description="File polling interval in seconds")

    # Installer
    pip_extra_args: List[str] = Field(
        default=[],
        description="Extra arguments appended to every pip install invocation",
    )
    pip_break_system_packages: bool = Field(
        default=False,
        description="Pass --break-system-packages when not running inside a virtualenv",
    )

    @field_validator("watch_interval")
    @classmethod
    def _validate_watch_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("watch_interval must be positive")
        return value

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"


# Global settings instance
settings = Settings()

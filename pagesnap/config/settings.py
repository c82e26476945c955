"""
Service settings loaded from environment variables.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """PageSnap runtime settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    token: str = Field(default="token", description="Path token required on every request")
    log_level: str = "INFO"

    # Renderer
    headless: bool = True
    browser_args: list[str] = Field(default_factory=list)
    default_device_profile: dict[str, Any] = Field(
        default_factory=dict,
        description="Context options used when a request has no deviceProfile",
    )
    capture_timeout_seconds: float | None = Field(
        default=None,
        description="Deadline for load+settle+capture; None waits indefinitely",
    )

    # Image pipeline
    output_width: int = 1080
    trim_threshold: int = Field(default=10, ge=0, le=255)
    png_compress_level: int = Field(default=6, ge=0, le=9)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the active settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def init_settings(settings: Settings) -> Settings:
    """Install explicit settings (used by tests and embedding callers)."""
    global _settings
    _settings = settings
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None

"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Server configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone (or UTC+HH:MM offset) used for notification timestamps",
    )
    api_prefix: str = Field(
        default="/api",
        description="Path prefix under which the HTTP routes are mounted",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4200"],
        description="Origins allowed to call the API from a browser",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("api_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = f"/{value}"
        return value


class ClientSettings(BaseSettings):
    """Configuration for the realtime notification client."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_CLIENT_",
        env_file=ENV_FILE,
        env_file_encoding=ENV_FILE_ENCODING,
        extra="ignore",
    )

    api_base_url: str = Field(
        default="http://localhost:8000/api",
        description="Base URL of the notifications HTTP API",
        min_length=1,
    )
    hub_url: str = Field(
        default="ws://localhost:8000/hubs/notifications",
        description="Websocket URL of the notification hub",
        min_length=1,
    )
    request_timeout: float = Field(default=10.0, gt=0)
    reconnect_max_attempts: int = Field(
        default=5,
        ge=0,
        description="Consecutive reconnect attempts before giving up",
    )
    reconnect_base_interval: float = Field(
        default=2.0,
        gt=0,
        description="Seconds multiplied by 2**attempt to compute the backoff delay",
    )
    reconnect_max_delay: float = Field(default=30.0, gt=0)
    reconnect_max_jitter: float = Field(default=1.0, ge=0)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


@lru_cache
def get_client_settings() -> ClientSettings:
    """Return cached client settings instance."""

    return ClientSettings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()
    get_client_settings.cache_clear()


__all__ = [
    "ClientSettings",
    "Settings",
    "get_client_settings",
    "get_settings",
    "reset_settings_cache",
]

"""Configuration management service with Pydantic Settings.

This module provides centralized configuration management for the
Starship realtime trade feed, loading and validating environment
variables at startup. All values are fixed for the lifetime of the
process.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = ".env"
_ENV_FILE_ENCODING = "utf-8"

DEFAULT_BITQUERY_URL = "https://streaming.bitquery.io/eap"


class BitquerySettings(BaseSettings):
    """Bitquery streaming API settings."""

    model_config = SettingsConfigDict(env_prefix="BITQUERY_", extra="ignore")

    token: SecretStr | None = Field(
        default=None,
        alias="BITQUERY_TOKEN",
        description="Bearer token for the Bitquery streaming endpoint",
    )
    url: str = Field(
        default=DEFAULT_BITQUERY_URL,
        alias="BITQUERY_URL",
        description="Bitquery GraphQL endpoint (realtime dataset)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        alias="BITQUERY_TIMEOUT_SECONDS",
        gt=0.0,
        le=600.0,
        description="Per-request timeout for provider calls",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate endpoint URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("BITQUERY_URL must be an HTTP(S) endpoint")
        return v.rstrip("/")


class WindowSettings(BaseSettings):
    """Lookback horizon and window partition settings."""

    model_config = SettingsConfigDict(env_prefix="WINDOW_", extra="ignore")

    realtime_hours: int = Field(
        default=68,
        alias="WINDOW_REALTIME_HOURS",
        ge=1,
        le=24 * 30,
        description="Rolling lookback horizon served to clients (hours)",
    )
    max_hours: int = Field(
        default=4,
        alias="WINDOW_MAX_HOURS",
        ge=1,
        le=24,
        description="Maximum size of a single retrieval window (hours)",
    )
    default_limit: int = Field(
        default=100,
        alias="WINDOW_DEFAULT_LIMIT",
        ge=1,
        le=100_000,
        description="Default per-window trade record limit",
    )
    tolerance_ms: int = Field(
        default=1500,
        alias="WINDOW_TOLERANCE_MS",
        ge=0,
        le=60_000,
        description="Boundary drift tolerated at both horizon edges (milliseconds)",
    )

    @model_validator(mode="after")
    def validate_partition(self) -> WindowSettings:
        if self.realtime_hours % self.max_hours != 0:
            raise ValueError("WINDOW_REALTIME_HOURS must be a multiple of WINDOW_MAX_HOURS")
        return self


class Settings(BaseSettings):
    """Root application settings.

    Groups related settings and exposes the application-level knobs
    (logging, listen address, static assets).
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding=_ENV_FILE_ENCODING,
        extra="ignore",
    )

    bitquery: BitquerySettings = Field(
        default_factory=lambda: BitquerySettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    window: WindowSettings = Field(
        default_factory=lambda: WindowSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )

    # Application settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    host: str = Field(
        default="0.0.0.0",
        alias="HOST",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        default=8080,
        alias="PORT",
        description="HTTP listen port",
        ge=1,
        le=65535,
    )
    static_dir: str = Field(
        default="public",
        alias="STATIC_DIR",
        description="Directory with the browser client (served when present)",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ORIGINS",
        description="Allowed CORS origins",
    )
    fetch_max_concurrency: int = Field(
        default=1,
        alias="FETCH_MAX_CONCURRENCY",
        ge=1,
        le=32,
        description="Window fetches in flight per request (1 = sequential)",
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def redacted_summary(self) -> dict[str, str | dict[str, str]]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        return {
            "bitquery": {
                "url": self.bitquery.url,
                "token": "(set)" if self.bitquery.token else "(not set)",
                "timeout_seconds": str(self.bitquery.timeout_seconds),
            },
            "window": {
                "realtime_hours": str(self.window.realtime_hours),
                "max_hours": str(self.window.max_hours),
                "default_limit": str(self.window.default_limit),
                "tolerance_ms": str(self.window.tolerance_ms),
            },
            "log_level": self.log_level,
            "host": self.host,
            "port": str(self.port),
            "static_dir": self.static_dir,
            "fetch_max_concurrency": str(self.fetch_max_concurrency),
        }

    def validate_requirements(self) -> str:
        """Validate what the server needs before it may start.

        Returns:
            The provider token.

        Raises:
            ValueError: If the provider token is not configured.
        """
        if self.bitquery.token is None or not self.bitquery.token.get_secret_value():
            raise ValueError("BITQUERY_TOKEN is required to query the trade provider")
        return self.bitquery.token.get_secret_value()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Uses LRU cache to ensure settings are loaded only once and
    reused across the application.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when environment variables change.
    """
    get_settings.cache_clear()

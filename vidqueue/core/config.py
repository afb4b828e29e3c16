"""Configuration Manager for the video ingestion queue.

Centralized configuration loading from environment variables with sensible defaults.
All configuration is validated at load time to fail fast on invalid values.
"""

import os
from dataclasses import dataclass

from vidqueue.core.exceptions import ConfigurationError

DEFAULT_BASE_URL = "http://localhost:3000"


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    Required:
        internal_api_secret: Shared secret sent to the Ingestion API in the
            x-internal-secret header.

    Optional (with defaults):
        base_url: Base URL of the web app hosting the scraper and
            ingestion endpoints.
        retention_hours: How long terminal jobs are kept before cleanup.
        active_window_minutes: How long terminal jobs count as "active".
        cleanup_interval_seconds: Interval between cleanup sweeps.
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR).
        host: Bind address for the HTTP server.
        port: Port for the HTTP server.
    """

    # Required
    internal_api_secret: str

    # Optional with defaults
    base_url: str = DEFAULT_BASE_URL
    retention_hours: float = 4.0
    active_window_minutes: float = 60.0
    cleanup_interval_seconds: float = 3600.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8767

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.base_url = self.base_url.rstrip("/")
        if not self.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"VIDQUEUE_BASE_URL must be an http(s) URL, got '{self.base_url}'"
            )

        # Validate log level
        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            raise ConfigurationError(
                f"Invalid LOG_LEVEL '{self.log_level}'. "
                f"Must be one of: {', '.join(sorted(valid_log_levels))}"
            )
        self.log_level = self.log_level.upper()

        # Validate time windows
        if self.retention_hours <= 0:
            raise ConfigurationError("VIDQUEUE_RETENTION_HOURS must be positive")
        if self.active_window_minutes <= 0:
            raise ConfigurationError("VIDQUEUE_ACTIVE_WINDOW_MINUTES must be positive")
        if self.cleanup_interval_seconds <= 0:
            raise ConfigurationError(
                "VIDQUEUE_CLEANUP_INTERVAL_SECONDS must be positive"
            )

        if not 0 < self.port < 65536:
            raise ConfigurationError("VIDQUEUE_PORT must be between 1 and 65535")


def default_base_url() -> str:
    """Base URL from VIDQUEUE_BASE_URL, else the Vercel deployment URL."""
    explicit = os.environ.get("VIDQUEUE_BASE_URL")
    if explicit:
        return explicit
    vercel_url = os.environ.get("VERCEL_URL")
    if vercel_url:
        return f"https://{vercel_url}"
    return DEFAULT_BASE_URL


def load_config(*, require_secret: bool = True) -> Config:
    """Load configuration from environment variables.

    Args:
        require_secret: If True (default), raises ConfigurationError when
            INTERNAL_API_SECRET is missing. Set to False for commands that
            never call the Ingestion API (e.g. --classify).

    Returns:
        Config object with all settings loaded.

    Raises:
        ConfigurationError: If required config is missing or values are invalid.
    """
    secret = os.environ.get("INTERNAL_API_SECRET", "")

    if require_secret and not secret:
        raise ConfigurationError(
            "INTERNAL_API_SECRET environment variable is required but not set"
        )

    def get_float(key: str, default: float) -> float:
        """Parse float from env var with default."""
        value = os.environ.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be a valid number, got '{value}'")

    def get_int(key: str, default: int) -> int:
        """Parse int from env var with default."""
        value = os.environ.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be a valid integer, got '{value}'")

    return Config(
        internal_api_secret=secret,
        base_url=default_base_url(),
        retention_hours=get_float("VIDQUEUE_RETENTION_HOURS", 4.0),
        active_window_minutes=get_float("VIDQUEUE_ACTIVE_WINDOW_MINUTES", 60.0),
        cleanup_interval_seconds=get_float("VIDQUEUE_CLEANUP_INTERVAL_SECONDS", 3600.0),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        host=os.environ.get("VIDQUEUE_HOST", "0.0.0.0"),
        port=get_int("VIDQUEUE_PORT", 8767),
    )


# Singleton instance for convenience
_config: Config | None = None


def get_config(*, require_secret: bool = True) -> Config:
    """Get the global configuration instance.

    Loads configuration on first call and caches it for subsequent calls.
    Use reset_config() to force a reload.
    """
    global _config
    if _config is None:
        _config = load_config(require_secret=require_secret)
    return _config


def reset_config() -> None:
    """Reset the global configuration instance.

    Forces the next get_config() call to reload from environment variables.
    Useful for testing.
    """
    global _config
    _config = None

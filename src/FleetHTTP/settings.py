"""Process-wide settings for FleetHTTP connections.

Settings are read from ``FLEETHTTP_*`` environment variables through
pydantic-settings. They hold the knobs that are operator policy rather than
per-connection options: whether redirect targets are trusted with
credentials, when to warn about expiring certificates, and the timeout and
keepalive budgets used by the default connection pool.

Example:
    >>> from FleetHTTP.settings import get_settings
    >>> get_settings().location_trusted
    False
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from FleetHTTP.network.policy import (
    CERTIFICATE_EXPIRE_WARNING,
    HTTP_CONNECT_TIMEOUT,
    HTTP_POOL_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_WRITE_TIMEOUT,
    KEEPALIVE_TIMEOUT,
    RETRY_BACKOFF_SECONDS,
)

logger = logging.getLogger(__name__)


class ClientSettings(BaseSettings):
    """Environment-derived configuration for the connection stack."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETHTTP_",
        case_sensitive=False,
        extra="ignore",
    )

    location_trusted: bool = Field(
        False,
        description="Forward Authorization/Cookie headers to redirect targets on other hosts",
    )
    certificate_expire_warning: float = Field(
        CERTIFICATE_EXPIRE_WARNING,
        description="Warn when a peer certificate expires within this many seconds",
        ge=0,
    )
    keepalive_timeout: float = Field(
        KEEPALIVE_TIMEOUT,
        description="Seconds an idle pooled transport is kept before closing",
        ge=0,
    )
    connect_timeout: float = Field(HTTP_CONNECT_TIMEOUT, gt=0)
    read_timeout: float = Field(HTTP_READ_TIMEOUT, gt=0)
    write_timeout: float = Field(HTTP_WRITE_TIMEOUT, gt=0)
    pool_timeout: float = Field(HTTP_POOL_TIMEOUT, gt=0)
    retry_backoff_seconds: float = Field(
        RETRY_BACKOFF_SECONDS,
        description="Fixed pause between retry attempts",
        ge=0,
    )
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Normalise logging levels and ensure they match the supported set."""

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {sorted(valid_levels)}")
        return upper


# ============================================================================
# Singleton API
# ============================================================================

_settings: Optional[ClientSettings] = None
_settings_lock = threading.Lock()


def get_settings() -> ClientSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings

    if _settings is not None:
        return _settings

    with _settings_lock:
        if _settings is None:
            _settings = ClientSettings()
            logger.debug(
                "FleetHTTP settings loaded",
                extra={
                    "location_trusted": _settings.location_trusted,
                    "keepalive_timeout": _settings.keepalive_timeout,
                },
            )
        return _settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment.

    **NOT** for production use; only for test isolation.
    """
    global _settings

    with _settings_lock:
        _settings = None


__all__ = ["ClientSettings", "get_settings", "reset_settings"]

"""
Configuration for the discount synchronization engine.

Uses Pydantic for validation and environment loading.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    return float(value)


class PollingConfig(BaseModel):
    """Timings for the long-poll and short-poll channels."""

    long_poll_retry_delay: float = Field(
        default=2.0, description="Seconds to wait after a failed long poll"
    )
    short_poll_interval: float = Field(
        default=1.0, description="Seconds between short-poll ticks"
    )
    short_poll_retry_delay: float = Field(
        default=0.5, description="Seconds before the one-shot short-poll retry"
    )


class SyncConfig(BaseSettings):
    """Master configuration for discountsync.

    Loads from environment variables (and a local .env file).
    """

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix, use exact names
        env_file=".env",
        extra="ignore",
    )

    # Service identity
    service_name: str = Field(default="discountsync")
    log_level: str = Field(default="INFO")

    # Remote product service
    base_url: str = Field(
        default="http://localhost:8080", description="Product service endpoint"
    )
    http_timeout: Optional[float] = Field(
        default=None, description="HTTP timeout in seconds, None=wait forever"
    )

    # Local persistence
    storage_path: Optional[str] = Field(
        default=None, description="JSON file for persisted state, None=in-memory"
    )

    polling: PollingConfig = Field(default_factory=PollingConfig)

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Load configuration from environment variables."""
        return cls(
            service_name=os.getenv("SERVICE_NAME", "discountsync"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            base_url=os.getenv("DISCOUNTSYNC_BASE_URL", "http://localhost:8080"),
            http_timeout=_optional_float(os.getenv("HTTP_TIMEOUT")),
            storage_path=os.getenv("DISCOUNTSYNC_STORAGE_PATH"),
            polling=PollingConfig(
                long_poll_retry_delay=float(os.getenv("LONG_POLL_RETRY_DELAY", "2.0")),
                short_poll_interval=float(os.getenv("SHORT_POLL_INTERVAL", "1.0")),
                short_poll_retry_delay=float(
                    os.getenv("SHORT_POLL_RETRY_DELAY", "0.5")
                ),
            ),
        )


@lru_cache(maxsize=1)
def get_config() -> SyncConfig:
    """Get the process-wide configuration (loaded once from the environment)."""
    return SyncConfig.from_env()

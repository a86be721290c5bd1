"""
Configuration settings for fetch-retry.

Built-in retry defaults are loaded from environment variables prefixed
with ``FETCH_RETRY_`` (e.g. ``FETCH_RETRY_RETRIES=5``). Use a .env file
for local development.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FETCH_RETRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Logging ===
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Retry Policy ===
    RETRIES: int = 3
    RETRY_DELAY: float = 0.5  # seconds between attempts
    RETRY_ON: list[int] = [419, 503, 504]  # retry-worthy response statuses
    ATTEMPT_TIMEOUT: Optional[float] = None  # seconds, None = unbounded attempts

    # === HTTP Client ===
    HTTP_TIMEOUT: float = 30.0  # transport timeout used by RetryingClient


# Global settings instance
settings = Settings()

"""Shared test fixtures and configuration for all tests."""

import pytest

from fetch_retry.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the built-in defaults, ignoring any local .env file.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.RETRIES = 5
    """
    return Settings(
        _env_file=None,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        RETRIES=3,
        RETRY_DELAY=0.5,
        RETRY_ON=[419, 503, 504],
        ATTEMPT_TIMEOUT=None,
        HTTP_TIMEOUT=5.0,
    )

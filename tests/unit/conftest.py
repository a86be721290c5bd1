"""Unit test fixtures (transport mocks)."""

from unittest.mock import AsyncMock

import pytest


@pytest.fixture
def mock_transport() -> AsyncMock:
    """Async request function; configure side_effect/return_value per test."""
    return AsyncMock(name="request")

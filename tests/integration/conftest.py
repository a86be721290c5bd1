"""Integration test fixtures (scripted httpx transports)."""

import httpx
import pytest


class ScriptedTransport:
    """httpx.MockTransport handler replaying a list of statuses or errors.

    The last entry repeats once the script is exhausted.
    """

    def __init__(self, script):
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.script)) - 1
        step = self.script[index]
        if isinstance(step, Exception):
            raise step
        return httpx.Response(step, text=f"status {step}")


@pytest.fixture
def scripted_client():
    """Factory for an AsyncClient driven by a ScriptedTransport."""
    def factory(*script):
        handler = ScriptedTransport(script)
        client = httpx.AsyncClient(
            base_url="https://api.example.test",
            transport=httpx.MockTransport(handler),
        )
        return client, handler

    return factory

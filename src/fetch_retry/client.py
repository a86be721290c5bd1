"""
httpx client with retry behaviour.

Wraps a persistent ``httpx.AsyncClient`` with the retry engine so every
request method retries transport errors and retry-worthy statuses:

    async with RetryingClient("https://api.example.test", retries=2) as client:
        response = await client.get("/items", retry_on=[429, 503])
        print(response.status_code, response.retry_count)
"""

from typing import Any, Optional

import httpx
import structlog

from fetch_retry.config import Settings
from fetch_retry.config import settings as default_settings
from fetch_retry.engine import FetchRetry, fetch_builder

logger = structlog.get_logger(__name__)


class RetryingClient:
    """
    Retrying facade over ``httpx.AsyncClient``.

    Retry options given to the constructor become the client's defaults;
    the same options passed to a request method override them for that
    request only. Every other keyword argument is forwarded to
    ``httpx.AsyncClient.request`` unmodified.

    When ``client`` is given, the caller keeps ownership of it and
    ``aclose`` leaves it open.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
        **retry_defaults: Any,
    ):
        """
        Initialize retrying client.

        Args:
            base_url: Base URL for relative request URLs
            timeout: Transport timeout in seconds (default: HTTP_TIMEOUT)
            client: Existing AsyncClient to use instead of creating one
            settings: Source of built-in defaults (global settings if None)
            **retry_defaults: retries, retry_delay, retry_on, attempt_timeout
        """
        self.settings = settings or default_settings
        self.base_url = base_url
        self.timeout = timeout if timeout is not None else self.settings.HTTP_TIMEOUT

        self._client = client
        self._owns_client = client is None
        self._fetch: FetchRetry = fetch_builder(
            self._send, settings=self.settings, **retry_defaults
        )

        logger.debug(
            "Retrying client initialized",
            base_url=base_url,
            timeout=self.timeout,
            retries=self._fetch.defaults.retries,
            external_client=not self._owns_client,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
            self._owns_client = True
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        return await client.request(method, url, **kwargs)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request, retrying per the client's policy.

        Returns:
            httpx.Response with ``retry_count`` set

        Raises:
            httpx.HTTPError: Transport error after the last attempt
            AttemptTimeout: Last attempt exceeded the attempt timeout
        """
        return await self._fetch(method, url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def head(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("HEAD", url, **kwargs)

    async def options(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("OPTIONS", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def aclose(self) -> None:
        """Close the underlying AsyncClient if this instance created it."""
        if self._client is not None and self._owns_client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed httpx AsyncClient")

    async def __aenter__(self) -> "RetryingClient":
        await self._get_client()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url!r}, "
            f"timeout={self.timeout}s)"
        )

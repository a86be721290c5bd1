"""
Retrying wrapper for asynchronous HTTP request functions.

Wraps any ``async`` request callable (``httpx.AsyncClient.get``,
``aiohttp.ClientSession.get``, a hand-written transport, ...) so that
transport errors and retry-worthy response statuses are re-issued
according to a retry policy:

- retries: how many times a request may be re-issued
- retry_delay: constant seconds or ``(attempt, error, response) -> seconds``
- retry_on: status codes or ``(attempt, retries, error, response) -> bool``
- attempt_timeout: per-attempt bound, enforced by cancellation

Usage:
    >>> import httpx
    >>> from fetch_retry import fetch_builder
    >>> client = httpx.AsyncClient()
    >>> fetch = fetch_builder(client.get, retries=2, retry_delay=0.2)
    >>> response = await fetch("https://example.test", retry_on=[503])
    >>> response.retry_count
"""

from fetch_retry.client import RetryingClient
from fetch_retry.engine import FetchRetry, fetch_builder
from fetch_retry.exceptions import AttemptTimeout, FetchRetryError, InvalidRetryOption
from fetch_retry.logging_config import configure_logging
from fetch_retry.policy import (
    DEFAULT_RETRY_STATUSES,
    UNSET,
    ComputedDelay,
    ConstantDelay,
    PredicateRetry,
    RetryPolicy,
    StatusRetry,
    resolve_policy,
)

__version__ = "0.1.0"

__all__ = [
    "fetch_builder",
    "FetchRetry",
    "RetryingClient",
    "RetryPolicy",
    "ConstantDelay",
    "ComputedDelay",
    "StatusRetry",
    "PredicateRetry",
    "resolve_policy",
    "DEFAULT_RETRY_STATUSES",
    "UNSET",
    "FetchRetryError",
    "AttemptTimeout",
    "InvalidRetryOption",
    "configure_logging",
]

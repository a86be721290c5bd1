"""
Retry engine for asynchronous request functions.

This module implements FetchRetry, the callable produced by
``fetch_builder``. It wraps an opaque async request function and runs an
independent attempt loop for every call:

    1. Issue: await the request (bounded by the attempt timeout, if any)
    2. Decide: apply the retry predicate to the response or error
    3. Retry: compute the delay, sleep, and issue attempt n + 1
    4. Settle: return the response or raise the error, annotated
       with ``retry_count``

Usage:
    fetch = fetch_builder(client.get, retries=3, retry_delay=0.5)
    response = await fetch("https://example.test/items", retries=1)
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from fetch_retry.config import Settings
from fetch_retry.config import settings as default_settings
from fetch_retry.exceptions import AttemptTimeout
from fetch_retry.monitoring.metrics import (
    fetch_attempts_total,
    fetch_calls_total,
    fetch_retries_total,
    fetch_retry_delay_seconds,
)
from fetch_retry.policy import (
    POLICY_OPTIONS,
    RetryPolicy,
    resolve_policy,
    response_status,
)
from fetch_retry.state import (
    CallState,
    Phase,
    advance,
    annotate_retry_count,
    decide,
    record_error,
    record_response,
    settle,
)

logger = structlog.get_logger(__name__)

RequestFunc = Callable[..., Awaitable[Any]]


def describe(func: Any) -> str:
    """Name of a request function for logs, without calling its repr if avoidable."""
    return getattr(func, "__qualname__", None) or repr(func)


class FetchRetry:
    """
    Request function wrapped with retry behaviour.

    Has the call shape of the wrapped function plus the retry options as
    keyword arguments. Retry options are removed before the remaining
    arguments are forwarded, unmodified, to the wrapped function.

    The instance holds only the wrapped function and an immutable default
    policy, so concurrent calls share no mutable state.

    Attributes:
        request_func: The wrapped async request function
        defaults: Policy applied when a call does not override an option
    """

    def __init__(self, request_func: RequestFunc, defaults: RetryPolicy):
        self.request_func = request_func
        self.defaults = defaults
        self.__wrapped__ = request_func

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """
        Issue the request, retrying per the resolved policy.

        Returns:
            The settled response with ``retry_count`` set

        Raises:
            Exception: The settled error with ``retry_count`` set
            InvalidRetryOption: A retry option has the wrong kind of value
        """
        overrides = {name: kwargs.pop(name) for name in POLICY_OPTIONS if name in kwargs}
        policy = resolve_policy(self.defaults, overrides)

        state = CallState()
        while True:
            state = await self._issue(state, policy, args, kwargs)
            state = self._decide(state, policy)

            if state.phase is Phase.SETTLED:
                return self._settle(state)

            logger.info(
                "Retrying request",
                attempt=state.attempt,
                next_attempt=state.attempt + 1,
                retries=policy.retries,
                delay=state.delay,
                status=response_status(state.response),
                error_type=type(state.error).__name__ if state.error else None,
            )
            fetch_retries_total.inc()
            fetch_retry_delay_seconds.observe(max(state.delay, 0))

            # A zero delay still yields to the event loop once
            await asyncio.sleep(state.delay)
            state = advance(state)

    async def _issue(
        self,
        state: CallState,
        policy: RetryPolicy,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> CallState:
        """Run one attempt and record its outcome."""
        try:
            if policy.attempt_timeout is None:
                response = await self.request_func(*args, **kwargs)
            else:
                response = await self._bounded(
                    self.request_func(*args, **kwargs),
                    policy.attempt_timeout,
                    state.attempt,
                )
        except Exception as e:
            outcome = "timeout" if isinstance(e, AttemptTimeout) else "error"
            fetch_attempts_total.labels(outcome=outcome).inc()
            logger.debug(
                "Attempt failed",
                attempt=state.attempt,
                outcome=outcome,
                error_type=type(e).__name__,
                error=str(e),
            )
            return record_error(state, e)

        fetch_attempts_total.labels(outcome="response").inc()
        logger.debug(
            "Attempt returned response",
            attempt=state.attempt,
            status=response_status(response),
        )
        return record_response(state, response)

    @staticmethod
    async def _bounded(request: Awaitable[Any], timeout: float, attempt: int) -> Any:
        """
        Await ``request`` for at most ``timeout`` seconds.

        Only expiry of this bound raises AttemptTimeout; a TimeoutError
        raised by the transport itself propagates unchanged. On expiry the
        request task is cancelled and awaited before AttemptTimeout is
        raised, so no attempt outlives its bound.
        """
        task = asyncio.ensure_future(request)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except BaseException:
            task.cancel()
            raise

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.wait({task})
        if not task.cancelled():
            # Mark a late failure as retrieved; the bound has already expired
            task.exception()
        raise AttemptTimeout(timeout, attempt)

    def _decide(self, state: CallState, policy: RetryPolicy) -> CallState:
        """
        Apply the retry decision, surfacing failures of user callables.

        An error raised by a custom ``retry_on`` or ``retry_delay`` ends the
        call; it carries ``retry_count`` like any settled error.
        """
        try:
            return decide(state, policy)
        except Exception as e:
            fetch_calls_total.labels(result="rejected").inc()
            logger.error(
                "Retry decision failed",
                retry_count=state.retry_count,
                error_type=type(e).__name__,
                error=str(e),
            )
            annotate_retry_count(e, state.retry_count)
            raise

    def _settle(self, state: CallState) -> Any:
        if state.failed:
            fetch_calls_total.labels(result="rejected").inc()
            logger.warning(
                "Request failed",
                retry_count=state.retry_count,
                error_type=type(state.error).__name__,
            )
        else:
            fetch_calls_total.labels(result="resolved").inc()
            log = logger.info if state.retry_count else logger.debug
            log(
                "Request settled",
                retry_count=state.retry_count,
                status=response_status(state.response),
            )
        return settle(state)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"{describe(self.request_func)}, "
            f"retries={self.defaults.retries})"
        )


def fetch_builder(
    request_func: RequestFunc,
    *,
    retries: int | None = None,
    retry_delay: Any = None,
    retry_on: Any = None,
    attempt_timeout: float | None = None,
    settings: Settings | None = None,
) -> FetchRetry:
    """
    Wrap an async request function with retry behaviour.

    Options left as None fall back to the built-in defaults loaded from
    ``settings`` (FETCH_RETRY_* environment variables): 3 retries, a
    constant 0.5s delay, retry on errors and on 419/503/504, no attempt
    timeout.

    Args:
        request_func: Async callable ``(input, *args, **options) -> response``
        retries: Maximum retries honoured by the default predicate
        retry_delay: Seconds, or ``(attempt, error, response) -> seconds``
        retry_on: Status codes, or ``(attempt, retries, error, response) -> bool``
        attempt_timeout: Per-attempt bound in seconds
        settings: Source of the built-in defaults (global settings if None)

    Returns:
        FetchRetry with the same call shape as ``request_func``

    Raises:
        InvalidRetryOption: An option has the wrong kind of value
    """
    builtin = RetryPolicy.from_settings(settings or default_settings)
    defaults = resolve_policy(
        builtin,
        {
            "retries": retries,
            "retry_delay": retry_delay,
            "retry_on": retry_on,
            "attempt_timeout": attempt_timeout,
        },
    )

    logger.debug(
        "Built retrying request function",
        request_func=describe(request_func),
        retries=defaults.retries,
        attempt_timeout=defaults.attempt_timeout,
    )

    return FetchRetry(request_func, defaults)

"""
Retry policy types and policy resolution.

A RetryPolicy is resolved once per call by layering per-call overrides
over instance defaults over built-in defaults. Delay and retry options
accept either a constant or a callable; both are normalised here into a
single callable form so the attempt loop never branches on their type:

    retry_delay: 0.5                      -> ConstantDelay(0.5)
    retry_delay: lambda a, e, r: 2 ** a   -> ComputedDelay(func)
    retry_on:    [503, 504]               -> StatusRetry({503, 504})
    retry_on:    lambda a, n, e, r: ...   -> PredicateRetry(func)
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from fetch_retry.config import Settings
from fetch_retry.exceptions import InvalidRetryOption

DEFAULT_RETRY_STATUSES: frozenset[int] = frozenset({419, 503, 504})

POLICY_OPTIONS: tuple[str, ...] = ("retries", "retry_delay", "retry_on", "attempt_timeout")


class _Unset:
    """Marker for an option that was not supplied."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def is_unset(value: Any) -> bool:
    return value is None or value is UNSET


def response_status(response: Any) -> int | None:
    """
    Read the HTTP status of a response object.

    httpx and requests expose ``status_code``, aiohttp exposes ``status``.
    Returns None when the response carries neither.
    """
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    return status if isinstance(status, int) else None


# ============================================================================
# Delay policies
# ============================================================================


class DelayPolicy(Protocol):
    """Seconds to wait before re-issuing attempt ``attempt + 1``."""

    def __call__(
        self, attempt: int, error: BaseException | None, response: Any | None
    ) -> float:
        ...


@dataclass(frozen=True)
class ConstantDelay:
    """Wait the same number of seconds before every retry."""

    seconds: float

    def __call__(
        self, attempt: int, error: BaseException | None, response: Any | None
    ) -> float:
        return self.seconds


@dataclass(frozen=True)
class ComputedDelay:
    """Delegate the delay to ``func(attempt, error, response)``."""

    func: Callable[[int, BaseException | None, Any | None], float]

    def __call__(
        self, attempt: int, error: BaseException | None, response: Any | None
    ) -> float:
        return self.func(attempt, error, response)


# ============================================================================
# Retry predicates
# ============================================================================


class RetryPredicate(Protocol):
    """Decide whether the outcome of ``attempt`` warrants another attempt."""

    def __call__(
        self,
        attempt: int,
        retries: int,
        error: BaseException | None,
        response: Any | None,
    ) -> bool:
        ...


@dataclass(frozen=True)
class StatusRetry:
    """
    Default retry predicate.

    Retries on any error, on a missing response, or on a response whose
    status is in ``statuses``, as long as ``attempt < retries``.
    """

    statuses: frozenset[int] = DEFAULT_RETRY_STATUSES

    def __call__(
        self,
        attempt: int,
        retries: int,
        error: BaseException | None,
        response: Any | None,
    ) -> bool:
        retry_worthy = (
            error is not None
            or response is None
            or response_status(response) in self.statuses
        )
        return retry_worthy and attempt < retries


@dataclass(frozen=True)
class PredicateRetry:
    """
    Delegate the retry decision to ``func(attempt, retries, error, response)``.

    The retry ceiling is not applied on top of a custom predicate: a
    predicate that never returns False retries forever.
    """

    func: Callable[[int, int, BaseException | None, Any | None], bool]

    def __call__(
        self,
        attempt: int,
        retries: int,
        error: BaseException | None,
        response: Any | None,
    ) -> bool:
        return bool(self.func(attempt, retries, error, response))


# ============================================================================
# Option normalisation
# ============================================================================


def as_retries(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRetryOption("retries", value)
    return value


def as_delay_policy(value: Any) -> DelayPolicy:
    if isinstance(value, (ConstantDelay, ComputedDelay)):
        return value
    if isinstance(value, bool):
        raise InvalidRetryOption("retry_delay", value)
    if isinstance(value, (int, float)):
        return ConstantDelay(float(value))
    if callable(value):
        return ComputedDelay(value)
    raise InvalidRetryOption("retry_delay", value)


def as_retry_predicate(value: Any) -> RetryPredicate:
    if isinstance(value, (StatusRetry, PredicateRetry)):
        return value
    if callable(value):
        return PredicateRetry(value)
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        statuses = frozenset(value)
        if not all(isinstance(s, int) and not isinstance(s, bool) for s in statuses):
            raise InvalidRetryOption("retry_on", value)
        return StatusRetry(statuses)
    raise InvalidRetryOption("retry_on", value)


def as_attempt_timeout(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRetryOption("attempt_timeout", value)
    return float(value)


# ============================================================================
# RetryPolicy
# ============================================================================


@dataclass(frozen=True)
class RetryPolicy:
    """
    Resolved retry parameters governing one call.

    Immutable: the engine resolves a fresh policy at call entry and never
    mutates it while the attempt loop runs.

    Attributes:
        retries: Maximum number of retries honoured by the default predicate
        delay: Seconds to wait before each retry
        should_retry: Retry decision for each attempt outcome
        attempt_timeout: Per-attempt bound in seconds (None = unbounded)
    """

    retries: int = 3
    delay: DelayPolicy = field(default_factory=lambda: ConstantDelay(0.5))
    should_retry: RetryPredicate = field(default_factory=StatusRetry)
    attempt_timeout: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        """Build the built-in defaults from application settings."""
        return cls(
            retries=settings.RETRIES,
            delay=ConstantDelay(settings.RETRY_DELAY),
            should_retry=StatusRetry(frozenset(settings.RETRY_ON)),
            attempt_timeout=settings.ATTEMPT_TIMEOUT,
        )


def resolve_policy(defaults: RetryPolicy, overrides: Mapping[str, Any]) -> RetryPolicy:
    """
    Layer option overrides on top of a default policy.

    Each option is taken from ``overrides`` when present and not unset
    (``None`` or ``UNSET``), else from ``defaults``. Values are checked for
    their kind only; negative or absurd values pass through unchanged.

    Args:
        defaults: Policy supplying every option not overridden
        overrides: Mapping of option name (see POLICY_OPTIONS) to value

    Returns:
        A new RetryPolicy; ``defaults`` is left untouched

    Raises:
        InvalidRetryOption: An override has the wrong kind of value
    """
    retries = overrides.get("retries", UNSET)
    retry_delay = overrides.get("retry_delay", UNSET)
    retry_on = overrides.get("retry_on", UNSET)
    attempt_timeout = overrides.get("attempt_timeout", UNSET)

    return RetryPolicy(
        retries=defaults.retries if is_unset(retries) else as_retries(retries),
        delay=defaults.delay if is_unset(retry_delay) else as_delay_policy(retry_delay),
        should_retry=(
            defaults.should_retry if is_unset(retry_on) else as_retry_predicate(retry_on)
        ),
        attempt_timeout=(
            defaults.attempt_timeout
            if is_unset(attempt_timeout)
            else as_attempt_timeout(attempt_timeout)
        ),
    )

"""
Exceptions raised by the retry engine.

Transport errors raised by the wrapped request function are never wrapped:
they reach the caller as-is, annotated with ``retry_count``. Only attempt
timeouts are converted, so callers can tell an aborted attempt apart from
an ordinary transport failure.
"""


class FetchRetryError(Exception):
    """
    Base exception for all errors originating in fetch-retry itself.

    All package-specific exceptions inherit from this to allow catching
    them with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AttemptTimeout(FetchRetryError, TimeoutError):
    """
    Raised when a single attempt exceeds the configured attempt timeout.

    The attempt is cancelled before this is raised. It is fed into the
    retry predicate like any other error, so a timed-out attempt can
    itself be retried.

    Attributes:
        timeout: The per-attempt bound in seconds
        attempt: Zero-based index of the aborted attempt
        aborted: Always True
    """

    aborted = True

    def __init__(self, timeout: float, attempt: int):
        self.timeout = timeout
        self.attempt = attempt
        super().__init__(
            f"Attempt {attempt} aborted after {timeout}s",
            {"timeout": timeout, "attempt": attempt},
        )


class InvalidRetryOption(FetchRetryError, TypeError):
    """
    Raised when a retry option has the wrong kind of value.

    E.g. ``retry_delay="fast"`` or ``retry_on=503``. Detected during
    policy resolution, before any request is issued.
    """

    def __init__(self, option: str, value: object):
        self.option = option
        self.value = value
        super().__init__(
            f"Invalid value for {option}: {value!r}",
            {"option": option, "value_type": type(value).__name__},
        )

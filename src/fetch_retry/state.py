"""
Per-call attempt state and its transitions.

One CallState belongs to exactly one call. It is immutable; every
transition takes a state and returns the next one, so the attempt loop
holds no mutable closure state and each step can be tested on its own.

    ISSUING(n) -> DECIDING(n) -> RETRYING(n) -> ISSUING(n + 1)
                              -> SETTLED(n)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from fetch_retry.policy import RetryPolicy


class Phase(str, Enum):
    ISSUING = "issuing"
    DECIDING = "deciding"
    RETRYING = "retrying"
    SETTLED = "settled"


@dataclass(frozen=True)
class CallState:
    """
    Snapshot of one call's attempt loop.

    Attributes:
        attempt: Zero-based index of the current attempt
        phase: Current position in the state machine
        response: Response of the current attempt (None on error)
        error: Error raised by the current attempt (None on response)
        delay: Seconds to wait before the next attempt (RETRYING only)
    """

    attempt: int = 0
    phase: Phase = Phase.ISSUING
    response: Any = None
    error: BaseException | None = None
    delay: float | None = None

    def __post_init__(self) -> None:
        """Validate state invariants."""
        if self.attempt < 0:
            raise ValueError("attempt must be >= 0")

        if self.error is not None and self.response is not None:
            raise ValueError("an attempt has either a response or an error, not both")

        if self.phase is Phase.RETRYING and self.delay is None:
            raise ValueError("RETRYING requires a computed delay")

    @property
    def retry_count(self) -> int:
        return self.attempt

    @property
    def failed(self) -> bool:
        return self.error is not None


def _expect(state: CallState, phase: Phase) -> None:
    if state.phase is not phase:
        raise ValueError(f"expected phase {phase.value}, got {state.phase.value}")


def record_response(state: CallState, response: Any) -> CallState:
    _expect(state, Phase.ISSUING)
    return replace(state, phase=Phase.DECIDING, response=response, error=None)


def record_error(state: CallState, error: BaseException) -> CallState:
    _expect(state, Phase.ISSUING)
    return replace(state, phase=Phase.DECIDING, response=None, error=error)


def decide(state: CallState, policy: RetryPolicy) -> CallState:
    """
    Apply the retry predicate to the current outcome.

    The delay policy is consulted only when the predicate asks for a
    retry, so a settling outcome never computes a delay.
    """
    _expect(state, Phase.DECIDING)

    if not policy.should_retry(state.attempt, policy.retries, state.error, state.response):
        return replace(state, phase=Phase.SETTLED)

    delay = policy.delay(state.attempt, state.error, state.response)
    return replace(state, phase=Phase.RETRYING, delay=delay)


def advance(state: CallState) -> CallState:
    _expect(state, Phase.RETRYING)
    return CallState(attempt=state.attempt + 1)


def annotate_retry_count(outcome: Any, retry_count: int) -> Any:
    """Attach ``retry_count`` to a response or exception and return it."""
    setattr(outcome, "retry_count", retry_count)
    return outcome


def settle(state: CallState) -> Any:
    """
    Surface the settled outcome.

    Returns the response, or raises the error, annotated with the number
    of retries performed.
    """
    _expect(state, Phase.SETTLED)

    if state.error is not None:
        raise annotate_retry_count(state.error, state.retry_count)
    return annotate_retry_count(state.response, state.retry_count)

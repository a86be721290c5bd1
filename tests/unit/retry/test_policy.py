"""
Unit tests for retry policy types and policy resolution.
"""

from types import SimpleNamespace

import httpx
import pytest

from fetch_retry.exceptions import InvalidRetryOption
from fetch_retry.policy import (
    DEFAULT_RETRY_STATUSES,
    UNSET,
    ComputedDelay,
    ConstantDelay,
    PredicateRetry,
    RetryPolicy,
    StatusRetry,
    as_delay_policy,
    as_retry_predicate,
    resolve_policy,
    response_status,
)


# ============================================================================
# Default Predicate
# ============================================================================


@pytest.mark.parametrize("status", sorted(DEFAULT_RETRY_STATUSES))
def test_status_retry_retries_listed_statuses(status):
    """419, 503 and 504 are retry-worthy by default."""
    predicate = StatusRetry()

    assert predicate(0, 3, None, httpx.Response(status)) is True


def test_status_retry_settles_on_other_statuses():
    predicate = StatusRetry()

    assert predicate(0, 3, None, httpx.Response(200)) is False
    assert predicate(0, 3, None, httpx.Response(500)) is False


def test_status_retry_retries_errors_and_missing_responses():
    predicate = StatusRetry()

    assert predicate(0, 3, ConnectionError("down"), None) is True
    assert predicate(0, 3, None, None) is True


def test_status_retry_enforces_ceiling():
    """attempt < retries must hold, whatever the outcome."""
    predicate = StatusRetry()

    assert predicate(2, 3, ConnectionError("down"), None) is True
    assert predicate(3, 3, ConnectionError("down"), None) is False
    assert predicate(0, 0, None, httpx.Response(503)) is False


def test_status_retry_ignores_responses_without_status():
    """A response object with no status is not retry-worthy."""
    predicate = StatusRetry()

    assert predicate(0, 3, None, object()) is False


def test_predicate_retry_delegates_without_ceiling():
    predicate = PredicateRetry(lambda attempt, retries, error, response: True)

    assert predicate(100, 1, None, httpx.Response(200)) is True


def test_response_status_prefers_status_code():
    assert response_status(httpx.Response(418)) == 418
    assert response_status(SimpleNamespace(status=502)) == 502
    assert response_status(SimpleNamespace()) is None


# ============================================================================
# Delay Policies
# ============================================================================


def test_constant_delay_ignores_outcome():
    delay = ConstantDelay(0.5)

    assert delay(0, None, None) == 0.5
    assert delay(7, ConnectionError("down"), None) == 0.5


def test_computed_delay_receives_outcome():
    seen = []

    def backoff(attempt, error, response):
        seen.append((attempt, error, response))
        return attempt * 2

    delay = ComputedDelay(backoff)

    assert delay(3, None, "r") == 6
    assert seen == [(3, None, "r")]


def test_as_delay_policy_normalises_values():
    assert as_delay_policy(1) == ConstantDelay(1.0)
    assert isinstance(as_delay_policy(lambda a, e, r: 0), ComputedDelay)

    existing = ConstantDelay(2.0)
    assert as_delay_policy(existing) is existing


@pytest.mark.parametrize("value", ["fast", True, [1, 2]])
def test_as_delay_policy_rejects_bad_values(value):
    with pytest.raises(InvalidRetryOption) as exc_info:
        as_delay_policy(value)

    assert exc_info.value.option == "retry_delay"
    assert isinstance(exc_info.value, TypeError)


def test_as_retry_predicate_normalises_values():
    assert as_retry_predicate([500, 502]) == StatusRetry(frozenset({500, 502}))
    assert as_retry_predicate(()) == StatusRetry(frozenset())
    assert isinstance(as_retry_predicate(lambda a, n, e, r: False), PredicateRetry)


@pytest.mark.parametrize("value", [503, "503", ["503"]])
def test_as_retry_predicate_rejects_bad_values(value):
    with pytest.raises(InvalidRetryOption):
        as_retry_predicate(value)


# ============================================================================
# Policy Resolution
# ============================================================================


def test_builtin_policy_defaults():
    policy = RetryPolicy()

    assert policy.retries == 3
    assert policy.delay == ConstantDelay(0.5)
    assert policy.should_retry == StatusRetry(DEFAULT_RETRY_STATUSES)
    assert policy.attempt_timeout is None


def test_policy_from_settings(test_settings):
    test_settings.RETRIES = 5
    test_settings.RETRY_DELAY = 0.25
    test_settings.RETRY_ON = [429]
    test_settings.ATTEMPT_TIMEOUT = 2.0

    policy = RetryPolicy.from_settings(test_settings)

    assert policy == RetryPolicy(
        retries=5,
        delay=ConstantDelay(0.25),
        should_retry=StatusRetry(frozenset({429})),
        attempt_timeout=2.0,
    )


def test_resolve_policy_without_overrides_keeps_defaults():
    defaults = RetryPolicy(retries=1, attempt_timeout=3.0)

    assert resolve_policy(defaults, {}) == defaults


def test_resolve_policy_treats_none_and_unset_as_missing():
    defaults = RetryPolicy(retries=1, attempt_timeout=3.0)

    resolved = resolve_policy(
        defaults,
        {"retries": None, "retry_delay": UNSET, "retry_on": None, "attempt_timeout": UNSET},
    )

    assert resolved == defaults


def test_resolve_policy_overrides_each_option():
    defaults = RetryPolicy()
    predicate = lambda attempt, retries, error, response: False  # noqa: E731

    resolved = resolve_policy(
        defaults,
        {"retries": 0, "retry_delay": 0, "retry_on": predicate, "attempt_timeout": 1},
    )

    assert resolved.retries == 0
    assert resolved.delay == ConstantDelay(0.0)
    assert resolved.should_retry == PredicateRetry(predicate)
    assert resolved.attempt_timeout == 1.0
    assert defaults == RetryPolicy()


def test_resolve_policy_passes_negative_values_through():
    """No range validation: only the kind of a value is checked."""
    resolved = resolve_policy(RetryPolicy(), {"retries": -1, "retry_delay": -5})

    assert resolved.retries == -1
    assert resolved.delay == ConstantDelay(-5.0)


def test_resolve_policy_rejects_wrong_kind():
    with pytest.raises(InvalidRetryOption) as exc_info:
        resolve_policy(RetryPolicy(), {"retries": "3"})

    assert exc_info.value.details == {"option": "retries", "value_type": "str"}


def test_unset_is_a_falsy_singleton():
    assert repr(UNSET) == "UNSET"
    assert not UNSET
    assert type(UNSET)() is UNSET

"""Tests for retry classification and backoff delays."""

from unittest.mock import MagicMock

import pytest

from tuplebatch.batch.retry import ErrorKind, RetryPolicy
from tuplebatch.core.exceptions import (
    AuthenticationError,
    ClientRequestError,
    NetworkError,
    RateLimitError,
    ValidationError,
)


@pytest.fixture
def policy():
    """Policy without jitter for exact delay assertions."""
    return RetryPolicy(
        retry_delay_seconds=0.5,
        rate_limit_delay_seconds=5.0,
        jitter=lambda low, high: 0.0,
    )


@pytest.mark.parametrize(
    "error,kind",
    [
        (ValidationError("bad tuple", status_code=400), ErrorKind.FATAL),
        (AuthenticationError("nope", status_code=401), ErrorKind.FATAL),
        (ClientRequestError("conflict", status_code=409), ErrorKind.FATAL),
        (RuntimeError("unexpected"), ErrorKind.FATAL),
        (NetworkError("reset"), ErrorKind.TRANSIENT),
        (NetworkError("bad gateway", status_code=502), ErrorKind.TRANSIENT),
        (RateLimitError("slow down"), ErrorKind.RATE_LIMITED),
        (RateLimitError("maintenance", status_code=503, maintenance=True), ErrorKind.RATE_LIMITED),
    ],
)
def test_classify(error, kind):
    """Errors map onto the three retry treatments."""
    assert RetryPolicy.classify(error) == kind


def test_transient_delay_doubles_per_attempt(policy):
    """delay = base * 2**(attempt-1)."""
    delays = [policy.delay_for(attempt, ErrorKind.TRANSIENT) for attempt in (1, 2, 3, 4)]

    assert delays == [0.5, 1.0, 2.0, 4.0]


def test_transient_jitter_bounded_by_ten_percent():
    """Jitter is drawn from [0, delay * 0.1]."""
    calls = []

    def jitter(low, high):
        calls.append((low, high))
        return high

    policy = RetryPolicy(retry_delay_seconds=1.0, jitter=jitter)

    assert policy.delay_for(3, ErrorKind.TRANSIENT) == pytest.approx(4.4)
    assert calls == [(0.0, pytest.approx(0.4))]


def test_transient_delay_with_real_jitter_stays_in_range():
    """Default random jitter stays within bounds."""
    policy = RetryPolicy(retry_delay_seconds=1.0)

    for _ in range(50):
        assert 2.0 <= policy.delay_for(2, ErrorKind.TRANSIENT) <= 2.2


def test_rate_limited_delay_is_fixed(policy):
    """Rate-limited delay does not grow with attempts."""
    delays = {policy.delay_for(attempt, ErrorKind.RATE_LIMITED) for attempt in range(1, 6)}

    assert delays == {5.0}


def test_rate_limited_delay_honors_retry_after(policy):
    """Server Retry-After overrides the fixed delay, clamped to [1, 120]."""
    assert policy.delay_for(1, ErrorKind.RATE_LIMITED, RateLimitError("x", retry_after=30)) == 30.0
    assert policy.delay_for(1, ErrorKind.RATE_LIMITED, RateLimitError("x", retry_after=0.2)) == 1.0
    capped = policy.delay_for(1, ErrorKind.RATE_LIMITED, RateLimitError("x", retry_after=600))
    assert capped == 120.0


def test_fatal_has_no_delay(policy):
    """Fatal errors are never waited on."""
    assert policy.delay_for(1, ErrorKind.FATAL) == 0.0


def test_zero_base_delay_means_no_wait():
    """retry_delay_seconds=0 retries immediately."""
    assert RetryPolicy(retry_delay_seconds=0.0).delay_for(5, ErrorKind.TRANSIENT) == 0.0


def test_tenacity_hooks(policy):
    """should_retry and wait read tenacity's retry state."""
    assert policy.should_retry(NetworkError("reset")) is True
    assert policy.should_retry(ValidationError("bad")) is False

    retry_state = MagicMock()
    retry_state.attempt_number = 2
    retry_state.outcome.exception.return_value = NetworkError("reset")

    assert policy.wait(retry_state) == 1.0

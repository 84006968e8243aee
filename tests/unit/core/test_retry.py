"""Unit tests for the retry state machine."""

from __future__ import annotations

import asyncio

import pytest

from subtl_core.ports.llm import BadResponseError, TransportError
from subtl_core.retry import (
    Attempting,
    Fatal,
    RetryPolicy,
    RetryWait,
    Success,
    compute_backoff,
    next_state,
    run_with_retry,
)
from subtl_schemas.config import RetryConfig

POLICY = RetryPolicy(max_retries=2, min_delay_s=0.2, backoff_s=0.2, max_backoff_s=10.0)


def test_policy_from_config() -> None:
    """Policies mirror retry configuration."""
    policy = RetryPolicy.from_config(RetryConfig(max_retries=3))

    assert policy.max_retries == 3
    assert policy.max_attempts == 4
    assert policy.max_backoff_s == 10.0


def test_next_state_transitions() -> None:
    """Attempts lead to success, a retry wait, or a fatal stop."""
    assert next_state(Attempting(1), succeeded=True, policy=POLICY) == Success(1)
    assert next_state(Attempting(1), succeeded=False, policy=POLICY) == RetryWait(
        attempt=2, delay_s=compute_backoff(1, POLICY)
    )
    assert isinstance(
        next_state(Attempting(3), succeeded=False, policy=POLICY), Fatal
    )


def test_backoff_grows_and_is_capped() -> None:
    """Backoff doubles per attempt and never exceeds the cap."""
    delays = [compute_backoff(attempt, POLICY) for attempt in range(1, 10)]

    assert delays[:3] == [pytest.approx(0.4), pytest.approx(0.8), pytest.approx(1.6)]
    assert all(later >= earlier for earlier, later in zip(delays, delays[1:]))
    assert max(delays) == 10.0


def test_run_with_retry_recovers_after_failures() -> None:
    """A transient failure is retried and the later result returned."""
    sleeps: list[float] = []
    attempts: list[int] = []
    retries: list[tuple[int, float]] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    async def operation(attempt: int) -> str:
        attempts.append(attempt)
        if attempt < 3:
            raise TransportError("connection reset")
        return "ok"

    async def on_retry(attempt: int, delay_s: float, _error: Exception) -> None:
        retries.append((attempt, delay_s))

    result = asyncio.run(
        run_with_retry(operation, POLICY, sleep=fake_sleep, on_retry=on_retry)
    )

    assert result == "ok"
    assert attempts == [1, 2, 3]
    assert retries == [(1, pytest.approx(0.4)), (2, pytest.approx(0.8))]
    assert sleeps == [
        0.2,
        pytest.approx(0.4),
        0.2,
        pytest.approx(0.8),
        0.2,
    ]


def test_run_with_retry_raises_last_error_when_exhausted() -> None:
    """After max retries the final failure propagates."""
    calls = 0

    async def fake_sleep(_seconds: float) -> None:
        return None

    async def operation(_attempt: int) -> str:
        nonlocal calls
        calls += 1
        raise BadResponseError(f"empty body {calls}")

    with pytest.raises(BadResponseError, match="empty body 3"):
        asyncio.run(run_with_retry(operation, POLICY, sleep=fake_sleep))

    assert calls == POLICY.max_attempts


def test_run_with_retry_does_not_retry_unexpected_errors() -> None:
    """Errors outside the translation taxonomy are not retried."""
    calls = 0

    async def fake_sleep(_seconds: float) -> None:
        return None

    async def operation(_attempt: int) -> str:
        nonlocal calls
        calls += 1
        raise KeyError("bug")

    with pytest.raises(KeyError):
        asyncio.run(run_with_retry(operation, POLICY, sleep=fake_sleep))

    assert calls == 1


def test_zero_min_delay_skips_pacing_sleep() -> None:
    """No pacing sleep happens when the minimum delay is zero."""
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    async def operation(_attempt: int) -> int:
        return 7

    policy = RetryPolicy(max_retries=0, min_delay_s=0, backoff_s=1, max_backoff_s=1)

    assert asyncio.run(run_with_retry(operation, policy, sleep=fake_sleep)) == 7
    assert sleeps == []

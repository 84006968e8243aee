"""Retry state machine for remote translation calls.

A batch request moves through ``Attempting(n)`` and lands in ``Success``,
``RetryWait(n + 1)`` or ``Fatal``. Sleeping is injected so the schedule can
be exercised without real time.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from subtl_core.ports.llm import TranslationError
from subtl_schemas.config import RetryConfig

BACKOFF_EXPONENT_CAP = 6

type SleepFn = Callable[[float], Awaitable[None]]
type RetryCallback = Callable[[int, float, TranslationError], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Resolved retry settings."""

    max_retries: int
    min_delay_s: float
    backoff_s: float
    max_backoff_s: float

    @classmethod
    def from_config(cls, config: RetryConfig) -> RetryPolicy:
        """Build a policy from retry configuration.

        Args:
            config: Retry configuration.

        Returns:
            RetryPolicy: Resolved policy.
        """
        return cls(
            max_retries=config.max_retries,
            min_delay_s=config.min_delay_s,
            backoff_s=config.backoff_s,
            max_backoff_s=config.max_backoff_s,
        )

    @property
    def max_attempts(self) -> int:
        """Return the total number of attempts allowed."""
        return self.max_retries + 1


@dataclass(frozen=True, slots=True)
class Attempting:
    """A request attempt is in flight."""

    attempt: int


@dataclass(frozen=True, slots=True)
class Success:
    """The attempt produced a usable result."""

    attempt: int


@dataclass(frozen=True, slots=True)
class RetryWait:
    """The attempt failed; wait ``delay_s`` before attempt ``attempt``."""

    attempt: int
    delay_s: float


@dataclass(frozen=True, slots=True)
class Fatal:
    """The attempt failed and no retries remain."""

    attempt: int


def compute_backoff(attempt: int, policy: RetryPolicy) -> float:
    """Return the backoff delay after a failed attempt.

    Args:
        attempt: 1-based number of the attempt that failed.
        policy: Retry policy.

    Returns:
        float: Delay in seconds, capped at ``max_backoff_s``.
    """
    exponent = min(attempt, BACKOFF_EXPONENT_CAP)
    return min(policy.backoff_s * 2**exponent, policy.max_backoff_s)


def next_state(
    state: Attempting, *, succeeded: bool, policy: RetryPolicy
) -> Success | RetryWait | Fatal:
    """Advance the state machine after an attempt finishes.

    Args:
        state: Attempt that just finished.
        succeeded: Whether the attempt produced a usable result.
        policy: Retry policy.

    Returns:
        Success | RetryWait | Fatal: Next state.
    """
    if succeeded:
        return Success(attempt=state.attempt)
    if state.attempt <= policy.max_retries:
        return RetryWait(
            attempt=state.attempt + 1,
            delay_s=compute_backoff(state.attempt, policy),
        )
    return Fatal(attempt=state.attempt)


async def run_with_retry[T](
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: SleepFn = asyncio.sleep,
    on_retry: RetryCallback | None = None,
) -> T:
    """Run an operation until it succeeds or retries are exhausted.

    Every attempt waits ``min_delay_s`` first to pace requests. Only
    :class:`TranslationError` failures are retried.

    Args:
        operation: Coroutine factory receiving the 1-based attempt number.
        policy: Retry policy.
        sleep: Sleep function used for pacing and backoff.
        on_retry: Optional callback invoked as ``(failed_attempt, delay_s,
            error)`` before each backoff sleep.

    Returns:
        T: Result of the first successful attempt.

    Raises:
        TranslationError: The last failure once retries are exhausted.
    """
    state = Attempting(attempt=1)
    while True:
        if policy.min_delay_s > 0:
            await sleep(policy.min_delay_s)
        try:
            result = await operation(state.attempt)
        except TranslationError as exc:
            outcome = next_state(state, succeeded=False, policy=policy)
            if not isinstance(outcome, RetryWait):
                raise
            if on_retry is not None:
                await on_retry(state.attempt, outcome.delay_s, exc)
            await sleep(outcome.delay_s)
            state = Attempting(attempt=outcome.attempt)
        else:
            return result

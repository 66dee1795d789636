import asyncio
import random
import sys
from typing import Awaitable, Callable, TypeVar

from feedgrab.core.config import RetryPolicy
from feedgrab.fetch.backoff import calculate_backoff_delay
from feedgrab.fetch.base import AttemptOutcome, RetryState

T = TypeVar("T")


async def with_retry(
    name: str,
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    random_source: Callable[[], float] = random.random,
) -> T:
    """
    Await ``operation`` until it succeeds or ``policy.max_retries`` attempts are used.

    Failures are followed by a backoff sleep, except after the last attempt.
    When every attempt fails the last exception is re-raised as-is, with the
    attempt count recorded on it (``retry_attempts``, ``retry_name`` and a note)
    and every failed attempt listed in ``retry_outcomes``.
    """
    state = RetryState()

    while state.attempt < policy.max_retries:
        state.attempt += 1
        try:
            return await operation()
        except Exception as e:
            state.last_error = e
            state.outcomes.append(
                AttemptOutcome(state.attempt, error=e, snapshot=getattr(e, "snapshot", None))
            )
            print(
                f"{name} attempt {state.attempt}/{policy.max_retries} failed: {e}",
                file=sys.stderr,
            )
            if state.attempt < policy.max_retries:
                delay_ms = calculate_backoff_delay(state.attempt, policy, random_source)
                print(f"RETRYING {name} in {delay_ms / 1000:.1f}s...")
                await sleep(delay_ms / 1000)

    error = state.last_error
    if error is None:
        raise ValueError(f"{name}: max_retries must be >= 1, got {policy.max_retries}")
    error.retry_name = name
    error.retry_attempts = state.attempt
    error.retry_outcomes = state.outcomes
    error.add_note(f"{name} gave up after {state.attempt} attempt(s)")
    raise error

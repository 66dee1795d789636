import random
from typing import Callable

from feedgrab.core.config import RetryPolicy


def calculate_backoff_delay(
    attempt: int,
    policy: RetryPolicy,
    random_source: Callable[[], float] = random.random,
) -> int:
    """
    Delay in milliseconds to wait after ``attempt`` (1-based) failed.

    Exponential growth from ``initial_delay_ms``, capped at ``max_delay_ms``,
    then spread by +/- ``jitter_factor`` of the capped value. ``random_source``
    must return a float in [0, 1); pass a fixed one for deterministic delays.
    """
    try:
        base_delay = policy.initial_delay_ms * policy.multiplier ** (attempt - 1)
    except OverflowError:
        base_delay = float("inf") if policy.initial_delay_ms else 0
    capped_delay = min(base_delay, policy.max_delay_ms)
    jitter = capped_delay * policy.jitter_factor * (random_source() * 2 - 1)
    return max(0, round(capped_delay + jitter))

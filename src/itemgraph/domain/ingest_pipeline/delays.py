"""Pure pacing functions for batch scheduling and throttle backoff."""

from __future__ import annotations

ERROR_BACKOFF_FACTOR = 1.5
MAX_ERROR_STEPS = 4


def next_delay(
    base_delay: float,
    error_count: int,
    *,
    max_delay: float = 15.0,
) -> float:
    """Return the pause before the next batch.

    Grows by ``1.5**errors`` (at most four steps) once the upstream API has
    reported failures, capped at ``max_delay``. With no errors it is exactly
    ``base_delay``.
    """

    if error_count <= 0:
        return min(base_delay, max_delay)
    multiplier = ERROR_BACKOFF_FACTOR ** min(error_count, MAX_ERROR_STEPS)
    return min(base_delay * multiplier, max_delay)


def exponential_backoff(attempt: int, *, base: float, cap: float) -> float:
    """Delay before retry ``attempt`` (1-based): ``base * 2**(attempt-1)``, capped."""

    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    return min(base * 2 ** (attempt - 1), cap)

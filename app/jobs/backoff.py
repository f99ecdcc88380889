"""Retry backoff policy for failed publish attempts."""

import random
from datetime import timedelta

DEFAULT_CAP_SECONDS = 60
DEFAULT_JITTER_MS = 1000


def base_delay_seconds(attempts: int, cap_seconds: int = DEFAULT_CAP_SECONDS) -> int:
    """Exponential base delay before jitter: min(cap, 2^attempts).

    ``attempts`` is the attempt count after the failed attempt was recorded.
    """
    if attempts < 0:
        raise ValueError("attempts must be non-negative")
    # 2**6 already exceeds the default cap; avoid huge ints for large counts
    if attempts >= cap_seconds.bit_length():
        return cap_seconds
    return min(cap_seconds, 2**attempts)


def backoff_delay(
    attempts: int,
    cap_seconds: int = DEFAULT_CAP_SECONDS,
    jitter_ms: int = DEFAULT_JITTER_MS,
) -> timedelta:
    """Base delay plus uniform jitter in [0, jitter_ms) milliseconds."""
    jitter = random.randrange(jitter_ms) if jitter_ms > 0 else 0
    return timedelta(
        seconds=base_delay_seconds(attempts, cap_seconds), milliseconds=jitter
    )

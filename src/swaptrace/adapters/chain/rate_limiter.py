import random
import time
from typing import Optional


class SimpleRateLimiter:
    """Spaces calls at least 1/requests_per_sec apart."""

    def __init__(self, requests_per_sec: float) -> None:
        if requests_per_sec <= 0:
            raise ValueError("requests_per_sec must be > 0")
        self._min_interval = 1.0 / requests_per_sec
        self._last_ts: Optional[float] = None

    def wait(self) -> None:
        now = time.monotonic()
        if self._last_ts is not None:
            sleep_for = self._min_interval - (now - self._last_ts)
            if sleep_for > 0:
                time.sleep(sleep_for)
        self._last_ts = time.monotonic()


def backoff_delay(attempt: int, base: float = 0.3, cap: float = 8.0) -> float:
    # exponential with +-30% jitter
    t = min(cap, base * (2 ** attempt))
    return t * (0.7 + random.random() * 0.6)


def backoff_sleep(attempt: int, base: float = 0.3, cap: float = 8.0) -> None:
    time.sleep(backoff_delay(attempt, base, cap))


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500

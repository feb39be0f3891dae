"""Exponential backoff used to pace request and read retries."""
from __future__ import annotations

from typing import Optional

from tenacity import RetryCallState
from tenacity.wait import wait_base

__all__ = ["ExponentialBackoff"]


class ExponentialBackoff(wait_base):
    """
    Wait ``base * 2**attempt`` seconds before the next attempt.

    ``attempt`` counts failed attempts so far, so the first retry waits
    ``2 * base``. Usable directly as a tenacity ``wait=`` strategy.
    """

    def __init__(self, base: float = 0.6, max_delay: Optional[float] = None) -> None:
        if base < 0:
            raise ValueError(f"base must be non-negative, got {base}")
        self.base = base
        self.max_delay = max_delay

    def delay(self, attempt: int) -> float:
        delay = self.base * 2 ** attempt
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.delay(retry_state.attempt_number)

    def __repr__(self) -> str:
        return f"ExponentialBackoff(base={self.base}, max_delay={self.max_delay})"

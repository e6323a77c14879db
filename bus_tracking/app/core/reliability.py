"""
Circuit breaker for calls to the event bus.

After ``failure_threshold`` consecutive failures the breaker opens and
rejects calls with CircuitOpenError. Once ``reset_timeout`` seconds have
passed one trial call is let through (half-open): success closes the
breaker, failure opens it again.
"""

import time
from typing import Any, Awaitable, Callable

CLOSED = "CLOSED"
OPEN = "OPEN"
HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:

    def __init__(self, failure_threshold: int = 5, reset_timeout: float = 60):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.failures = 0
        self.opened_at = 0.0
        self.state = CLOSED

    def _allow(self) -> bool:
        if self.state != OPEN:
            return True
        if time.monotonic() - self.opened_at > self.reset_timeout:
            self.state = HALF_OPEN
            return True
        return False

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        if not self._allow():
            raise CircuitOpenError(f"Circuit open for {self.reset_timeout}s after {self.failures} failures")

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise

        self.reset_state()
        return result

    def record_failure(self) -> None:
        self.failures += 1
        if self.state == HALF_OPEN or self.failures >= self.failure_threshold:
            self.state = OPEN
            self.opened_at = time.monotonic()

    def reset_state(self) -> None:
        self.failures = 0
        self.state = CLOSED

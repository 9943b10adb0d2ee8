"""
Bounded retry with exponential backoff and jitter, keyed by operation.

Attempt counters are kept per operation key and shared by concurrent callers
of the same key. A key's counter resets when more than ten base delays have
passed since its last attempt, and is dropped on success or exhaustion.
"""

import asyncio
import logging
import random
import threading
import time
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from app.core.errors import RetryExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")

RESET_AFTER_BASE_DELAYS = 10


class _RetryState:
    __slots__ = ("attempts", "last_attempt")

    def __init__(self) -> None:
        self.attempts = 0
        self.last_attempt = 0.0


class RetryPolicy:
    """
    Args:
        max_attempts: Total attempts per operation key (first call included)
        base_delay: Seconds before the first retry; doubles on each retry
        max_jitter: Upper bound of the uniform random jitter added to each delay
        jitter: Jitter function override (seconds); defaults to uniform(0, max_jitter)
        clock: Time source used for the reset window
        sleep: Async sleep used between attempts
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_jitter: float = 1.0,
        jitter: Optional[Callable[[], float]] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._jitter = jitter or (lambda: random.uniform(0.0, max_jitter))
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._state: Dict[str, _RetryState] = {}
        self._lock = threading.Lock()

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based), jitter included."""
        return self.base_delay * (2 ** (attempt - 1)) + self._jitter()

    def attempts(self, key: str) -> int:
        with self._lock:
            state = self._state.get(key)
            return state.attempts if state else 0

    def clear(self, key: str) -> None:
        with self._lock:
            self._state.pop(key, None)

    def _begin_attempt(self, key: str) -> Optional[int]:
        with self._lock:
            state = self._state.setdefault(key, _RetryState())
            now = self._clock()
            if now - state.last_attempt > self.base_delay * RESET_AFTER_BASE_DELAYS:
                state.attempts = 0
            if state.attempts >= self.max_attempts:
                self._state.pop(key, None)
                return None
            state.attempts += 1
            state.last_attempt = now
            return state.attempts

    async def execute(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run operation until it succeeds or the attempts for key are used up.

        Raises:
            RetryExhausted: every allowed attempt failed; carries the last error
        """
        last_error: Optional[BaseException] = None
        while True:
            attempt = self._begin_attempt(key)
            if attempt is None:
                raise RetryExhausted(key, self.max_attempts, last_error)

            try:
                result = await operation()
            except Exception as exc:
                last_error = exc
                if attempt >= self.max_attempts:
                    self.clear(key)
                    logger.warning("Operation %s failed after %d attempts: %s", key, attempt, exc)
                    raise RetryExhausted(key, attempt, exc) from exc
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "Operation %s failed (attempt %d/%d): %s; retrying in %.2fs",
                    key, attempt, self.max_attempts, exc, delay,
                )
                await self._sleep(delay)
                continue

            self.clear(key)
            return result

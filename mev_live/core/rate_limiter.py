"""Sliding-window rate limiter for RPC calls."""

import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

from ..config.thresholds import (
    RATE_LIMIT_POLL_SECONDS,
    RATE_LIMIT_WINDOW_SECONDS,
    RPC_MAX_CALLS_PER_SECOND,
)


class RateLimiter:
    """Allows at most max_calls acquisitions per sliding window.

    Thread-safe. Callers block in acquire() until a slot frees up or the
    timeout elapses.
    """

    def __init__(
        self,
        max_calls: int = RPC_MAX_CALLS_PER_SECOND,
        window: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_calls < 1:
            raise ValueError(f"max_calls must be >= 1, got {max_calls}")
        self.max_calls = max_calls
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._calls: Deque[float] = deque()
        self._lock = threading.Lock()

    def _expire(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.window:
            self._calls.popleft()

    def try_acquire(self) -> bool:
        """Take a slot if one is free right now."""
        with self._lock:
            now = self._clock()
            self._expire(now)
            if len(self._calls) < self.max_calls:
                self._calls.append(now)
                return True
            return False

    def acquire(self, timeout: Optional[float] = None) -> bool:
        """Block until a slot is taken.

        Returns:
            True when a slot was taken, False if timeout elapsed first.
        """
        deadline = None if timeout is None else self._clock() + timeout
        while True:
            if self.try_acquire():
                return True
            if deadline is not None and self._clock() >= deadline:
                return False
            self._sleep(RATE_LIMIT_POLL_SECONDS)

    def in_window(self) -> int:
        """Calls currently counted against the window."""
        with self._lock:
            self._expire(self._clock())
            return len(self._calls)

"""In-process fixed window rate limiting keyed by client address.

Counters live in the limiter instance, which the application factory creates
and stores on ``app.state``. Nothing is persisted, so a restart clears every
window.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable


class RateLimitExceeded(Exception):
    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_hits: int,
        window_seconds: float,
        message: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_hits < 1:
            raise ValueError("max_hits must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_hits = max_hits
        self.window_seconds = window_seconds
        self.message = message
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_sweep = 0.0

    def _live(self, key: str, now: float) -> _Window | None:
        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            return None
        return window

    def _evict_expired(self, now: float) -> None:
        if now < self._next_sweep:
            return
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        self._next_sweep = now + self.window_seconds

    def _current(self, key: str, now: float) -> _Window:
        window = self._live(key, now)
        if window is None:
            self._evict_expired(now)
            window = _Window(count=0, reset_at=now + self.window_seconds)
            self._windows[key] = window
        return window

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _raise_if_full(self, window: _Window, now: float) -> None:
        if window.count >= self.max_hits:
            retry_after = max(1, math.ceil(window.reset_at - now))
            raise RateLimitExceeded(self.message, retry_after)

    def check(self, key: str) -> None:
        """Raise RateLimitExceeded if the key has used up its window."""
        with self._lock:
            now = self._clock()
            window = self._live(key, now)
            if window is not None:
                self._raise_if_full(window, now)

    def hit(self, key: str) -> int:
        with self._lock:
            window = self._current(key, self._clock())
            window.count += 1
            return window.count

    def consume(self, key: str) -> int:
        """Check and count one hit atomically."""
        with self._lock:
            now = self._clock()
            window = self._current(key, now)
            self._raise_if_full(window, now)
            window.count += 1
            return window.count

    def remaining(self, key: str) -> int:
        with self._lock:
            window = self._live(key, self._clock())
            if window is None:
                return self.max_hits
            return max(0, self.max_hits - window.count)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

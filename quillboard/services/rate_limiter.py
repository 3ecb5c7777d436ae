"""Rate limiting for status-change submissions.

The workflow depends only on ``check(key) -> bool``. This in-memory sliding
window is the default backend; a shared-cache implementation can be injected
in its place.
"""

import logging
import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Protocol

logger = logging.getLogger(__name__)


class RateLimiterProtocol(Protocol):
    def check(self, key: str) -> bool: ...


class RateLimiter:
    """
    In-memory rate limiter using a sliding window.

    ``check`` both tests and records: an allowed call counts against the window,
    a denied call does not. Thread-safe for single-process deployments.
    """

    def __init__(
        self,
        window_seconds: float = 10.0,
        max_requests: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            window_seconds: Length of the window; 0 disables limiting
            max_requests: Allowed calls per key within one window
            clock: Monotonic time source (injectable for tests)
        """
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def check(self, key: str) -> bool:
        """Return True and record the hit if ``key`` is under its limit."""
        if self.window_seconds <= 0:
            return True

        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= self.max_requests:
                logger.warning(
                    "Rate limit exceeded: key=%s count=%d limit=%d",
                    key,
                    len(hits),
                    self.max_requests,
                )
                return False

            hits.append(now)
            return True

    def reset(self, key: str | None = None) -> None:
        """Forget recorded hits for one key, or for all keys."""
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)


__all__ = ["RateLimiter", "RateLimiterProtocol"]

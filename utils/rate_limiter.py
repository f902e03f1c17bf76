"""
In-memory fixed-window rate limiter keyed by client address
"""

import threading
import time
from typing import Callable, Dict, Tuple


class RateLimiter:
    """
    Allows at most ``max_requests`` per client within each window.

    Counters live in process memory, so limits reset when the service
    restarts and are not shared between worker processes.
    """

    # Past this size, expired windows are pruned at most once per window
    PRUNE_THRESHOLD = 10_000

    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}  # client -> (window start, hits)
        self._next_prune = clock() + window_seconds
        self._lock = threading.Lock()

    def hit(self, client: str) -> bool:
        """
        Record a request for ``client``

        Returns:
            True if the request is within the limit
        """
        now = self._clock()
        with self._lock:
            started, count = self._windows.get(client, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[client] = (started, count)

            if len(self._windows) > self.PRUNE_THRESHOLD and now >= self._next_prune:
                self._prune(now)
                self._next_prune = now + self.window_seconds

            return count <= self.max_requests

    def _prune(self, now: float) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

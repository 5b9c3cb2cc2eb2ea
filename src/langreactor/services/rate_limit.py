from __future__ import annotations
import threading
import time
from typing import Callable, Dict, Tuple


class RateLimiter:
    """Fixed-window request counter keyed by client address."""

    def __init__(self, max_requests: int, window_s: float, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_s = window_s
        self.clock = clock
        self._lock = threading.Lock()
        self._hits: Dict[str, Tuple[float, int]] = {}

    def hit(self, key: str) -> bool:
        """Count one request for ``key``; False once the window's quota is used up."""
        now = self.clock()
        with self._lock:
            start, count = self._hits.get(key, (now, 0))
            if now - start >= self.window_s:
                start, count = now, 0
            if count >= self.max_requests:
                self._hits[key] = (start, count)
                return False
            self._hits[key] = (start, count + 1)
            self._prune(now)
            return True

    def _prune(self, now: float) -> None:
        if len(self._hits) < 10_000:
            return
        for k in [k for k, (s, _) in self._hits.items() if now - s >= self.window_s]:
            del self._hits[k]

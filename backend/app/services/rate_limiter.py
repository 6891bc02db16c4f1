"""In-memory sliding-window rate limiting."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Deque, Dict, Iterable, Optional, Tuple

# (limit, window_seconds)
Window = Tuple[int, int]


class SlidingWindowRateLimiter:
    """Per-key limiter over several windows at once, for single-node deployments."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = {}

    def _prune(self, hits: Deque[float], cutoff: float) -> None:
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def allow(self, key: str, windows: Iterable[Window], now: Optional[float] = None) -> bool:
        """
        Record a hit for ``key`` if every window still has room.

        A refused hit is not recorded.
        """
        now = time.monotonic() if now is None else now
        windows = list(windows)
        longest = max((seconds for _, seconds in windows), default=0)

        with self._lock:
            hits = self._hits.setdefault(key, deque())
            self._prune(hits, now - longest)
            for limit, seconds in windows:
                cutoff = now - seconds
                in_window = sum(1 for stamp in hits if stamp > cutoff)
                if in_window >= limit:
                    return False
            hits.append(now)
            return True

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


rate_limiter = SlidingWindowRateLimiter()

"""Fixed-window, per-client request throttling."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping

from mealmerge import metrics
from mealmerge.errors import RateLimitError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def client_key(headers: Mapping[str, str]) -> str:
    """Derive the throttling key from proxy headers."""

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    return UNKNOWN_CLIENT


@dataclass
class RateWindow:
    """Request count for one client key since ``started_at``."""

    count: int
    started_at: float


class RateLimiter:
    """In-memory fixed-window limiter; state is scoped to this process."""

    def __init__(
        self,
        *,
        capacity: int,
        window_seconds: float = 60.0,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.name = name
        self._capacity = capacity
        self._window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def check(self, key: str) -> bool:
        """Count a request for ``key`` and return whether it is allowed."""

        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.started_at > self._window_seconds:
                self._windows[key] = RateWindow(count=1, started_at=now)
                return True
            if window.count >= self._capacity:
                return False
            window.count += 1
            return True

    def hit(self, key: str) -> None:
        """Like :meth:`check` but raises :class:`RateLimitError` on denial."""

        if self.check(key):
            return
        metrics.RATE_LIMITED.labels(limiter=self.name).inc()
        logger.warning("Rate limit exceeded limiter=%s client=%s", self.name, key)
        raise RateLimitError(retry_after=self.retry_after(key))

    def retry_after(self, key: str) -> float:
        """Seconds until the window for ``key`` resets."""

        with self._lock:
            window = self._windows.get(key)
            if window is None:
                return 0.0
            remaining = self._window_seconds - (self._clock() - window.started_at)
        return max(remaining, 0.0)

    def prune(self) -> int:
        """Drop windows that have already elapsed and return how many were removed."""

        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, window in self._windows.items()
                if now - window.started_at > self._window_seconds
            ]
            for key in expired:
                del self._windows[key]
        if expired:
            logger.debug("Pruned %s expired rate windows limiter=%s", len(expired), self.name)
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


__all__ = ["RateLimiter", "RateWindow", "client_key", "UNKNOWN_CLIENT"]

"""
Process-local fixed-window rate limiter.

Advisory throttling of write requests per caller. Counters live in memory,
reset on restart and are not shared between processes. One instance is
created per application and handed to handlers through a dependency.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock

from src.adapters.clock import SystemClock
from src.domain.errors import RateLimitedError
from src.ports.clock import ClockPort
from src.rules.models import RateLimitRules

logger = logging.getLogger(__name__)

# Expired windows are swept once the table grows past this many keys.
SWEEP_THRESHOLD = 1024


@dataclass
class _Window:
    started_at: datetime
    count: int


class RateLimiter:
    def __init__(
        self,
        rules: RateLimitRules,
        clock: ClockPort | None = None,
    ):
        self.rules = rules
        self._clock = clock if clock is not None else SystemClock()
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()

    def _sweep(self, now: datetime, window: timedelta) -> None:
        expired = [k for k, w in self._windows.items() if now - w.started_at >= window]
        for key in expired:
            del self._windows[key]

    def allow_request(self, key: str, window_seconds: int, limit: int) -> bool:
        """
        Count one request against key.
        Returns False once limit requests have been seen in the current window.
        A window starts with the first request after the previous one expired.
        """
        if limit <= 0:
            return False

        window = timedelta(seconds=window_seconds)
        with self._lock:
            now = self._clock.now()
            if len(self._windows) > SWEEP_THRESHOLD:
                self._sweep(now, window)

            current = self._windows.get(key)
            if current is None or now - current.started_at >= window:
                self._windows[key] = _Window(started_at=now, count=1)
                return True

            if current.count >= limit:
                return False

            current.count += 1
            return True

    def retry_after(self, key: str, window_seconds: int) -> int:
        """Seconds until the window for key resets (0 if none is open)."""
        with self._lock:
            current = self._windows.get(key)
            if current is None:
                return 0
            elapsed = (self._clock.now() - current.started_at).total_seconds()
        return max(0, int(window_seconds - elapsed + 0.999))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def check_mutation(self, caller_id: str) -> None:
        """Raise RateLimitedError when caller_id exceeded its write budget."""
        if not self.rules.enabled:
            return

        cfg = self.rules.mutations
        key = f"mutation:{caller_id}"
        if not self.allow_request(key, cfg.window_seconds, cfg.max_requests):
            retry = self.retry_after(key, cfg.window_seconds)
            logger.warning("Rate limit exceeded for %s (retry in %ss)", caller_id, retry)
            raise RateLimitedError(key, retry)

"""In-memory fixed-window rate limiting keyed by client identifier."""

import math
import os
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

# Rate limiting configuration
RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "5"))
RATE_LIMIT_WINDOW_SECONDS = float(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "900"))  # 15 minutes
RATE_LIMIT_SWEEP_INTERVAL_SECONDS = float(os.environ.get("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", "3600"))

Clock = Callable[[], float]


@dataclass(frozen=True)
class RateLimitResult:
    """Decision for a single request."""
    allowed: bool
    remaining: int
    reset_time: float

    def retry_after(self, now: float) -> int:
        """Whole seconds until the window resets, never less than 1."""
        return max(1, math.ceil(self.reset_time - now))


@dataclass
class RateLimitRecord:
    """Request count for one client within the current window."""
    count: int
    reset_time: float

    def is_expired(self, now: float) -> bool:
        # A request landing exactly on reset_time still counts against the window
        return now > self.reset_time


def _validate_limits(max_requests: int, window_seconds: float) -> None:
    if max_requests < 1:
        raise ValueError("max_requests must be at least 1")
    if window_seconds <= 0:
        raise ValueError("window_seconds must be positive")


def _check_client_key(client_key: str) -> None:
    if not isinstance(client_key, str) or not client_key:
        raise ValueError("client_key must be a non-empty string")


class RateLimiter:
    """
    Fixed-window request counter shared by every form endpoint.

    Each client key gets its own window of `window_seconds`, opened by the
    first request. Up to `max_requests` requests are admitted per window;
    further requests are still counted but rejected until the window resets.

    Args:
        max_requests: Quota per window
        window_seconds: Window length in seconds
        clock: Returns the current time in seconds (defaults to time.time)
        sweep_interval: How often expired records are dropped during checks
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Clock = time.time,
        sweep_interval: float = RATE_LIMIT_SWEEP_INTERVAL_SECONDS,
    ):
        _validate_limits(max_requests, window_seconds)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._sweep_interval = sweep_interval
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def check(self, client_key: str) -> RateLimitResult:
        """Count a request from `client_key` and decide whether to admit it."""
        _check_client_key(client_key)
        now = self.clock()
        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._purge_expired_locked(now)
                self._last_sweep = now

            record = self._records.get(client_key)
            if record is None or record.is_expired(now):
                record = RateLimitRecord(count=1, reset_time=now + self.window_seconds)
                self._records[client_key] = record
            else:
                record.count += 1

            return RateLimitResult(
                allowed=record.count <= self.max_requests,
                remaining=max(0, self.max_requests - record.count),
                reset_time=record.reset_time,
            )

    def purge_expired(self) -> int:
        """Drop records whose window has passed. Returns how many were dropped."""
        now = self.clock()
        with self._lock:
            return self._purge_expired_locked(now)

    def reset(self, client_key: Optional[str] = None) -> None:
        """Forget one client's window, or every window when no key is given."""
        with self._lock:
            if client_key is None:
                self._records.clear()
            else:
                self._records.pop(client_key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _purge_expired_locked(self, now: float) -> int:
        expired = [key for key, record in self._records.items() if record.is_expired(now)]
        for key in expired:
            del self._records[key]
        return len(expired)

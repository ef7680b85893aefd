"""
Fixed-window, per-client rate limiting with independent budgets per limiter class.

A window opens on a client's first request and lasts ``window_seconds``; the count
resets only when a request arrives after the window has ended. Bursts straddling a
window boundary are allowed (up to 2x max in a short span); that is the accepted
cost of the fixed-window design and is covered by tests as such.
"""

import enum
import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nasgate.gate.outcomes import Rejection, rate_limited

if TYPE_CHECKING:
    from nasgate.core.config import Settings

logger = logging.getLogger(__name__)


class LimiterClass(str, enum.Enum):
    AUTH = "auth"
    API = "api"
    FILE = "file"


@dataclass(frozen=True)
class WindowPolicy:
    window_seconds: float
    max_requests: int


@dataclass
class RateWindow:
    count: int
    reset_at: float


class RateLimiter:
    """
    Window table keyed by (limiter class, client key), guarded by one lock.

    Instances are independent: the application owns one and tests build their own.
    """

    def __init__(
        self,
        policies: Mapping[LimiterClass, WindowPolicy],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policies = dict(policies)
        self._clock = clock
        self._windows: dict[tuple[LimiterClass, str], RateWindow] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RateLimiter":
        return cls(
            {
                LimiterClass.AUTH: WindowPolicy(settings.AUTH_RATE_WINDOW_SEC, settings.AUTH_RATE_MAX),
                LimiterClass.API: WindowPolicy(settings.API_RATE_WINDOW_SEC, settings.API_RATE_MAX),
                LimiterClass.FILE: WindowPolicy(settings.FILE_RATE_WINDOW_SEC, settings.FILE_RATE_MAX),
            }
        )

    def policy(self, limiter_class: LimiterClass) -> WindowPolicy:
        return self._policies[limiter_class]

    def check(self, limiter_class: LimiterClass, client_key: str) -> Rejection | None:
        """
        Count one request and decide. Returns None when allowed, or a RATE_LIMITED
        rejection carrying the seconds until the window resets.

        Counting and deciding happen under the lock so concurrent requests from one
        client never lose an increment.
        """
        policy = self._policies[limiter_class]
        key = (limiter_class, client_key)
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None:
                window = RateWindow(count=1, reset_at=now + policy.window_seconds)
                self._windows[key] = window
            elif now > window.reset_at:
                window.count = 1
                window.reset_at = now + policy.window_seconds
            else:
                window.count += 1
            if window.count <= policy.max_requests:
                return None
            retry_after = max(window.reset_at - now, 0.0)
        return rate_limited(retry_after)

    def sweep(self) -> int:
        """Drop windows that have ended. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [key for key, window in self._windows.items() if now > window.reset_at]
            for key in stale:
                del self._windows[key]
        if stale:
            logger.debug("Rate limiter swept %d stale windows", len(stale))
        return len(stale)

    def snapshot(self, limiter_class: LimiterClass, client_key: str) -> RateWindow | None:
        """Copy of one window's state, or None if the pair has no live entry."""
        with self._lock:
            window = self._windows.get((limiter_class, client_key))
            return None if window is None else RateWindow(window.count, window.reset_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


def classes_for_path(path: str) -> tuple[LimiterClass, ...]:
    """Limiter classes charged for a request path, strictest first."""
    if path.startswith("/api/auth"):
        return (LimiterClass.AUTH, LimiterClass.API)
    if path.startswith("/api"):
        return (LimiterClass.API,)
    if path.startswith("/download"):
        return (LimiterClass.FILE,)
    return ()

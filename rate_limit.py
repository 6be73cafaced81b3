import time
from typing import Optional

from fastapi import Request


class FixedWindowRateLimiter:
    """Per-key request counter over fixed windows.

    Holds at most ``max_keys`` windows. Expired windows are swept when the
    table fills up; if it is still full the window closest to expiry is evicted.
    """

    def __init__(self, window_seconds: int = 15 * 60, max_requests: int = 100,
                 max_keys: int = 10000, clock=time.monotonic):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.max_keys = max_keys
        self._clock = clock
        self._windows = {}  # key -> [count, reset_at]

    def _sweep(self, now: float):
        expired = [key for key, (_, reset_at) in self._windows.items() if now > reset_at]
        for key in expired:
            del self._windows[key]

    def _make_room(self, now: float):
        self._sweep(now)
        if len(self._windows) >= self.max_keys:
            oldest = min(self._windows, key=lambda key: self._windows[key][1])
            del self._windows[oldest]

    def hit(self, key: str) -> bool:
        """Count one request for ``key``; False once the window's cap is exceeded."""
        now = self._clock()
        window = self._windows.get(key)

        if window is None:
            if len(self._windows) >= self.max_keys:
                self._make_room(now)
            self._windows[key] = [1, now + self.window_seconds]
            return True

        if now > window[1]:
            window[0] = 1
            window[1] = now + self.window_seconds
            return True

        if window[0] >= self.max_requests:
            return False

        window[0] += 1
        return True

    def reset(self):
        self._windows.clear()

    def __len__(self):
        return len(self._windows)


def client_ip(request: Request, trust_proxy: bool = False) -> str:
    if trust_proxy:
        forwarded: Optional[str] = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"

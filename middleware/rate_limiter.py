import logging
import threading
import time
from typing import Dict, List

from fastapi import HTTPException, Request
from starlette import status

logger = logging.getLogger(__name__)

# Records older than this are dropped by `cleanup`, whatever the limiter window.
KEEP_SECONDS = 60 * 60
# `hit` sweeps stale records at most this often.
CLEANUP_INTERVAL_SECONDS = 15 * 60


class RateLimiter:
    """
    Per-IP sliding window kept in process memory. Not shared between workers and reset on restart.
    Used as a route dependency: `dependencies=[Depends(auth_limiter)]`.
    """

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests: Dict[str, List[float]] = {}
        self._lock = threading.Lock()
        self._last_cleanup: float | None = None

    def __call__(self, request: Request):
        ip = request.client.host if request.client else ''
        self.hit(ip)

    def hit(self, key: str, now: float | None = None):
        now = time.monotonic() if now is None else now

        with self._lock:
            if self._last_cleanup is None:
                self._last_cleanup = now
            elif now - self._last_cleanup >= CLEANUP_INTERVAL_SECONDS:
                self._drop_stale(now)

            recent = [timestamp for timestamp in self.requests.get(key, []) if now - timestamp < self.window_seconds]

            if len(recent) >= self.max_requests:
                self.requests[key] = recent
                logger.warning('Rate limit exceeded for %s', key)
                raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                                    detail={'message': 'Too many requests, please try again later',
                                            'retry_after': self.window_seconds})

            recent.append(now)
            self.requests[key] = recent

    def cleanup(self, now: float | None = None):
        now = time.monotonic() if now is None else now

        with self._lock:
            self._drop_stale(now)

    def _drop_stale(self, now: float):
        for key in list(self.requests):
            self.requests[key] = [timestamp for timestamp in self.requests[key] if now - timestamp < KEEP_SECONDS]
            if not self.requests[key]:
                del self.requests[key]
        self._last_cleanup = now

    def reset(self):
        with self._lock:
            self.requests.clear()
            self._last_cleanup = None


auth_limiter = RateLimiter(max_requests=10, window_seconds=5 * 60)
verification_limiter = RateLimiter(max_requests=5, window_seconds=60 * 60)

ALL_LIMITERS = (auth_limiter, verification_limiter)

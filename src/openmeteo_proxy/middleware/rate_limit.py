import threading
import time
from typing import Callable, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse

from ..core.logs import get_logger

log = get_logger(__name__)


def client_key(request: Request) -> str:
    # Raw peer address; behind a reverse proxy every client shares the proxy's.
    return request.client.host if request.client else "unknown"


class FixedWindowRateLimiter:
    """Per-key request counter, cleared wholesale once ``window`` seconds pass.

    Not a sliding window: all keys share one reset timestamp.
    """

    def __init__(self, max_requests: int = 100, window: float = 60.0,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._counts: Dict[str, int] = {}
        self._last_reset = clock()
        self._lock = threading.Lock()

    def _expire(self) -> None:
        now = self._clock()
        if now - self._last_reset > self.window:
            self._counts.clear()
            self._last_reset = now

    def hit(self, key: str) -> int:
        with self._lock:
            self._expire()
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
            return count

    def allow(self, key: str) -> bool:
        return self.hit(key) <= self.max_requests

    def count(self, key: str) -> int:
        with self._lock:
            self._expire()
            return self._counts.get(key, 0)

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._last_reset = self._clock()


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: FixedWindowRateLimiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        key = client_key(request)
        if not self.limiter.allow(key):
            log.warning("Rate limit exceeded for %s", key)
            return PlainTextResponse("Rate limit exceeded", status_code=429)
        return await call_next(request)

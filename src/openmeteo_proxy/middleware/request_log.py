import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.logs import get_logger
from .rate_limit import client_key

log = get_logger(__name__)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Logs method, path and client on the way in, elapsed time on the way out."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        log.info("%s %s %s", request.method, request.url.path, client_key(request))

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log.info("Response time: %.2fms", duration_ms)
        return response

from typing import List

from starlette.middleware import Middleware

from .rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from .request_log import RequestLogMiddleware
from .security import SecurityHeadersMiddleware


def default_stages(limiter: FixedWindowRateLimiter) -> List[Middleware]:
    """Request pipeline, outermost first: security -> rate limit -> logging -> route.

    Any stage may answer on its own instead of calling the next one.
    """
    return [
        Middleware(SecurityHeadersMiddleware),
        Middleware(RateLimitMiddleware, limiter=limiter),
        Middleware(RequestLogMiddleware),
    ]

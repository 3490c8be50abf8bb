from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse, Response

from ..core.logs import get_logger

log = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'",
    # CORS: open to any origin, read-only methods
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamps SECURITY_HEADERS on every response and answers preflight itself.

    Unhandled errors from inner stages become a 500 here so they carry the
    headers too.
    """

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception as exc:
                log.error("UNHANDLED ERROR: %s %s: %r", request.method, request.url.path, exc, exc_info=exc)
                response = PlainTextResponse("Internal server error", status_code=500)
        response.headers.update(SECURITY_HEADERS)
        return response

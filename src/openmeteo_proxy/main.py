from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routers import health, weather
from .core.config import Settings, cfg_summary, load_settings
from .core.logs import configure_logging, get_logger
from .middleware.rate_limit import FixedWindowRateLimiter
from .middleware.stack import default_stages
from .server import build_server
from .services.open_meteo import UpstreamError

log = get_logger(__name__)


# Errors go out as short plain-text bodies; upstream detail stays in the log.
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


async def upstream_error_handler(request: Request, exc: UpstreamError):
    if exc.status_code == 503:
        log.warning("%s %s: %s", request.method, request.url.path, exc.detail)
    else:
        log.error("%s %s: %s", request.method, request.url.path, exc.detail)
    return PlainTextResponse(exc.public_message, status_code=exc.status_code)


async def unhandled_error_handler(request: Request, exc: Exception):
    log.error("UNHANDLED ERROR: %r", exc, exc_info=exc)
    return PlainTextResponse("Internal server error", status_code=500)


def create_app(settings: Optional[Settings] = None,
               limiter: Optional[FixedWindowRateLimiter] = None) -> FastAPI:
    settings = settings or load_settings()
    limiter = limiter or FixedWindowRateLimiter(settings.rate_limit_max, settings.rate_limit_window)

    app = FastAPI(
        title="Open-Meteo Proxy",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
        middleware=default_stages(limiter),
    )
    app.state.settings = settings
    app.state.rate_limiter = limiter

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health.router)
    app.include_router(weather.router)
    return app


def run() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    log.info("Config: %s", cfg_summary(settings))

    server = build_server(create_app(settings), settings)
    log.info("Server starting on port %s", settings.port)
    server.run()


if __name__ == "__main__":
    run()

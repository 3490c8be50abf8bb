import asyncio

import uvicorn

from .core.config import Settings
from .core.logs import get_logger

log = get_logger(__name__)


class GracefulServer(uvicorn.Server):
    """uvicorn server whose shutdown drain is bounded by ``grace`` seconds.

    Expects ``timeout_graceful_shutdown=None`` on the config; an expired drain
    exits with status 1.
    """

    def __init__(self, config: uvicorn.Config, grace: float):
        super().__init__(config)
        self.grace = grace
        self.drained = None

    async def shutdown(self, sockets=None) -> None:
        log.info("Shutting down server...")
        try:
            await asyncio.wait_for(super().shutdown(sockets=sockets), timeout=self.grace)
        except asyncio.TimeoutError:
            self.drained = False
            log.critical("Server forced to shutdown: requests still in flight after %gs", self.grace)
            raise SystemExit(1)
        self.drained = True
        log.info("Server stopped")


def build_server(app, settings: Settings) -> GracefulServer:
    # uvicorn has no per-socket read/write timeouts. A connection is bounded by
    # the keep-alive idle timeout and the header size limit here, and the
    # weather handler's upstream call by settings.request_timeout.
    config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=settings.port,
        http="h11",
        timeout_keep_alive=int(settings.idle_timeout),
        h11_max_incomplete_event_size=settings.max_header_bytes,
        timeout_graceful_shutdown=None,
        log_level=settings.log_level.lower(),
        access_log=False,
    )
    return GracefulServer(config, grace=settings.shutdown_grace)

from typing import AsyncIterator

import httpx
from fastapi import Request

DEFAULT_TIMEOUT = 10.0


def get_client(timeout: float = DEFAULT_TIMEOUT, transport=None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)


async def get_http_client(request: Request) -> AsyncIterator[httpx.AsyncClient]:
    """FastAPI dependency: one outbound client per inbound request."""
    settings = request.app.state.settings
    async with get_client(timeout=settings.request_timeout) as client:
        yield client

"""
Pytest fixtures for openmeteo-proxy. The upstream forecast API is replaced by
an httpx.MockTransport; the rate limiter runs on a hand-driven clock.
"""

from __future__ import annotations

import httpx
import pytest

from openmeteo_proxy.core.config import Settings
from openmeteo_proxy.core.http import get_client, get_http_client
from openmeteo_proxy.main import create_app
from openmeteo_proxy.middleware.rate_limit import FixedWindowRateLimiter

SAMPLE_FORECAST = {
    "latitude": 41.05,
    "longitude": 28.72,
    "hourly_units": {"time": "iso8601", "temperature_2m": "°C"},
    "hourly": {
        "time": ["2025-01-01T00:00", "2025-01-01T01:00", "2025-01-01T02:00"],
        "temperature_2m": [7.1, 6.8, 6.4],
        "relative_humidity_2m": [81, 83, 84],
        "wind_speed_10m": [11.2, 10.9, 9.7],
    },
}


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """Stand-in for Open-Meteo. Set ``handler`` to change what it answers."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, json=SAMPLE_FORECAST)

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(settings, clock):
    return FixedWindowRateLimiter(settings.rate_limit_max, settings.rate_limit_window, clock=clock)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def app(settings, limiter, upstream):
    app = create_app(settings, limiter)

    async def mock_http_client():
        async with get_client(timeout=settings.request_timeout, transport=httpx.MockTransport(upstream)) as c:
            yield c

    app.dependency_overrides[get_http_client] = mock_http_client
    return app


@pytest.fixture
def client(app):
    """FastAPI TestClient wired to the mocked upstream."""
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c

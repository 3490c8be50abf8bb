"""
Tests for the request pipeline: security headers, preflight, rate limiting
and request logging, exercised through the full app.
"""

from __future__ import annotations

import logging

import pytest

from openmeteo_proxy.middleware.security import SECURITY_HEADERS

CLIENT_HOST = "testclient"


def assert_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        assert response.headers.get(name) == value, name


@pytest.mark.parametrize(
    "method, path, status",
    [
        ("GET", "/api/health", 200),
        ("GET", "/api/weather", 200),
        ("POST", "/api/health", 405),
        ("GET", "/nowhere", 404),
    ],
)
def test_security_headers_on_every_response(client, method, path, status):
    r = client.request(method, path)
    assert r.status_code == status
    assert_security_headers(r)


def test_security_headers_on_errors(client):
    r = client.request("GET", "/api/health", content=b"x")
    assert r.status_code == 400
    assert_security_headers(r)


def test_security_headers_on_upstream_failure(client, upstream):
    import httpx

    upstream.handler = lambda request: httpx.Response(503)
    r = client.get("/api/weather")
    assert r.status_code == 503
    assert_security_headers(r)


@pytest.mark.parametrize("path", ["/api/health", "/api/weather", "/anything/else"])
def test_preflight_short_circuits(client, upstream, limiter, path):
    r = client.options(
        path,
        headers={"Origin": "https://example.com", "Access-Control-Request-Method": "GET"},
    )
    assert r.status_code == 200
    assert r.content == b""
    assert_security_headers(r)
    # Nothing past the security stage ran
    assert upstream.requests == []
    assert limiter.count(CLIENT_HOST) == 0


def test_rate_limit_blocks_101st_request(client, limiter):
    for _ in range(100):
        assert client.get("/api/health").status_code == 200

    r = client.get("/api/health")
    assert r.status_code == 429
    assert r.text == "Rate limit exceeded"
    assert_security_headers(r)
    assert limiter.count(CLIENT_HOST) == 101


def test_rate_limit_blocked_request_skips_handler(client, limiter, upstream):
    for _ in range(100):
        limiter.hit(CLIENT_HOST)

    r = client.get("/api/weather")
    assert r.status_code == 429
    assert upstream.requests == []


def test_rate_limit_window_resets(client, limiter, clock):
    for _ in range(101):
        client.get("/api/health")
    assert client.get("/api/health").status_code == 429

    clock.advance(61)
    assert limiter.count(CLIENT_HOST) == 0
    assert client.get("/api/health").status_code == 200
    assert limiter.count(CLIENT_HOST) == 1


def test_rate_limit_shared_across_endpoints(client, limiter):
    for _ in range(50):
        client.get("/api/health")
    for _ in range(50):
        client.get("/api/weather")
    assert client.get("/api/weather").status_code == 429


def test_request_logging(client, caplog):
    caplog.set_level(logging.INFO, logger="openmeteo_proxy")
    r = client.get("/api/health")
    assert r.status_code == 200

    messages = [rec.getMessage() for rec in caplog.records if rec.name.endswith("request_log")]
    assert messages[0] == f"GET /api/health {CLIENT_HOST}"
    assert messages[1].startswith("Response time: ")
    assert messages[1].endswith("ms")


def test_request_logging_skipped_when_rate_limited(client, limiter, caplog):
    for _ in range(100):
        limiter.hit(CLIENT_HOST)

    caplog.set_level(logging.INFO, logger="openmeteo_proxy")
    client.get("/api/health")
    assert not [rec for rec in caplog.records if rec.name.endswith("request_log")]
    assert f"Rate limit exceeded for {CLIENT_HOST}" in caplog.text


def test_unhandled_error_keeps_security_headers(app, caplog):
    from fastapi.testclient import TestClient

    async def explode():
        raise RuntimeError("kaboom")

    app.add_api_route("/api/explode", explode, methods=["GET"])
    caplog.set_level(logging.INFO, logger="openmeteo_proxy")

    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/api/explode")
    assert r.status_code == 500
    assert r.text == "Internal server error"
    assert "kaboom" not in r.text
    assert_security_headers(r)
    assert "kaboom" in caplog.text

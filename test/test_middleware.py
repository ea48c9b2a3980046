"""
Rate limiting, security headers and the public-path table.
"""
import asyncio
import time
from collections import deque

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from middleware.auth_middleware import PUBLIC_ROUTES, is_public_path
from middleware.security import RateLimitMiddleware, SecurityHeadersMiddleware


def make_app(per_minute):
    app = FastAPI()
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware, requests_per_minute=per_minute, requests_per_hour=100)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


def test_rate_limit_returns_429_after_limit():
    client = TestClient(make_app(per_minute=2))
    assert client.get("/ping").status_code == 200
    assert client.get("/ping").status_code == 200
    resp = client.get("/ping")
    assert resp.status_code == 429
    assert "Rate limit" in resp.json()["detail"]

    # Health probes are never throttled
    assert client.get("/health").status_code == 200


def test_security_headers_present():
    resp = TestClient(make_app(per_minute=10)).get("/ping")
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_public_paths():
    assert is_public_path("/", PUBLIC_ROUTES)
    assert is_public_path("/api/auth/login", PUBLIC_ROUTES)
    assert is_public_path("/api/districts/Mysuru/stats", PUBLIC_ROUTES)
    assert not is_public_path("/api/districts/Mysuru/insights", PUBLIC_ROUTES)
    assert not is_public_path("/api/complaints", PUBLIC_ROUTES)


def test_stale_clients_are_forgotten():
    limiter = RateLimitMiddleware(FastAPI(), requests_per_minute=5, requests_per_hour=50)
    now = time.time()
    for i in range(1000):
        limiter.hits[f"10.0.{i // 256}.{i % 256}"] = deque([now - 7200])
    limiter.hits["192.168.1.9"] = deque([now - 30])

    limiter._sweep(now)
    assert list(limiter.hits) == ["192.168.1.9"]


def test_sweep_runs_from_dispatch():
    limiter = RateLimitMiddleware(FastAPI(), requests_per_minute=5, requests_per_hour=50)
    now = time.time()
    for i in range(1000):
        limiter.hits[f"10.1.{i // 256}.{i % 256}"] = deque([now - 7200])
    limiter.last_cleanup = now - limiter.cleanup_interval - 1

    request = Request({
        "type": "http",
        "method": "GET",
        "path": "/ping",
        "query_string": b"",
        "headers": [],
        "client": ("172.16.0.1", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
        "root_path": "",
    })

    async def call_next(req):
        return JSONResponse({"ok": True})

    response = asyncio.run(limiter.dispatch(request, call_next))
    assert response.status_code == 200
    assert list(limiter.hits) == ["172.16.0.1"]

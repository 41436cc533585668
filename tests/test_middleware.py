"""Tests for API middleware, the error boundary and app wiring."""

from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from cryptokind.api.app import create_app
from cryptokind.config import Config, RateLimitConfig, UpstreamConfig
from cryptokind.keys.store import MemoryKeyStore

UPSTREAM_URL = "https://cmc.test/v1"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _client_for(app):
    return httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _app(upstream=None, **overrides):
    cfg = Config(
        upstream=UpstreamConfig(base_url=UPSTREAM_URL),
        key_reset_cron="",
        **overrides,
    )
    handler = upstream or (lambda request: httpx.Response(500, text="down"))
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return create_app(config=cfg, store=MemoryKeyStore(), http_client=http)


class TestCorrelation:
    @pytest.mark.asyncio
    async def test_generated(self, test_client):
        resp = await test_client.get("/")
        assert len(resp.headers["X-Correlation-Id"]) == 32

    @pytest.mark.asyncio
    async def test_propagated(self, test_client):
        resp = await test_client.get("/", headers={"X-Correlation-Id": "abc-123"})
        assert resp.headers["X-Correlation-Id"] == "abc-123"


class TestRequestLogging:
    @pytest.mark.asyncio
    async def test_logs_each_request(self, test_client, caplog):
        caplog.set_level("INFO", logger="cryptokind.api.middleware")
        await test_client.get("/")
        messages = [r.getMessage() for r in caplog.records if r.name == "cryptokind.api.middleware"]
        assert any(m.startswith("GET / from 127.0.0.1 -> 200") for m in messages)


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_blocks_after_max(self):
        app = _app(rate_limit=RateLimitConfig(window_seconds=900, max_requests=2))
        async with _client_for(app) as client:
            assert (await client.get("/api/keys/list")).status_code == 200
            assert (await client.get("/api/keys/list")).status_code == 200
            resp = await client.get("/api/keys/list")
            assert resp.status_code == 429
            assert resp.json() == {
                "success": False,
                "message": "Too many requests from this IP, please try again later",
            }
            assert int(resp.headers["Retry-After"]) > 0

            # Non-API routes are not limited
            assert (await client.get("/")).status_code == 200

    @pytest.mark.asyncio
    async def test_window_rolls_over(self):
        from cryptokind.api.middleware import RateLimitMiddleware

        clock = FakeClock()
        limiter = RateLimitMiddleware(app=None, max_requests=1, window_seconds=60, clock=clock)
        assert limiter._allow("1.1.1.1")[0] is True
        assert limiter._allow("1.1.1.1")[0] is False
        assert limiter._allow("2.2.2.2")[0] is True
        clock.now = 60.0
        assert limiter._allow("1.1.1.1")[0] is True

    @pytest.mark.asyncio
    async def test_idle_clients_dropped(self):
        from cryptokind.api.middleware import RateLimitMiddleware

        clock = FakeClock()
        limiter = RateLimitMiddleware(app=None, max_requests=5, window_seconds=60, clock=clock)
        for n in range(50):
            limiter._allow(f"10.0.0.{n}")
        clock.now = 30.0
        limiter._allow("10.0.1.1")
        assert len(limiter._hits) == 51

        clock.now = 75.0
        limiter._allow("10.0.2.2")
        # Only clients whose window is still open survive
        assert set(limiter._hits) == {"10.0.1.1", "10.0.2.2"}
        assert limiter._hits["10.0.1.1"] == (30.0, 1)


class TestErrorDetail:
    @pytest.mark.asyncio
    async def test_error_hidden_in_production(self):
        app = _app(environment="production")
        app.state.rotator.add_key("prod-key-0123456789")
        async with _client_for(app) as client:
            resp = await client.get("/api/crypto/listings/latest")
        assert resp.status_code == 500
        assert resp.json() == {
            "success": False,
            "message": "Failed to fetch data from the market-data API",
        }

    @pytest.mark.asyncio
    async def test_error_shown_in_development(self):
        app = _app()
        app.state.rotator.add_key("dev-key-0123456789")
        async with _client_for(app) as client:
            resp = await client.get("/api/crypto/listings/latest")
        assert "500" in resp.json()["error"]


class TestFrontend:
    @pytest.mark.asyncio
    async def test_served_at_app(self, tmp_path):
        (tmp_path / "index.html").write_text("<h1>CryptoKind</h1>")
        app = _app(frontend_dir=tmp_path)
        async with _client_for(app) as client:
            resp = await client.get("/app/")
        assert resp.status_code == 200
        assert "CryptoKind" in resp.text

    @pytest.mark.asyncio
    async def test_missing_directory_not_mounted(self, tmp_path):
        app = _app(frontend_dir=tmp_path / "absent")
        async with _client_for(app) as client:
            resp = await client.get("/app/")
        assert resp.status_code == 404

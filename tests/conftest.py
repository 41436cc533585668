"""
Shared fixtures for the API test suites.

Provides an async client wrapping the FastAPI app via ASGITransport, an
in-memory key store and a scripted upstream behind httpx.MockTransport.
No test touches a real database or the network.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport

from cryptokind.api.app import create_app
from cryptokind.config import Config, RateLimitConfig, UpstreamConfig
from cryptokind.keys.store import Credential, CredentialSet, MemoryKeyStore

UPSTREAM_URL = "https://cmc.test/v1"


class FakeUpstream:
    """Scripted market-data API: path -> (status, json body)."""

    def __init__(self):
        self.routes: dict[str, tuple[int, object]] = {}
        self.requests: list[httpx.Request] = []

    def reply(self, path: str, body: object, status: int = 200) -> None:
        self.routes[path] = (status, body)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/v1" + path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1")
        status, body = self.routes.get(path, (404, {"status": {"error_message": "not scripted"}}))
        if callable(body):
            return body(request)
        return httpx.Response(status, json=body)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def key_store():
    return MemoryKeyStore(
        CredentialSet(
            [Credential("first-key-0123456789"), Credential("second-key-0123456789")],
            "2026-01-01T00:00:00+00:00",
        )
    )


@pytest.fixture
def app_config():
    return Config(
        environment="development",
        upstream=UpstreamConfig(base_url=UPSTREAM_URL),
        rate_limit=RateLimitConfig(window_seconds=900, max_requests=1000),
        key_reset_cron="",
    )


@pytest.fixture
def activity_calls():
    """Capture fire-and-forget activity writes from every router."""
    mock = MagicMock(return_value=None)
    with (
        patch("cryptokind.api.routers.crypto.dispatch_activity", mock),
        patch("cryptokind.api.routers.feedback.dispatch_activity", mock),
    ):
        yield mock


@pytest.fixture
def app(app_config, key_store, upstream, activity_calls):
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return create_app(config=app_config, store=key_store, http_client=http)


@pytest_asyncio.fixture
async def test_client(app):
    """Async HTTP client wrapping the app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await app.state.http.aclose()

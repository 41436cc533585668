"""
CryptoKind API: FastAPI application factory.

Start:
  cryptokind serve
  # or
  uvicorn cryptokind.api.app:create_app --factory --port 5000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from cryptokind import __version__
from cryptokind.activity.logger import drain_pending
from cryptokind.api.errors import register_error_handlers
from cryptokind.api.middleware import CorrelationMiddleware, RateLimitMiddleware, RequestLogMiddleware
from cryptokind.api.routers import activity, crypto, feedback, health, keys
from cryptokind.config import Config, get_config
from cryptokind.db.connection import close_pool
from cryptokind.keys.rotator import KeyRotator
from cryptokind.keys.store import JsonFileKeyStore, KeyStore
from cryptokind.market.cache import ResponseCache
from cryptokind.market.client import UpstreamClient
from cryptokind.scheduler import KeyResetScheduler

logger = logging.getLogger(__name__)


def create_app(
    config: Config | None = None,
    store: KeyStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the app with its shared state.

    ``store`` and ``http_client`` default to the JSON key file and a fresh
    AsyncClient; tests pass in-memory and mock-transport replacements.
    """
    config = config or get_config()
    owns_http = http_client is None
    http = http_client or httpx.AsyncClient(timeout=config.upstream.timeout)
    rotator = KeyRotator(
        store or JsonFileKeyStore(config.key_file, default_key=config.upstream.api_key)
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler = KeyResetScheduler(rotator, config.key_reset_cron)
        scheduler.start()
        logger.info("CryptoKind API %s started (%s)", __version__, config.environment)
        yield
        scheduler.stop()
        await drain_pending()
        if owns_http:
            await http.aclose()
        close_pool()

    app = FastAPI(
        title="CryptoKind API",
        description="Cached proxy for cryptocurrency market data with activity logging.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.rotator = rotator
    app.state.cache = ResponseCache(ttl=config.cache_ttl)
    app.state.http = http
    app.state.upstream = UpstreamClient(
        rotator, http, config.upstream.base_url, timeout=config.upstream.timeout
    )

    # Last added runs first
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=config.rate_limit.max_requests,
        window_seconds=config.rate_limit.window_seconds,
    )
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(crypto.router)
    app.include_router(activity.router)
    app.include_router(feedback.router)
    app.include_router(keys.router)

    if config.frontend_dir is not None:
        if config.frontend_dir.is_dir():
            app.mount("/app", StaticFiles(directory=config.frontend_dir, html=True), name="frontend")
        else:
            logger.warning("Frontend directory %s not found, not serving it", config.frontend_dir)

    return app

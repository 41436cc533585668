"""API middleware: correlation IDs, request logging, per-IP rate limiting."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    """Address of the caller as seen by the server socket."""
    return request.client.host if request.client else "0.0.0.0"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Attach a unique X-Correlation-Id to every request/response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get("x-correlation-id") or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        response = await call_next(request)
        response.headers["X-Correlation-Id"] = correlation_id
        return response


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, caller, status and duration of every request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s from %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            client_ip(request),
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request ceiling per client IP on /api routes.

    Counters live in process memory and reset when the window rolls over.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int = 100,
        window_seconds: float = 900,
        path_prefix: str = "/api",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.path_prefix = path_prefix
        self._clock = clock
        # ip -> (window_start, count)
        self._hits: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        """Drop clients whose window has elapsed, at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._hits = {
            ip: hit for ip, hit in self._hits.items() if now - hit[0] < self.window_seconds
        }
        self._last_sweep = now

    def _allow(self, ip: str) -> tuple[bool, int]:
        now = self._clock()
        self._sweep(now)
        window_start, count = self._hits.get(ip, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0
        count += 1
        self._hits[ip] = (window_start, count)
        retry_after = int(self.window_seconds - (now - window_start)) + 1
        return count <= self.max_requests, retry_after

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.max_requests <= 0 or not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        ip = client_ip(request)
        allowed, retry_after = self._allow(ip)
        if not allowed:
            logger.warning("Rate limit exceeded: %s", ip)
            return JSONResponse(
                {
                    "success": False,
                    "message": "Too many requests from this IP, please try again later",
                },
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)

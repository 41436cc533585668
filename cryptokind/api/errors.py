"""
Error translation for the HTTP API.

Routers raise the exceptions from ``cryptokind.errors`` (or let psycopg2 and
pool errors propagate); the handlers here turn them into the response
envelope once:

    {"success": false, "message": "...", "error": "..."}

``error`` carries the exception text and is omitted in production.
"""

from __future__ import annotations

import logging

import psycopg2
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cryptokind.errors import (
    InvalidRequestError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


def _is_production(request: Request) -> bool:
    config = getattr(request.app.state, "config", None)
    return bool(config and config.is_production)


def error_response(
    request: Request,
    status_code: int,
    message: str,
    exc: Exception | None = None,
) -> JSONResponse:
    content: dict = {"success": False, "message": message}
    if exc is not None and not _is_production(request):
        content["error"] = str(exc)
    return JSONResponse(content, status_code=status_code)


async def _invalid_request(request: Request, exc: InvalidRequestError) -> JSONResponse:
    return JSONResponse({"success": False, "message": str(exc)}, status_code=400)


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse({"success": False, "message": str(exc)}, status_code=404)


async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        {"success": False, "message": "Invalid request parameters: " + "; ".join(problems)},
        status_code=400,
    )


async def _upstream(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error(
        "Upstream failure on %s %s: %s (status=%s body=%s)",
        request.method,
        request.url.path,
        exc,
        exc.status_code,
        exc.body,
    )
    return error_response(request, 500, "Failed to fetch data from the market-data API", exc)


async def _persistence(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return error_response(request, 500, "A storage error occurred", exc)


async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Resource not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        {"success": False, "message": message},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(request, 500, "An internal server error occurred", exc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidRequestError, _invalid_request)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(RequestValidationError, _request_validation)
    app.add_exception_handler(UpstreamError, _upstream)
    app.add_exception_handler(PersistenceError, _persistence)
    app.add_exception_handler(psycopg2.Error, _persistence)
    app.add_exception_handler(ConnectionError, _persistence)
    app.add_exception_handler(StarletteHTTPException, _http_exception)
    app.add_exception_handler(Exception, _unhandled)

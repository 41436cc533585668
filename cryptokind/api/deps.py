"""API dependency injection: shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from cryptokind.config import Config
from cryptokind.keys.rotator import KeyRotator
from cryptokind.market.cache import ResponseCache
from cryptokind.market.client import UpstreamClient


def get_app_config(request: Request) -> Config:
    return request.app.state.config


def get_rotator(request: Request) -> KeyRotator:
    return request.app.state.rotator


def get_upstream(request: Request) -> UpstreamClient:
    return request.app.state.upstream


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache


def get_default_convert(request: Request) -> str:
    return request.app.state.config.upstream.default_convert

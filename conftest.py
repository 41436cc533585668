"""
Root-level shared test fixtures.

Every test gets a fresh config singleton; ``clean_env`` additionally strips
CryptoKind variables that leak in from the developer's shell or ``.env``.
"""

from __future__ import annotations

import pytest

from cryptokind.config import reset_config


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove common env vars that leak between tests."""
    for key in [
        "CRYPTOKIND_ENV",
        "CRYPTOKIND_LOG_LEVEL",
        "CRYPTOKIND_HOST",
        "CRYPTOKIND_PORT",
        "CRYPTOKIND_DB_HOST",
        "CRYPTOKIND_DB_PORT",
        "CRYPTOKIND_DB_NAME",
        "CRYPTOKIND_DB_USER",
        "CRYPTOKIND_DB_PASSWORD",
        "CRYPTOKIND_DB_POOL_MIN",
        "CRYPTOKIND_DB_POOL_MAX",
        "CRYPTOKIND_KEY_FILE",
        "CRYPTOKIND_KEY_RESET_CRON",
        "CRYPTOKIND_CACHE_TTL",
        "CRYPTOKIND_UPSTREAM_TIMEOUT",
        "CRYPTOKIND_DEFAULT_CONVERT",
        "CRYPTOKIND_RATE_LIMIT_WINDOW",
        "CRYPTOKIND_RATE_LIMIT_MAX",
        "CRYPTOKIND_FRONTEND_DIR",
        "COINMARKETCAP_API_URL",
        "COINMARKETCAP_API_KEY",
    ]:
        monkeypatch.delenv(key, raising=False)

"""
Centralized configuration for CryptoKind.

All configuration is loaded from environment variables with sensible defaults.
A ``.env`` file in the working directory is read first; variables already set
in the environment win.

Usage:
    from cryptokind.config import get_config
    cfg = get_config()
    print(cfg.db.name)            # "cryptokind"
    print(cfg.upstream.base_url)  # "https://pro-api.coinmarketcap.com/v1"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class DatabaseConfig:
    """PostgreSQL connection parameters."""

    host: str = "127.0.0.1"
    port: int = 5432
    name: str = "cryptokind"
    user: str = "cryptokind"
    password: str = ""
    pool_min: int = 1
    pool_max: int = 10

    @property
    def dsn(self) -> str:
        """Return a psycopg2-compatible DSN string."""
        parts = [f"dbname={self.name}"]
        if self.host:
            parts.append(f"host={self.host}")
        parts.append(f"port={self.port}")
        if self.user:
            parts.append(f"user={self.user}")
        if self.password:
            parts.append(f"password={self.password}")
        return " ".join(parts)

    @property
    def dict(self) -> dict[str, str | int]:
        """Return a psycopg2.connect() kwargs dict."""
        d: dict[str, str | int] = {
            "dbname": self.name,
            "port": self.port,
        }
        if self.host:
            d["host"] = self.host
        if self.user:
            d["user"] = self.user
        if self.password:
            d["password"] = self.password
        return d


@dataclass(frozen=True)
class UpstreamConfig:
    """Market-data API parameters."""

    base_url: str = "https://pro-api.coinmarketcap.com/v1"
    api_key: str = ""  # bootstraps the key file on first run
    timeout: float = 10.0
    default_convert: str = "INR"


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-IP request ceiling for /api routes."""

    window_seconds: int = 900
    max_requests: int = 100


@dataclass(frozen=True)
class Config:
    """Top-level CryptoKind configuration."""

    environment: str = "development"
    log_level: str = "INFO"

    host: str = "127.0.0.1"
    port: int = 5000

    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    key_file: Path = field(
        default_factory=lambda: Path("config") / "apiKeys" / "coinmarketcap.json"
    )
    key_reset_cron: str = "0 0 * * *"
    cache_ttl: int = 300

    frontend_dir: Path | None = None

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


# Singleton
_config: Config | None = None


def get_config() -> Config:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Config:
    """Load configuration from environment variables."""
    load_dotenv(override=False)

    db = DatabaseConfig(
        host=os.environ.get("CRYPTOKIND_DB_HOST", "127.0.0.1"),
        port=int(os.environ.get("CRYPTOKIND_DB_PORT", "5432")),
        name=os.environ.get("CRYPTOKIND_DB_NAME", "cryptokind"),
        user=os.environ.get("CRYPTOKIND_DB_USER", "cryptokind"),
        password=os.environ.get("CRYPTOKIND_DB_PASSWORD", ""),
        pool_min=int(os.environ.get("CRYPTOKIND_DB_POOL_MIN", "1")),
        pool_max=int(os.environ.get("CRYPTOKIND_DB_POOL_MAX", "10")),
    )

    upstream = UpstreamConfig(
        base_url=os.environ.get(
            "COINMARKETCAP_API_URL", "https://pro-api.coinmarketcap.com/v1"
        ).rstrip("/"),
        api_key=os.environ.get("COINMARKETCAP_API_KEY", ""),
        timeout=float(os.environ.get("CRYPTOKIND_UPSTREAM_TIMEOUT", "10")),
        default_convert=os.environ.get("CRYPTOKIND_DEFAULT_CONVERT", "INR"),
    )

    rate_limit = RateLimitConfig(
        window_seconds=int(os.environ.get("CRYPTOKIND_RATE_LIMIT_WINDOW", "900")),
        max_requests=int(os.environ.get("CRYPTOKIND_RATE_LIMIT_MAX", "100")),
    )

    frontend = os.environ.get("CRYPTOKIND_FRONTEND_DIR", "")

    return Config(
        environment=os.environ.get("CRYPTOKIND_ENV", "development"),
        log_level=os.environ.get("CRYPTOKIND_LOG_LEVEL", "INFO").upper(),
        host=os.environ.get("CRYPTOKIND_HOST", "127.0.0.1"),
        port=int(os.environ.get("CRYPTOKIND_PORT", "5000")),
        db=db,
        upstream=upstream,
        rate_limit=rate_limit,
        key_file=Path(
            os.environ.get(
                "CRYPTOKIND_KEY_FILE",
                Path("config") / "apiKeys" / "coinmarketcap.json",
            )
        ),
        key_reset_cron=os.environ.get("CRYPTOKIND_KEY_RESET_CRON", "0 0 * * *"),
        cache_ttl=int(os.environ.get("CRYPTOKIND_CACHE_TTL", "300")),
        frontend_dir=Path(frontend) if frontend else None,
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None

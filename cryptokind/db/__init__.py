"""Database connection management for CryptoKind."""

from cryptokind.db.connection import check_health, close_pool, get_connection, get_pool

__all__ = ["check_health", "close_pool", "get_connection", "get_pool"]

"""
Connection factory with pooling for PostgreSQL.

Uses a psycopg2 ThreadedConnectionPool so the activity writes that run in the
executor and the request handlers can share it.

Usage:
    from cryptokind.db import get_connection

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager

import psycopg2
import psycopg2.pool

from cryptokind.config import get_config

logger = logging.getLogger(__name__)

_pool: psycopg2.pool.ThreadedConnectionPool | None = None
_pool_lock = threading.Lock()


def get_pool() -> psycopg2.pool.ThreadedConnectionPool:
    """Get or create the connection pool."""
    global _pool
    if _pool is not None and not _pool.closed:
        return _pool

    with _pool_lock:
        if _pool is not None and not _pool.closed:
            return _pool

        cfg = get_config().db
        logger.info(
            "Creating connection pool: %s@%s:%s/%s (min=%d, max=%d)",
            cfg.user,
            cfg.host,
            cfg.port,
            cfg.name,
            cfg.pool_min,
            cfg.pool_max,
        )
        try:
            _pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=cfg.pool_min,
                maxconn=cfg.pool_max,
                **cfg.dict,
            )
        except psycopg2.OperationalError as e:
            raise ConnectionError(
                f"Cannot connect to PostgreSQL at {cfg.host}:{cfg.port}/{cfg.name}: {e}"
            ) from e
        return _pool


@contextmanager
def get_connection() -> Generator[psycopg2.extensions.connection, None, None]:
    """Get a connection from the pool.

    The transaction is committed when the block exits cleanly and rolled back
    when it raises. The connection always goes back to the pool.
    """
    pool = get_pool()
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)


def close_pool() -> None:
    """Close all connections in the pool."""
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None


def check_health() -> dict:
    """Quick health check: row counts of the two application tables."""
    with get_connection() as conn:
        cur = conn.cursor()
        cur.execute("SELECT COUNT(*) FROM activity_logs")
        activity_count: int = cur.fetchone()[0]
        cur.execute("SELECT COUNT(*) FROM user_feedback")
        feedback_count: int = cur.fetchone()[0]
        return {"status": "ok", "activity_logs": activity_count, "feedback": feedback_count}

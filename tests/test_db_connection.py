"""Tests for cryptokind.db.connection — pool lifecycle with psycopg2 mocked."""

from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from cryptokind.db import connection


@pytest.fixture(autouse=True)
def reset_pool():
    connection._pool = None
    yield
    connection._pool = None


@pytest.fixture
def pool():
    mock_pool = MagicMock()
    mock_pool.closed = False
    with patch("psycopg2.pool.ThreadedConnectionPool", return_value=mock_pool) as factory:
        yield {"factory": factory, "pool": mock_pool, "conn": mock_pool.getconn.return_value}


class TestGetPool:
    def test_created_once_with_config_bounds(self, pool, clean_env, monkeypatch):
        monkeypatch.setenv("CRYPTOKIND_DB_POOL_MAX", "3")
        assert connection.get_pool() is pool["pool"]
        assert connection.get_pool() is pool["pool"]
        pool["factory"].assert_called_once()
        kwargs = pool["factory"].call_args.kwargs
        assert kwargs["minconn"] == 1
        assert kwargs["maxconn"] == 3
        assert kwargs["dbname"] == "cryptokind"

    def test_unreachable_database(self, clean_env):
        with patch(
            "psycopg2.pool.ThreadedConnectionPool",
            side_effect=psycopg2.OperationalError("refused"),
        ):
            with pytest.raises(ConnectionError, match="Cannot connect to PostgreSQL"):
                connection.get_pool()


class TestGetConnection:
    def test_commit_on_success(self, pool, clean_env):
        with connection.get_connection() as conn:
            assert conn is pool["conn"]
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        pool["pool"].putconn.assert_called_once_with(conn)

    def test_rollback_on_error(self, pool, clean_env):
        with pytest.raises(ValueError):
            with connection.get_connection():
                raise ValueError("bad row")
        pool["conn"].rollback.assert_called_once()
        pool["conn"].commit.assert_not_called()
        pool["pool"].putconn.assert_called_once_with(pool["conn"])


class TestCheckHealth:
    def test_counts(self, pool, clean_env):
        cur = pool["conn"].cursor.return_value
        cur.fetchone.side_effect = [(12,), (3,)]
        assert connection.check_health() == {"status": "ok", "activity_logs": 12, "feedback": 3}


def test_close_pool(pool, clean_env):
    connection.get_pool()
    connection.close_pool()
    pool["pool"].closeall.assert_called_once()
    assert connection._pool is None

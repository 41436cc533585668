"""
CryptoKind Activity Log: who called which endpoint with what parameters.

Writes are best-effort. ``dispatch_activity`` schedules the insert on the
running loop and returns immediately; a failed insert is logged and dropped,
never raised to the request that triggered it.

Reads (listing, statistics, retention sweep) raise on database errors so the
admin endpoints can report them.

Usage:
    from cryptokind.activity.logger import dispatch_activity, query_activity

    dispatch_activity("203.0.113.7", "getLatestListings", {"limit": 100})
    rows, total = query_activity(page=1, limit=50, action="getLatestListings")
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta
from typing import Any

from psycopg2.extras import Json, RealDictCursor

from cryptokind.db.connection import get_connection

logger = logging.getLogger(__name__)

# Strong references so pending writes are not garbage-collected mid-flight
_pending: set[asyncio.Task] = set()


def activity_to_dict(row: dict) -> dict:
    """Convert an activity_logs row to API response shape."""
    return {
        "id": row["id"],
        "ip_address": row.get("ip_address") or "",
        "action": row.get("action") or "",
        "parameters": row.get("parameters") or {},
        "timestamp": row["timestamp"].isoformat() if row.get("timestamp") else None,
    }


# ─── Writes ──────────────────────────────────────────────────────────────


def log_activity(ip_address: str, action: str, parameters: dict | None = None) -> int | None:
    """Insert one activity record.

    Returns the new row id, or None on failure. Never raises.
    """
    try:
        with get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO activity_logs (ip_address, action, parameters)
                VALUES (%s, %s, %s)
                RETURNING id
                """,
                (ip_address, action, Json(parameters or {})),
            )
            row = cur.fetchone()
        logger.info("Logged activity: %s from %s", action, ip_address)
        return row[0] if row else None
    except Exception as e:
        logger.warning("Activity log write failed for %s: %s", action, e)
        return None


async def log_activity_async(
    ip_address: str, action: str, parameters: dict | None = None
) -> int | None:
    """Run log_activity in the default executor. Logs warning on failure."""
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(
            None, lambda: log_activity(ip_address, action, parameters)
        )
    except Exception as e:
        logger.warning("Activity log dispatch failed for %s: %s", action, e)
        return None


def dispatch_activity(
    ip_address: str, action: str, parameters: dict | None = None
) -> asyncio.Task | None:
    """Fire-and-forget an activity write from inside a request handler."""
    try:
        task = asyncio.get_running_loop().create_task(
            log_activity_async(ip_address, action, parameters)
        )
    except RuntimeError as e:
        logger.warning("No running loop for activity log %s: %s", action, e)
        return None
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def drain_pending() -> None:
    """Wait for in-flight activity writes (used at shutdown)."""
    if _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)


# ─── Reads ───────────────────────────────────────────────────────────────


def _filters(
    action: str | None,
    ip_address: str | None,
    start_date: date | str | None,
    end_date: date | str | None,
) -> tuple[str, list[Any]]:
    conditions: list[str] = []
    params: list[Any] = []
    if action:
        conditions.append("action = %s")
        params.append(action)
    if ip_address:
        conditions.append("ip_address = %s")
        params.append(ip_address)
    if start_date:
        conditions.append("timestamp >= %s")
        params.append(start_date)
    if end_date:
        conditions.append("timestamp <= %s")
        params.append(end_date)
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, params


def query_activity(
    page: int = 1,
    limit: int = 50,
    action: str | None = None,
    ip_address: str | None = None,
    start_date: date | str | None = None,
    end_date: date | str | None = None,
) -> tuple[list[dict], int]:
    """Return (rows, total) for one page of filtered activity, newest first."""
    where, params = _filters(action, ip_address, start_date, end_date)
    offset = (page - 1) * limit

    with get_connection() as conn:
        cur = conn.cursor(cursor_factory=RealDictCursor)
        cur.execute(
            f"""
            SELECT id, ip_address, action, parameters, timestamp
            FROM activity_logs
            {where}
            ORDER BY timestamp DESC
            LIMIT %s OFFSET %s
            """,
            (*params, limit, offset),
        )
        rows = [activity_to_dict(r) for r in cur.fetchall()]

        cur.execute(f"SELECT COUNT(*) AS total FROM activity_logs {where}", params)
        total = cur.fetchone()["total"]

    return rows, int(total)


def default_stats_window(today: date | None = None) -> tuple[str, str]:
    """Last 30 days, as ISO dates."""
    today = today or date.today()
    return (today - timedelta(days=30)).isoformat(), today.isoformat()


def activity_stats(
    start_date: date | str | None = None,
    end_date: date | str | None = None,
) -> dict:
    """Counts by action, by day and by IP (top 10) over a date range.

    ``end_date`` is inclusive of the whole day.
    """
    default_start, default_end = default_stats_window()
    start_date = str(start_date) if start_date else default_start
    end_date = str(end_date) if end_date else default_end
    window = (start_date, end_date)
    range_sql = "timestamp >= %s::date AND timestamp < %s::date + INTERVAL '1 day'"

    with get_connection() as conn:
        cur = conn.cursor(cursor_factory=RealDictCursor)

        cur.execute(f"SELECT COUNT(*) AS total FROM activity_logs WHERE {range_sql}", window)
        total = cur.fetchone()["total"]

        cur.execute(
            f"""
            SELECT action, COUNT(*) AS count
            FROM activity_logs
            WHERE {range_sql}
            GROUP BY action
            ORDER BY count DESC
            """,
            window,
        )
        by_action = [{"action": r["action"], "count": r["count"]} for r in cur.fetchall()]

        cur.execute(
            f"""
            SELECT DATE(timestamp) AS date, COUNT(*) AS count
            FROM activity_logs
            WHERE {range_sql}
            GROUP BY DATE(timestamp)
            ORDER BY date
            """,
            window,
        )
        by_day = [{"date": r["date"].isoformat(), "count": r["count"]} for r in cur.fetchall()]

        cur.execute(
            f"""
            SELECT ip_address, COUNT(*) AS count
            FROM activity_logs
            WHERE {range_sql}
            GROUP BY ip_address
            ORDER BY count DESC
            LIMIT 10
            """,
            window,
        )
        by_ip = [{"ip_address": r["ip_address"], "count": r["count"]} for r in cur.fetchall()]

    return {
        "total": int(total),
        "byAction": by_action,
        "byDay": by_day,
        "byIp": by_ip,
        "timeframe": {"startDate": start_date, "endDate": end_date},
    }


def purge_older_than(days: int) -> int:
    """Delete records older than ``days`` days. Returns the number deleted."""
    with get_connection() as conn:
        cur = conn.cursor()
        cur.execute(
            "DELETE FROM activity_logs WHERE timestamp < NOW() - (%s * INTERVAL '1 day')",
            (days,),
        )
        deleted = int(cur.rowcount)
    logger.info("Cleared %d activity logs older than %d days", deleted, days)
    return deleted

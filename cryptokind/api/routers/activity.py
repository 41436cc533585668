"""Activity log routes: listing, statistics, retention sweep."""

from __future__ import annotations

import math
from datetime import date

from fastapi import APIRouter, Body, Query

from cryptokind.activity.logger import activity_stats, purge_older_than, query_activity
from cryptokind.api.models import ClearLogsRequest
from cryptokind.errors import InvalidRequestError

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("/logs")
async def api_activity_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    action: str | None = Query(None),
    ip: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
):
    rows, total = query_activity(page, limit, action, ip, start_date, end_date)
    return {
        "success": True,
        "data": rows,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit),
        },
    }


@router.get("/stats")
async def api_activity_stats(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
):
    return {"success": True, "data": activity_stats(start_date, end_date)}


@router.delete("/logs/clear")
async def api_clear_logs(body: ClearLogsRequest | None = Body(None)):
    days = body.days if body is not None else 90
    if days < 1:
        raise InvalidRequestError("Days must be a positive number")

    deleted = purge_older_than(days)
    return {
        "success": True,
        "message": f"Cleared {deleted} activity logs older than {days} days",
        "deletedCount": deleted,
    }

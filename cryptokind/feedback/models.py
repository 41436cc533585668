"""Feedback statuses and the row -> response shape converter."""

from __future__ import annotations

FEEDBACK_STATUSES: tuple[str, ...] = ("new", "read", "responded", "closed")


def is_valid_status(status: str | None) -> bool:
    return status in FEEDBACK_STATUSES


def feedback_to_dict(row: dict) -> dict:
    """Convert a user_feedback row to API response shape."""
    return {
        "id": row["id"],
        "name": row.get("name") or "",
        "email": row.get("email") or "",
        "subject": row.get("subject") or "",
        "message": row.get("message") or "",
        "ip_address": row.get("ip_address") or "",
        "status": row.get("status") or "new",
        "created_at": row["created_at"].isoformat() if row.get("created_at") else None,
    }

"""
Feedback Data Access Layer: PostgreSQL CRUD for user_feedback.

Usage:
    from cryptokind.feedback.dal import create_feedback, list_feedback

    feedback_id = create_feedback("Jane", "jane@example.com", "Hi", "Nice site", "203.0.113.7")
    rows, total = list_feedback(page=1, limit=10, status="new")
"""

from __future__ import annotations

import logging

from psycopg2.extras import RealDictCursor

from cryptokind.db.connection import get_connection
from cryptokind.errors import InvalidRequestError
from cryptokind.feedback.models import FEEDBACK_STATUSES, feedback_to_dict, is_valid_status
from cryptokind.feedback.validation import sanitize_input, validate_feedback_input

logger = logging.getLogger(__name__)

def create_feedback(
    name: str,
    email: str,
    subject: str,
    message: str,
    ip_address: str = "0.0.0.0",
) -> int:
    """Validate, sanitise and store a submission. Returns the new id."""
    valid, reason = validate_feedback_input(name, email, subject, message)
    if not valid:
        raise InvalidRequestError(reason)

    clean_name = sanitize_input(name)
    clean_email = sanitize_input(email)

    with get_connection() as conn:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO user_feedback (name, email, subject, message, ip_address, status)
            VALUES (%s, %s, %s, %s, %s, 'new')
            RETURNING id
            """,
            (
                clean_name,
                clean_email,
                sanitize_input(subject),
                sanitize_input(message),
                ip_address,
            ),
        )
        feedback_id = cur.fetchone()[0]

    logger.info("New feedback %s submitted by %s (%s)", feedback_id, clean_name, clean_email)
    return feedback_id

def list_feedback(
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
) -> tuple[list[dict], int]:
    """Return (rows, total), newest first.

    A status outside the known set is ignored rather than rejected.
    """
    where = ""
    params: list = []
    if is_valid_status(status):
        where = "WHERE status = %s"
        params.append(status)
    offset = (page - 1) * limit

    with get_connection() as conn:
        cur = conn.cursor(cursor_factory=RealDictCursor)
        cur.execute(
            f"""
            SELECT * FROM user_feedback
            {where}
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
            """,
            (*params, limit, offset),
        )
        rows = [feedback_to_dict(r) for r in cur.fetchall()]

        cur.execute(f"SELECT COUNT(*) AS total FROM user_feedback {where}", params)
        total = cur.fetchone()["total"]

    return rows, int(total)

def update_feedback_status(feedback_id: int, status: str) -> bool:
    """Set the status. Any known status may follow any other.

    Raises InvalidRequestError for an unknown status; returns False when the
    feedback does not exist.
    """
    if not is_valid_status(status):
        raise InvalidRequestError(
            f"Invalid status. Must be one of: {', '.join(FEEDBACK_STATUSES)}"
        )

    with get_connection() as conn:
        cur = conn.cursor()
        cur.execute(
            "UPDATE user_feedback SET status = %s WHERE id = %s",
            (status, feedback_id),
        )
        updated = cur.rowcount > 0

    if updated:
        logger.info("Feedback %s status updated to %s", feedback_id, status)
    return updated

def delete_feedback(feedback_id: int) -> bool:
    """Delete a feedback record. Returns False when it does not exist."""
    with get_connection() as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM user_feedback WHERE id = %s", (feedback_id,))
        deleted = cur.rowcount > 0

    if deleted:
        logger.info("Feedback %s deleted", feedback_id)
    return deleted

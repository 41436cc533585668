"""
Feedback validation: required fields, email shape, sanitisation, length limits.

Usage:
    from cryptokind.feedback.validation import validate_feedback_input, sanitize_input

    valid, reason = validate_feedback_input(name, email, subject, message)
"""

from __future__ import annotations

import html
import re

_TAG_RE = re.compile(r"<[^>]*>")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Column sizes in user_feedback, measured on the stored (sanitised) value
MAX_LENGTHS: dict[str, int] = {
    "name": 100,
    "email": 255,
    "subject": 200,
}

# message is TEXT; this caps what a caller may send
MAX_MESSAGE_LENGTH = 5000


def sanitize_input(value: str | None) -> str:
    """Strip HTML tags, then escape what is left for safe display."""
    if not isinstance(value, str):
        return ""
    stripped = _TAG_RE.sub("", value).strip()
    return html.escape(stripped, quote=True).replace("/", "&#x2F;")


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def validate_feedback_input(
    name: str | None,
    email: str | None,
    subject: str | None,
    message: str | None,
) -> tuple[bool, str]:
    """Check a submission before it is written.

    Returns (True, "") when valid, else (False, reason).
    """
    fields = {"name": name, "email": email, "subject": subject, "message": message}
    if not all(v and v.strip() for v in fields.values()):
        return False, "All fields are required: name, email, subject, message"

    if not is_valid_email(email.strip()):
        return False, "Invalid email format"

    for key, limit in MAX_LENGTHS.items():
        if len(sanitize_input(fields[key])) > limit:
            return False, f"{key} must be at most {limit} characters"

    if len(message) > MAX_MESSAGE_LENGTH:
        return False, f"message must be at most {MAX_MESSAGE_LENGTH} characters"

    return True, ""

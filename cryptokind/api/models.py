"""Pydantic request models for the CryptoKind API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cryptokind.keys.store import DEFAULT_RATE_LIMIT

# ─── Activity ────────────────────────────────────────────────────────────


class ClearLogsRequest(BaseModel):
    days: int = 90


# ─── Feedback ────────────────────────────────────────────────────────────


class SubmitFeedbackRequest(BaseModel):
    # Presence and format are checked by the feedback validator so every
    # failure gets the same descriptive message.
    name: str | None = None
    email: str | None = None
    subject: str | None = None
    message: str | None = None


class UpdateFeedbackStatusRequest(BaseModel):
    status: str | None = None


# ─── API keys ────────────────────────────────────────────────────────────


class AddKeyRequest(BaseModel):
    key: str | None = None
    rateLimit: int = Field(DEFAULT_RATE_LIMIT, ge=1)


class RemoveKeyRequest(BaseModel):
    key: str | None = None

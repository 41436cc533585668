"""API key management routes (trusted admin surface, no auth layer)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cryptokind.api.deps import get_rotator
from cryptokind.api.models import AddKeyRequest, RemoveKeyRequest
from cryptokind.errors import InvalidRequestError
from cryptokind.keys.rotator import KeyRotator

router = APIRouter(prefix="/api/keys", tags=["keys"])


@router.post("/add")
async def api_add_key(body: AddKeyRequest, rotator: KeyRotator = Depends(get_rotator)):
    if not body.key:
        raise InvalidRequestError("API key is required")
    if not rotator.add_key(body.key, body.rateLimit):
        raise InvalidRequestError("Failed to add API key, it may already exist")
    return {"success": True, "message": "API key added successfully"}


@router.post("/remove")
async def api_remove_key(body: RemoveKeyRequest, rotator: KeyRotator = Depends(get_rotator)):
    if not body.key:
        raise InvalidRequestError("API key is required")
    if not rotator.remove_key(body.key):
        raise InvalidRequestError("Failed to remove API key, it may not exist")
    return {"success": True, "message": "API key removed successfully"}


@router.get("/list")
async def api_list_keys(rotator: KeyRotator = Depends(get_rotator)):
    return {"success": True, "data": rotator.list_keys()}


@router.post("/reset-usage")
async def api_reset_usage(rotator: KeyRotator = Depends(get_rotator)):
    keys = rotator.reset_usage()
    return {
        "success": True,
        "message": "API key usage counts reset successfully",
        "data": {"lastRotation": keys.last_rotation},
    }

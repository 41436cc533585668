"""Liveness and health routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from cryptokind.api.deps import get_rotator
from cryptokind.db.connection import check_health
from cryptokind.keys.rotator import KeyRotator

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    return {"success": True, "message": "CryptoKind API is running"}


@router.get("/health")
async def health(rotator: KeyRotator = Depends(get_rotator)):
    """Check the database and that at least one API key is available."""
    services = {}

    try:
        h = check_health()
        services["database"] = "ok" if h["status"] == "ok" else f"error:{h.get('error', 'unknown')}"
    except Exception as e:
        services["database"] = f"error:{e}"

    keys = rotator.list_keys()
    services["keys"] = "ok" if keys else "error:no API keys configured"

    all_ok = all(v == "ok" for v in services.values())
    status = "ok" if all_ok else "degraded"
    status_code = 200 if all_ok else 503
    return JSONResponse({"status": status, "services": services}, status_code=status_code)

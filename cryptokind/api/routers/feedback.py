"""Feedback routes: public submission and admin triage."""

from __future__ import annotations

import math

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from cryptokind.activity.logger import dispatch_activity
from cryptokind.api.middleware import client_ip
from cryptokind.api.models import SubmitFeedbackRequest, UpdateFeedbackStatusRequest
from cryptokind.errors import NotFoundError
from cryptokind.feedback.dal import (
    create_feedback,
    delete_feedback,
    list_feedback,
    update_feedback_status,
)

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post("/submit")
async def api_submit_feedback(body: SubmitFeedbackRequest, request: Request):
    ip = client_ip(request)
    feedback_id = create_feedback(body.name, body.email, body.subject, body.message, ip)
    dispatch_activity(ip, "submitFeedback", {"id": feedback_id})
    return JSONResponse(
        {
            "success": True,
            "message": "Feedback submitted successfully",
            "data": {"id": feedback_id},
        },
        status_code=201,
    )


@router.get("")
async def api_list_feedback(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: str | None = Query(None),
):
    rows, total = list_feedback(page, limit, status)
    return {
        "success": True,
        "data": {
            "feedback": rows,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit),
            },
        },
    }


@router.patch("/{feedback_id}/status")
async def api_update_feedback_status(feedback_id: int, body: UpdateFeedbackStatusRequest):
    if not update_feedback_status(feedback_id, body.status):
        raise NotFoundError("Feedback not found")
    return {"success": True, "message": "Feedback status updated successfully"}


@router.delete("/{feedback_id}")
async def api_delete_feedback(feedback_id: int):
    if not delete_feedback(feedback_id):
        raise NotFoundError("Feedback not found")
    return {"success": True, "message": "Feedback deleted successfully"}

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from emergency_service.dependencies import get_intake_service
from emergency_service.errors import InvalidRequest
from emergency_service.services.intake import EmergencyIntakeService

router = APIRouter(prefix="/api", tags=["emergency"])

SUCCESS_MESSAGE = "Notification sent"


@router.post("/emergency", response_class=PlainTextResponse)
async def submit_emergency(
    request: Request,
    intake: EmergencyIntakeService = Depends(get_intake_service),
) -> PlainTextResponse:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidRequest(["body"]) from exc
    await intake.submit(payload)
    return PlainTextResponse(SUCCESS_MESSAGE, status_code=200)
